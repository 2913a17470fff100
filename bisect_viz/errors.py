"""
Exception types raised by the bisection visualizer.

All failures are local and recoverable by the caller. Nothing in the
package retries on its own.
"""


class BisectVizError(Exception):
    """Base class for all bisect_viz errors."""
    pass


class InvalidGraphInput(BisectVizError, ValueError):
    """Raised when a graph snapshot cannot be turned into a valid graph."""
    pass


class ConcurrentRunConflict(BisectVizError, RuntimeError):
    """Raised when a scheduler request does not fit its current state."""
    pass
