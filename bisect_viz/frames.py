"""
Frame sources for the step scheduler.

A frame driver plays the role of a display's refresh callback: the scheduler
asks it for "one more frame" and the driver later calls back with the
current real time in milliseconds.

- ManualFrameDriver: virtual clock, frames advance only when told to.
  Deterministic; used by tests and by offline rendering.
- RealtimeFrameDriver: wall clock, paced loop at a target fps.
"""

from typing import Callable, Optional, Protocol
import time


FrameCallback = Callable[[float], None]


class FrameDriver(Protocol):

    def now(self) -> float:
        """Current real time in milliseconds."""
        ...

    def request_frame(self, callback: FrameCallback):
        """Call `callback(now)` at the next frame."""
        ...


class ManualFrameDriver:
    """
    Frame driver with a virtual clock.

    Each frame moves the clock forward by `frame_interval` ms, then runs the
    callbacks that were requested before the frame began.
    """

    def __init__(self, frame_interval: float = 1000.0 / 60.0, start: float = 0.0):
        self.frame_interval = frame_interval
        self._now = start
        self._pending: list = []
        self.frames = 0

    def now(self) -> float:
        return self._now

    def request_frame(self, callback: FrameCallback):
        self._pending.append(callback)

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def elapse(self, ms: float):
        """Let wall-clock time pass without delivering a frame."""
        self._now += ms

    def advance(self, frames: int = 1) -> int:
        """
        Deliver up to `frames` frames.

        Returns:
            Number of frames that actually ran a callback
        """
        delivered = 0
        for _ in range(frames):
            self._now += self.frame_interval
            if not self._pending:
                continue
            callbacks, self._pending = self._pending, []
            for callback in callbacks:
                callback(self._now)
            delivered += 1
            self.frames += 1
        return delivered

    def run_until(
        self,
        predicate: Callable[[], bool],
        max_frames: int = 1_000_000,
        on_frame: Optional[Callable[[int], None]] = None,
    ) -> int:
        """
        Advance frame by frame until `predicate()` holds or nothing is pending.

        Args:
            predicate: Stop condition checked before every frame
            max_frames: Safety bound
            on_frame: Called with the frame number after each delivered frame

        Returns:
            Number of frames delivered
        """
        delivered = 0
        while delivered < max_frames and not predicate() and self._pending:
            self.advance(1)
            delivered += 1
            if on_frame is not None:
                on_frame(delivered)
        return delivered


class RealtimeFrameDriver:
    """Wall-clock frame driver, paced with `time.sleep`."""

    def __init__(self, fps: float = 60.0):
        self.frame_interval = 1000.0 / fps
        self._pending: list = []

    def now(self) -> float:
        return time.perf_counter() * 1000.0

    def request_frame(self, callback: FrameCallback):
        self._pending.append(callback)

    def run_until(self, predicate: Callable[[], bool], idle_sleep: bool = True) -> int:
        """
        Loop until `predicate()` holds.

        While nothing is pending (e.g. the scheduler is paused) the loop keeps
        sleeping one frame at a time if `idle_sleep`, and returns otherwise.
        """
        frames = 0
        while not predicate():
            frame_start = self.now()
            if self._pending:
                callbacks, self._pending = self._pending, []
                for callback in callbacks:
                    callback(self.now())
                frames += 1
            elif not idle_sleep:
                break
            spent = self.now() - frame_start
            time.sleep(max(0.0, self.frame_interval - spent) / 1000.0)
        return frames
