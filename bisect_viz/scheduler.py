"""
Frame-driven playback of animation steps.

StepScheduler turns an ordered list of AnimationSteps into timed playback.
Every frame it advances a simulated clock by the real time elapsed since the
previous frame times the speed factor, starts every step whose cumulative
delay has been reached, polls all running steps, and flushes the coalesced
field writes to the canvas. Before a step starts, the steps already running
are polled at its scheduled start time, so coarse frames (high speed, slow
display) still hand each new step the positions it would have seen.

States:
    IDLE    -> RUNNING   run()
    RUNNING -> PAUSED    pause()   (the next frame resolves the pause future
                                    and stops requesting frames)
    PAUSED  -> RUNNING   resume()  (real-time reference reset to now)
    RUNNING -> IDLE      last step started and every step finished

Requests that do not fit the current state raise ConcurrentRunConflict.
Scheduler instances share nothing; create as many as you like.
"""

from concurrent.futures import Future
from enum import Enum
from typing import Callable, List, Optional, Sequence
import logging
import math

from .batcher import UpdateBatcher
from .config import MAX_SPEED_FACTOR, MIN_SPEED_FACTOR, Palette
from .errors import ConcurrentRunConflict
from .frames import FrameDriver
from .steps import ActiveStep, AnimationStep, StepContext


logger = logging.getLogger(__name__)


class SchedulerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


def _resolve(future: Future, value):
    if not future.done():
        future.set_result(value)


class StepScheduler:
    """
    Cooperative executor for one animation script at a time.

    Args:
        driver: Frame source providing `now()` and `request_frame()`
        speed_factor: Initial simulated-time multiplier
    """

    def __init__(self, driver: FrameDriver, speed_factor: float = 1.0):
        self.driver = driver
        self._speed = 1.0
        self.set_speed_factor(speed_factor)

        self._state = SchedulerState.IDLE
        self._steps: List[AnimationStep] = []
        self._cursor = 0
        self._next_start = 0.0
        self._active: List[ActiveStep] = []
        self._simulated = 0.0
        self._last_real = 0.0
        self._batcher = UpdateBatcher()
        self._context: Optional[StepContext] = None
        self._completion: Optional[Future] = None
        self._pause_waiters: List[Future] = []
        self._frame_requested = False
        self._generation = 0

        # Optional observer, called as on_step_start(index, step)
        self.on_step_start: Optional[Callable[[int, AnimationStep], None]] = None

    # Introspection

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def simulated_time(self) -> float:
        """Simulated milliseconds since the current run started."""
        return self._simulated

    @property
    def steps_started(self) -> int:
        return self._cursor

    @property
    def active_steps(self) -> List[ActiveStep]:
        return list(self._active)

    @property
    def next_start_time(self) -> float:
        return self._next_start

    # Speed

    def get_speed_factor(self) -> float:
        return self._speed

    def set_speed_factor(self, factor: float):
        """Change the playback speed; takes effect from the next frame."""
        factor = float(factor)
        if not math.isfinite(factor) or factor <= 0:
            raise ValueError(f"Speed factor must be a positive number, got {factor}")
        self._speed = factor

    speed_factor = property(get_speed_factor, set_speed_factor)

    # Run control

    def run(self, steps: Sequence[AnimationStep], sink, palette: Optional[Palette] = None) -> Future:
        """
        Start playing `steps` against `sink` (a GraphCanvas).

        Returns:
            Future resolved with the number of steps played once the last
            step has finished

        Raises:
            ConcurrentRunConflict: A run is already active (running or paused)
        """
        if self._state is not SchedulerState.IDLE:
            raise ConcurrentRunConflict(f"Cannot start a run while {self._state.value}")

        self._generation += 1
        self._frame_requested = False
        self._steps = list(steps)
        self._cursor = 0
        self._next_start = 0.0
        self._active = []
        self._simulated = 0.0
        self._batcher.clear()
        self._context = StepContext(
            canvas=sink,
            batcher=self._batcher,
            palette=palette or getattr(sink, "palette", None) or Palette(),
        )
        self._last_real = self.driver.now()
        self._completion = Future()
        self._state = SchedulerState.RUNNING

        logger.info("Playing %d animation steps", len(self._steps))
        self._request_frame()
        return self._completion

    def pause(self) -> Future:
        """
        Freeze playback.

        Returns:
            Future resolved once playback has actually stopped (next frame,
            or at resume if no frame happened in between)

        Raises:
            ConcurrentRunConflict: Already paused, or nothing is playing
        """
        if self._state is SchedulerState.PAUSED:
            raise ConcurrentRunConflict("Playback is already paused")
        if self._state is SchedulerState.IDLE:
            raise ConcurrentRunConflict("Nothing is playing")

        self._state = SchedulerState.PAUSED
        waiter: Future = Future()
        self._pause_waiters.append(waiter)
        self._request_frame()
        logger.debug("Pause requested at %.1f ms simulated", self._simulated)
        return waiter

    def resume(self):
        """
        Continue a paused run without crediting the time spent paused.

        Raises:
            ConcurrentRunConflict: Not paused
        """
        if self._state is not SchedulerState.PAUSED:
            raise ConcurrentRunConflict(f"Cannot resume while {self._state.value}")

        self._resolve_pause_waiters()
        self._last_real = self.driver.now()
        self._state = SchedulerState.RUNNING
        self._request_frame()
        logger.debug("Resumed at %.1f ms simulated", self._simulated)

    # Frame handling

    def _request_frame(self):
        if self._frame_requested:
            return
        self._frame_requested = True
        generation = self._generation
        self.driver.request_frame(lambda now: self._on_frame(generation, now))

    def _on_frame(self, generation: int, now: float):
        if generation != self._generation:
            return
        self._frame_requested = False
        try:
            self._tick(now)
        except Exception as exc:
            logger.error("Animation step failed: %s", exc)
            self._teardown(error=exc)
            raise

    def _tick(self, now: float):
        if self._state is SchedulerState.PAUSED:
            # Time stands still and no further frames are requested
            self._resolve_pause_waiters()
            return
        if self._state is not SchedulerState.RUNNING:
            return

        delta = max(0.0, now - self._last_real)
        self._last_real = now
        self._simulated += delta * self._speed

        while self._cursor < len(self._steps) and self._simulated >= self._next_start:
            step = self._steps[self._cursor]
            at = self._next_start
            # Bring running steps up to this start time so the new step sees
            # their (still unflushed) writes
            self._poll(at)
            self._active.append(step.start(self._context, at))
            logger.debug("Step %d at %.1f ms: %s", self._cursor, at, step.description)
            if self.on_step_start is not None:
                self.on_step_start(self._cursor, step)
            self._cursor += 1
            self._next_start = at + step.min_delay_before_next

        self._poll(self._simulated)
        self._batcher.flush(self._context.canvas)

        if self._cursor >= len(self._steps) and not self._active:
            played = self._cursor
            logger.info("Playback finished: %d steps in %.1f ms simulated", played, self._simulated)
            self._teardown(result=played)
            return

        self._request_frame()

    def _poll(self, now: float):
        self._active = [active for active in self._active if not active.update(now)]

    def _resolve_pause_waiters(self):
        waiters, self._pause_waiters = self._pause_waiters, []
        for waiter in waiters:
            _resolve(waiter, self._simulated)

    def _teardown(self, result: Optional[int] = None, error: Optional[BaseException] = None):
        """Drop all run state. Safe to call more than once."""
        self._generation += 1
        self._frame_requested = False
        self._active = []
        self._batcher.clear()
        self._steps = []
        self._context = None
        self._state = SchedulerState.IDLE
        self._resolve_pause_waiters()

        completion, self._completion = self._completion, None
        if completion is not None and not completion.done():
            if error is not None:
                completion.set_exception(error)
            else:
                completion.set_result(result)


class PlaybackController:
    """
    User-facing playback controls on top of a StepScheduler.

    Speed changes halve or double the factor within the configured bounds.
    Hosts embedding the scheduler feed their key events to `handle_key`;
    the `--play` command line mode reads no keyboard input.
    """

    def __init__(
        self,
        scheduler: StepScheduler,
        min_speed: float = MIN_SPEED_FACTOR,
        max_speed: float = MAX_SPEED_FACTOR,
    ):
        self.scheduler = scheduler
        self.min_speed = min_speed
        self.max_speed = max_speed

    @property
    def is_paused(self) -> bool:
        return self.scheduler.state is SchedulerState.PAUSED

    def toggle_pause(self) -> Optional[Future]:
        """Pause if playing, resume if paused. Returns the pause future, if any."""
        if self.is_paused:
            logger.info("Resuming animation")
            self.scheduler.resume()
            return None
        logger.info("Pausing animation")
        return self.scheduler.pause()

    def set_speed(self, factor: float) -> float:
        factor = min(self.max_speed, max(self.min_speed, factor))
        self.scheduler.set_speed_factor(factor)
        logger.info("Simulation speed factor: %g", factor)
        return factor

    def slower(self) -> float:
        return self.set_speed(self.scheduler.get_speed_factor() / 2)

    def faster(self) -> float:
        return self.set_speed(self.scheduler.get_speed_factor() * 2)

    def handle_key(self, key: str) -> bool:
        """
        Map a key press to a control: 'p' or 'F9' pause/resume, '-' slower,
        '=' faster. Returns False for keys without a binding.
        """
        if key in ("p", "F9"):
            self.toggle_pause()
        elif key == "-":
            self.slower()
        elif key == "=":
            self.faster()
        else:
            return False
        return True
