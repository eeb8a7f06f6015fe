import time
from datetime import timedelta
from typing import Callable, Optional, Protocol, Tuple, Union


class StateError(Exception):
    """Base class for lifecycle ordering defects on a TimedState."""


class UninitializedStateError(StateError):
    """Raised when a state's start point is needed before start() ran."""


class StateTransitionError(StateError):
    """Raised on an out-of-order lifecycle call (double start, tick after end)."""


class PhaseBehavior(Protocol):
    def on_start(self, state: 'TimedState') -> None: ...

    def on_tick(self, state: 'TimedState') -> None: ...

    def on_end(self, state: 'TimedState') -> None: ...


class TimedState:
    """One timed phase of an arena sequence.

    Holds a fixed duration and a ``frozen`` flag and decides whether the
    phase may end. Phase-specific side effects live in ``behavior``; the
    owner drives ``start()``, ``tick()`` and ``end()`` in that order.

    ``clock`` must be monotonic seconds; elapsed time keeps counting while
    the state is frozen.

    A state is frozen while the owner holds it (``frozen = True``) or while
    its behavior reports it blocked (``blocked = True``). The two flags are
    independent, so a behavior clearing its block never releases a hold.
    """

    def __init__(
        self,
        behavior: PhaseBehavior,
        duration: Union[timedelta, int, float],
        friendly_name: str,
        clock: Callable[[], float] = time.monotonic,
    ):
        if not isinstance(duration, timedelta):
            duration = timedelta(seconds=duration)
        if duration < timedelta(0):
            raise ValueError(f"duration must not be negative, got {duration}")
        self._behavior = behavior
        self._duration = duration
        self._friendly_name = friendly_name
        self._clock = clock
        self._started = False
        self._ended = False
        self._start_time: Optional[float] = None
        self.held = False
        self.blocked = False

    def __repr__(self) -> str:
        return (
            f"<TimedState {self._friendly_name!r} duration={self._duration} "
            f"started={self._started} ended={self._ended} frozen={self.frozen}>"
        )

    @property
    def behavior(self) -> PhaseBehavior:
        return self._behavior

    @property
    def duration(self) -> timedelta:
        return self._duration

    @property
    def friendly_name(self) -> str:
        return self._friendly_name

    @property
    def frozen(self) -> bool:
        return self.held or self.blocked

    @frozen.setter
    def frozen(self, value: bool) -> None:
        self.held = bool(value)

    @property
    def started(self) -> bool:
        return self._started

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def start_time(self) -> float:
        if self._start_time is None:
            raise UninitializedStateError(f"state '{self._friendly_name}' has not been started")
        return self._start_time

    # ---- Lifecycle ----

    def start(self) -> None:
        if self._started:
            raise StateTransitionError(f"state '{self._friendly_name}' was already started")
        # Start point is set before on_start runs
        self._start_time = self._clock()
        self._started = True
        self._behavior.on_start(self)

    def tick(self) -> None:
        self._require_active('tick')
        self._behavior.on_tick(self)

    def end(self) -> None:
        self._require_active('end')
        self._ended = True
        self._behavior.on_end(self)

    def _require_active(self, action: str) -> None:
        if not self._started:
            raise UninitializedStateError(f"cannot {action} state '{self._friendly_name}' before start")
        if self._ended:
            raise StateTransitionError(f"cannot {action} state '{self._friendly_name}' after end")

    # ---- Timing ----

    def elapsed(self) -> timedelta:
        start = self.start_time
        return timedelta(seconds=self._clock() - start)

    def is_able_to_end(self) -> bool:
        """True when unfrozen and elapsed time meets or exceeds the duration."""
        if self.frozen:
            return False
        start = self.start_time
        # Raw seconds: timedelta rounds to the microsecond
        remaining = (self._clock() - start) - self._duration.total_seconds()
        # Zero counts: a phase is done exactly at its duration
        return remaining >= 0

    def remaining(self) -> timedelta:
        left = self._duration - self.elapsed()
        if left < timedelta(0):
            return timedelta(0)
        return left

    def remaining_parts(self) -> Tuple[int, int]:
        """Remaining time as (minutes, seconds) for countdown displays."""
        minutes, seconds = divmod(int(self.remaining().total_seconds()), 60)
        return minutes, seconds
