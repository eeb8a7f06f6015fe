import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from arena.states import StateError, StateTransitionError, TimedState


TransitionListener = Callable[[TimedState, str], None]

log = logging.getLogger(__name__)


class PhaseScheduler:
    """Sequences an arena's phases and drives their lifecycle.

    - States run in registration order; the current state is the first one
      that has not ended
    - Each tick starts the current state if needed, then either ends it
      (able to end, or skip requested while unfrozen) or fires its tick hook
    - When a state ends the next one is started in the same tick
    - All calls are serialized by a re-entrant lock so hooks may call back
      into ``skip()`` or ``freeze()``
    """

    def __init__(self, name: str, logger: Optional[logging.Logger] = None,
                 on_transition: Optional[TransitionListener] = None):
        self.name = name
        self.logger = logger or log
        self._on_transition = on_transition
        self._states: List[TimedState] = []
        self._skip_requested = False
        self._lock = threading.RLock()

    @property
    def states(self) -> tuple:
        return tuple(self._states)

    def register(self, state: TimedState) -> None:
        with self._lock:
            if state.started:
                raise StateTransitionError(f"cannot register already started state '{state.friendly_name}'")
            self._states.append(state)

    @property
    def current(self) -> Optional[TimedState]:
        for state in self._states:
            if not state.ended:
                return state
        return None

    @property
    def current_index(self) -> Optional[int]:
        for idx, state in enumerate(self._states):
            if not state.ended:
                return idx
        return None

    @property
    def finished(self) -> bool:
        return bool(self._states) and self.current is None

    def skip(self) -> None:
        with self._lock:
            self._skip_requested = True

    def freeze(self, frozen: bool = True) -> Optional[TimedState]:
        with self._lock:
            state = self.current
            if state is not None:
                state.frozen = bool(frozen)
                self.logger.info(f"[phase-freeze] arena={self.name} phase={state.friendly_name} frozen={state.frozen}")
            return state

    def tick(self) -> Optional[TimedState]:
        """Advance the sequence by one step.

        Returns the state that ended during this tick, if any.
        """
        with self._lock:
            state = self.current
            if state is None:
                return None

            if not state.started:
                self._start(state)

            able = state.is_able_to_end()
            if able or (self._skip_requested and not state.frozen):
                skipped = not able
                self._skip_requested = False
                self._end(state, skipped=skipped)
                nxt = self.current
                if nxt is not None:
                    self._start(nxt)
                return state

            self._run_hook(state, state.tick)
            return None

    def snapshot(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            state = self.current
            if state is None:
                return None
            duration_sec = state.duration.total_seconds()
            if state.started:
                elapsed_sec = state.elapsed().total_seconds()
                remaining_sec = state.remaining().total_seconds()
            else:
                elapsed_sec = 0.0
                remaining_sec = duration_sec
            return {
                'name': state.friendly_name,
                'index': self.current_index,
                'count': len(self._states),
                'started': state.started,
                'frozen': state.frozen,
                'held': state.held,
                'blocked': state.blocked,
                'skip_requested': self._skip_requested,
                'duration_sec': duration_sec,
                'elapsed_sec': elapsed_sec,
                'remaining_sec': remaining_sec,
            }

    # ---- Internals ----

    def _start(self, state: TimedState) -> None:
        self._run_hook(state, state.start)
        self.logger.info(
            f"[phase-start] arena={self.name} phase={state.friendly_name} duration={int(state.duration.total_seconds())}s"
        )
        self._notify(state, 'start')

    def _end(self, state: TimedState, skipped: bool = False) -> None:
        self._run_hook(state, state.end)
        self.logger.info(
            f"[phase-end] arena={self.name} phase={state.friendly_name} elapsed={state.elapsed().total_seconds():.1f}s skipped={skipped}"
        )
        self._notify(state, 'skip' if skipped else 'end')

    def _run_hook(self, state: TimedState, step: Callable[[], None]) -> None:
        # Lifecycle flags are already updated when the hook runs
        try:
            step()
        except StateError:
            raise
        except Exception:
            self.logger.exception(f"[phase-hook-error] arena={self.name} phase={state.friendly_name}")

    def _notify(self, state: TimedState, event: str) -> None:
        if self._on_transition is None:
            return
        try:
            self._on_transition(state, event)
        except Exception:
            self.logger.exception(f"[phase-listener-error] arena={self.name} phase={state.friendly_name} event={event}")
