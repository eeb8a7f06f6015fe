import time
from typing import Callable, Dict, List

from .timed_state import TimedState


# Phase order for a standard arena
PHASE_ORDER = ('lobby', 'countdown', 'active', 'end_screen')

DEFAULT_DURATIONS = {
    'lobby': 60,
    'countdown': 10,
    'active': 300,
    'end_screen': 15,
}


class LobbyPhase:
    """Waits for players. Stays blocked while the arena is under its minimum."""

    def __init__(self, room):
        self.room = room

    def on_start(self, state: TimedState) -> None:
        self.room.set_accepting_players(True)
        self.room.broadcast('phase_message', {'message': 'Waiting for players...'})

    def on_tick(self, state: TimedState) -> None:
        state.blocked = self.room.player_count() < self.room.min_players

    def on_end(self, state: TimedState) -> None:
        pass


class CountdownPhase:
    def __init__(self, room):
        self.room = room

    def on_start(self, state: TimedState) -> None:
        seconds = int(state.duration.total_seconds())
        self.room.broadcast('phase_message', {'message': f'Game starting in {seconds} seconds!'})

    def on_tick(self, state: TimedState) -> None:
        # Hold the countdown if players walk out before it finishes
        state.blocked = self.room.player_count() < self.room.min_players
        minutes, seconds = state.remaining_parts()
        self.room.broadcast('countdown', {
            'remaining': minutes * 60 + seconds,
            'frozen': state.frozen,
        })

    def on_end(self, state: TimedState) -> None:
        self.room.set_accepting_players(False)


class ActivePhase:
    def __init__(self, room):
        self.room = room

    def on_start(self, state: TimedState) -> None:
        self.room.broadcast('phase_message', {'message': 'Round started!'})

    def on_tick(self, state: TimedState) -> None:
        if self.room.player_count() < 1:
            self.room.scheduler.skip()

    def on_end(self, state: TimedState) -> None:
        self.room.broadcast('phase_message', {'message': 'Round over!'})


class EndScreenPhase:
    def __init__(self, room):
        self.room = room

    def on_start(self, state: TimedState) -> None:
        self.room.broadcast('phase_message', {'message': 'Game over. Thanks for playing!'})

    def on_tick(self, state: TimedState) -> None:
        pass

    def on_end(self, state: TimedState) -> None:
        self.room.broadcast('phase_message', {'message': 'Arena closed.'})


_BEHAVIORS = {
    'lobby': (LobbyPhase, 'Lobby'),
    'countdown': (CountdownPhase, 'Countdown'),
    'active': (ActivePhase, 'Active'),
    'end_screen': (EndScreenPhase, 'End Screen'),
}


def build_phases(room, durations: Dict[str, float] = None,
                 clock: Callable[[], float] = time.monotonic) -> List[TimedState]:
    """Build the standard phase sequence for ``room``.

    ``durations`` maps phase keys to seconds; missing keys use the defaults.
    """
    durations = {**DEFAULT_DURATIONS, **(durations or {})}
    phases = []
    for key in PHASE_ORDER:
        behavior_cls, friendly_name = _BEHAVIORS[key]
        phases.append(TimedState(behavior_cls(room), durations[key], friendly_name, clock=clock))
    return phases
