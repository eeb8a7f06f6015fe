import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from arena.states import TimedState
from arena.states.phases import build_phases
from .scheduler import PhaseScheduler, TransitionListener


log = logging.getLogger(__name__)

_rooms: Dict[str, 'ArenaRoom'] = {}
_rooms_lock = threading.Lock()


def format_message(template: str, player: str, cur: int, max_players: int) -> str:
    """Fill the {player}, {cur} and {max} placeholders of a join/leave message."""
    return (template.replace('{player}', player)
            .replace('{cur}', str(cur))
            .replace('{max}', str(max_players)))


class ArenaRoom:
    """Runtime handle for one arena.

    Owns the phase scheduler and exposes what phase behaviors need:
    player counts, the accepting-players flag and a broadcaster. Transport
    and storage are injected so the room itself stays framework-free.
    """

    def __init__(self, arena_code: str, min_players: int = 2, max_players: int = 8,
                 count_players: Optional[Callable[[], int]] = None,
                 emit: Optional[Callable[[str, Dict[str, Any]], None]] = None,
                 logger: Optional[logging.Logger] = None,
                 heartbeat_sec: float = 0,
                 clock: Callable[[], float] = time.monotonic):
        self.arena_code = arena_code
        self.min_players = int(min_players)
        self.max_players = int(max_players)
        self.accepting_players = True
        # Held across a join's capacity check and insert
        self.membership_lock = threading.Lock()
        self.logger = logger or log
        self._count_players = count_players or (lambda: 0)
        self._emit = emit
        self._listeners: List[TransitionListener] = []
        self._heartbeat_sec = heartbeat_sec
        self._clock = clock
        self._last_heartbeat = clock()
        self.scheduler = PhaseScheduler(arena_code, logger=self.logger, on_transition=self._on_transition)

    # ---- Behavior-facing API ----

    def player_count(self) -> int:
        return int(self._count_players())

    def set_accepting_players(self, accepting: bool) -> None:
        self.accepting_players = bool(accepting)

    def broadcast(self, event: str, payload: Dict[str, Any]) -> None:
        if self._emit is None:
            return
        self._emit(event, {'arena_code': self.arena_code, **payload})

    # ---- Owner-facing API ----

    def add_phases(self, states: List[TimedState]) -> None:
        for state in states:
            self.scheduler.register(state)

    def add_transition_listener(self, listener: TransitionListener) -> None:
        self._listeners.append(listener)

    @property
    def finished(self) -> bool:
        return self.scheduler.finished

    def is_full(self, count: Optional[int] = None) -> bool:
        count = self.player_count() if count is None else count
        return count >= self.max_players

    def can_join(self) -> bool:
        return self.accepting_players and not self.is_full()

    def tick(self) -> Optional[TimedState]:
        ended = self.scheduler.tick()
        self._heartbeat()
        return ended

    def _heartbeat(self) -> None:
        if not self._heartbeat_sec or self._heartbeat_sec <= 0:
            return
        now = self._clock()
        if now - self._last_heartbeat < self._heartbeat_sec:
            return
        self._last_heartbeat = now
        snap = self.scheduler.snapshot()
        if snap:
            self.logger.info(
                f"[tick-heartbeat] arena={self.arena_code} phase={snap['name']} remaining={snap['remaining_sec']:.0f}s frozen={snap['frozen']}"
            )

    def _on_transition(self, state: TimedState, event: str) -> None:
        for listener in list(self._listeners):
            listener(state, event)


def open_room(app, arena) -> ArenaRoom:
    """Create and register the runtime room for a persisted ``Arena``.

    Phase durations, heartbeat and clock come from the app config.
    """
    from arena import socketio
    from arena.models import Player

    code = arena.arena_code
    arena_id = arena.id
    cfg = app.config
    clock = cfg.get('PHASE_CLOCK') or time.monotonic

    def _count_players() -> int:
        return Player.query.filter_by(arena_id=arena_id, is_active=True).count()

    def _emit(event: str, payload: Dict[str, Any]) -> None:
        socketio.emit(event, payload, to=f"arena:{code}", namespace='/ws')

    room = ArenaRoom(
        code,
        min_players=arena.min_players,
        max_players=arena.max_players,
        count_players=_count_players,
        emit=_emit,
        logger=app.logger,
        heartbeat_sec=float(cfg.get('TICK_HEARTBEAT_SEC', 0) or 0),
        clock=clock,
    )
    room.add_phases(build_phases(room, phase_durations(cfg), clock=clock))
    room.add_transition_listener(_make_recorder(room, arena_id))

    with _rooms_lock:
        _rooms[code] = room
    app.logger.info(f"[room-open] arena={code} min={room.min_players} max={room.max_players}")
    return room


def get_room(arena_code: str) -> Optional[ArenaRoom]:
    with _rooms_lock:
        return _rooms.get((arena_code or '').upper())


def close_room(arena_code: str) -> Optional[ArenaRoom]:
    with _rooms_lock:
        return _rooms.pop((arena_code or '').upper(), None)


def phase_durations(cfg) -> Dict[str, float]:
    return {
        'lobby': float(cfg.get('LOBBY_DURATION_SEC', 60)),
        'countdown': float(cfg.get('COUNTDOWN_DURATION_SEC', 10)),
        'active': float(cfg.get('ACTIVE_DURATION_SEC', 300)),
        'end_screen': float(cfg.get('END_SCREEN_DURATION_SEC', 15)),
    }


def _make_recorder(room: ArenaRoom, arena_id: int) -> TransitionListener:
    """Listener that mirrors phase transitions into the Arena/PhaseRecord rows."""
    from arena import db, socketio
    from arena.models import Arena, PhaseRecord

    def _record(state: TimedState, event: str) -> None:
        arena = Arena.query.filter_by(id=arena_id).first()
        if not arena:
            return
        now = time.time()
        try:
            if event == 'start':
                arena.status = 'running'
                arena.current_phase = state.friendly_name
                arena.phase_deadline = now + state.duration.total_seconds()
                db.session.add(PhaseRecord(
                    arena_id=arena_id,
                    position=room.scheduler.current_index,
                    phase_name=state.friendly_name,
                    duration_sec=state.duration.total_seconds(),
                    started_at=now,
                ))
            else:
                record = (PhaseRecord.query
                          .filter_by(arena_id=arena_id, phase_name=state.friendly_name, ended_at=None)
                          .order_by(PhaseRecord.id.desc())
                          .first())
                if record:
                    record.ended_at = now
                    record.skipped = event == 'skip'
                    db.session.add(record)
                if room.finished:
                    arena.status = 'finished'
                    arena.current_phase = None
                    arena.phase_deadline = None
            arena.allow_new_players = room.accepting_players
            db.session.add(arena)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        socketio.emit('state_update', {'arena_code': room.arena_code}, to=f"arena:{room.arena_code}", namespace='/ws')

    return _record
