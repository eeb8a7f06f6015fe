import threading
from typing import Set

from arena import socketio
from arena.states import StateError
from .rooms import close_room, get_room


_running_loops: Set[str] = set()
_loops_lock = threading.Lock()


def start_tick_loop(app, arena_code: str) -> None:
    """Drive an arena's phases from a background task.

    - No-ops in TESTING mode unless ENABLE_TICKER_IN_TESTS is set
    - Ensures a single loop per arena code
    - Ticks every TICK_INTERVAL_SEC until the room finishes or is closed
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_TICKER_IN_TESTS'):
        return

    code = arena_code.upper()
    with _loops_lock:
        if code in _running_loops:
            app.logger.info(f"[ticker-skip] arena={code} already running")
            return
        _running_loops.add(code)

    try:
        interval = float(app.config.get('TICK_INTERVAL_SEC', 1.0))
    except (TypeError, ValueError):
        interval = 1.0

    app.logger.info(f"[ticker-start] arena={code} interval={interval}s")
    socketio.start_background_task(_worker, app, code, interval)


def _worker(app, code: str, interval: float) -> None:
    reason = 'finished'
    try:
        while True:
            room = get_room(code)
            if room is None:
                reason = 'closed'
                break
            with app.app_context():
                room.tick()
            if room.finished:
                close_room(code)
                break
            socketio.sleep(interval)
    except StateError:
        # Ordering defect in the phase sequence; retrying cannot fix it
        reason = 'error'
        app.logger.exception(f"[ticker-error] arena={code} phase lifecycle out of order")
    finally:
        with _loops_lock:
            _running_loops.discard(code)
        app.logger.info(f"[ticker-stop] arena={code} reason={reason}")


def is_running(arena_code: str) -> bool:
    return arena_code.upper() in _running_loops
