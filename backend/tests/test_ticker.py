import logging
import threading

from arena.services.arenas import rooms, ticker
from arena.services.arenas.rooms import ArenaRoom
from arena.states import TimedState
from conftest import FakeClock


class Quiet:
    def on_start(self, state):
        pass

    def on_tick(self, state):
        pass

    def on_end(self, state):
        pass


class Restart(Quiet):
    def on_tick(self, state):
        state.start()


def _register(room):
    with rooms._rooms_lock:
        rooms._rooms[room.arena_code] = room


def test_tick_loop_disabled_in_tests(flask_app):
    ticker.start_tick_loop(flask_app, 'abcd')
    assert ticker.is_running('ABCD') is False


def test_worker_runs_room_to_completion(flask_app, caplog):
    clock = FakeClock()
    room = ArenaRoom('TICK', clock=clock)
    room.add_phases([TimedState(Quiet(), 0, name, clock=clock) for name in ('One', 'Two', 'Three')])
    _register(room)

    with caplog.at_level(logging.INFO):
        ticker._worker(flask_app, 'TICK', 0)
    assert room.finished is True
    assert rooms.get_room('TICK') is None
    assert '[ticker-stop] arena=TICK reason=finished' in caplog.text


def test_worker_stops_when_room_closed(flask_app, caplog):
    with caplog.at_level(logging.INFO):
        ticker._worker(flask_app, 'GONE', 0)
    assert '[ticker-stop] arena=GONE reason=closed' in caplog.text


def test_worker_stops_on_lifecycle_error(flask_app, caplog):
    clock = FakeClock()
    room = ArenaRoom('BAD1', clock=clock)
    room.add_phases([TimedState(Restart(), 30, 'Broken', clock=clock)])
    _register(room)

    with caplog.at_level(logging.INFO):
        ticker._worker(flask_app, 'BAD1', 0)
    assert '[ticker-error] arena=BAD1' in caplog.text
    assert '[ticker-stop] arena=BAD1 reason=error' in caplog.text
    assert ticker.is_running('BAD1') is False


def test_concurrent_starts_spawn_one_loop(flask_app, monkeypatch):
    spawned = []
    monkeypatch.setattr(ticker.socketio, 'start_background_task', lambda *args: spawned.append(args))
    flask_app.config['ENABLE_TICKER_IN_TESTS'] = True

    barrier = threading.Barrier(8)

    def start():
        barrier.wait()
        ticker.start_tick_loop(flask_app, 'race')

    threads = [threading.Thread(target=start) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    try:
        assert len(spawned) == 1
        assert ticker.is_running('RACE') is True
    finally:
        ticker._running_loops.discard('RACE')


def test_start_waits_for_loop_registry_lock(flask_app, monkeypatch):
    spawned = []
    monkeypatch.setattr(ticker.socketio, 'start_background_task', lambda *args: spawned.append(args))
    flask_app.config['ENABLE_TICKER_IN_TESTS'] = True

    with ticker._loops_lock:
        t = threading.Thread(target=ticker.start_tick_loop, args=(flask_app, 'WAIT'))
        t.start()
        t.join(timeout=0.2)
        assert t.is_alive()
        assert spawned == []
    t.join(timeout=5)

    try:
        assert len(spawned) == 1
    finally:
        ticker._running_loops.discard('WAIT')
