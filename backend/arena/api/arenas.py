from flask import Blueprint, jsonify, request, current_app
from arena import db, socketio
from arena.models import Arena, Player, PhaseRecord
from arena.services.arenas.rooms import (
    format_message,
    get_room,
    open_room,
    phase_durations,
)
from arena.services.arenas.ticker import start_tick_loop


arenas = Blueprint('arenas', __name__)


def _emit_state_update(arena: Arena) -> None:
    socketio.emit('state_update', {'arena_code': arena.arena_code}, to=f"arena:{arena.arena_code}", namespace='/ws')


def _parse_int(value, default):
    try:
        return int(value) if value is not None else default
    except (TypeError, ValueError):
        return default


def _state_payload(arena: Arena) -> dict:
    payload = arena.to_dict()
    room = get_room(arena.arena_code)
    payload['phase'] = room.scheduler.snapshot() if room else None
    payload['durations'] = phase_durations(current_app.config)
    return payload


@arenas.route('/create', methods=['POST'])
def create_arena():
    data = request.get_json(silent=True) or {}
    cfg = current_app.config
    min_players = _parse_int(data.get('min_players'), int(cfg.get('MIN_PLAYERS', 2)))
    max_players = _parse_int(data.get('max_players'), int(cfg.get('MAX_PLAYERS', 8)))
    if min_players < 1 or max_players < min_players:
        return jsonify({'error': 'Player limits must satisfy 1 <= min_players <= max_players'}), 400

    new_arena = Arena(name=data.get('name') or 'Arena', min_players=min_players, max_players=max_players)
    db.session.add(new_arena)
    db.session.commit()

    app = current_app._get_current_object()
    open_room(app, new_arena)
    start_tick_loop(app, new_arena.arena_code)

    return jsonify({
        'message': 'New arena created!',
        'arena_code': new_arena.arena_code
    }), 201


@arenas.route('/join', methods=['POST'])
def join_arena():
    data = request.get_json(silent=True) or {}
    arena_code = data.get('arena_code')
    name = data.get('name')
    if not all([arena_code, name]):
        return jsonify({'error': 'Arena code and player name are required'}), 400

    arena = Arena.query.filter_by(arena_code=arena_code.upper()).first()
    if not arena:
        return jsonify({'error': 'Arena not found'}), 404

    room = get_room(arena.arena_code)
    if room is None or arena.status == 'finished':
        return jsonify({'error': 'This arena is closed'}), 403

    with room.membership_lock:
        if not room.accepting_players:
            return jsonify({'error': "Sorry, this arena isn't accepting new players right now!"}), 403
        if room.is_full():
            return jsonify({'error': 'This arena is full'}), 403

        new_player = Player(name=name, arena_id=arena.id)
        db.session.add(new_player)
        db.session.commit()
        cur = room.player_count()

    arena.allow_new_players = room.accepting_players and not room.is_full(cur)
    db.session.add(arena)
    db.session.commit()

    room.broadcast('phase_message', {
        'message': format_message(current_app.config.get('JOIN_MESSAGE', '{player} joined'), name, cur, room.max_players)
    })
    _emit_state_update(arena)
    current_app.logger.info(f"[player-join] arena={arena.arena_code} player={new_player.id} count={cur}/{room.max_players}")
    return jsonify(new_player.to_dict()), 201


@arenas.route('/<string:arena_code>/leave', methods=['POST'])
def leave_arena(arena_code):
    data = request.get_json(silent=True) or {}
    arena = Arena.query.filter_by(arena_code=arena_code.upper()).first_or_404()
    player = Player.query.filter_by(id=data.get('player_id'), arena_id=arena.id).first()
    if not player:
        return jsonify({'error': 'You are not in this arena'}), 404

    name = player.name
    db.session.delete(player)
    db.session.commit()

    room = get_room(arena.arena_code)
    if room is not None:
        cur = room.player_count()
        arena.allow_new_players = room.accepting_players and not room.is_full(cur)
        db.session.add(arena)
        db.session.commit()
        room.broadcast('phase_message', {
            'message': format_message(current_app.config.get('LEAVE_MESSAGE', '{player} left'), name, cur, room.max_players)
        })
    _emit_state_update(arena)
    return jsonify({'message': 'You have left the arena.'}), 200


@arenas.route('/<string:arena_code>/eliminate', methods=['POST'])
def eliminate_player(arena_code):
    data = request.get_json(silent=True) or {}
    arena = Arena.query.filter_by(arena_code=arena_code.upper()).first_or_404()
    player = Player.query.filter_by(id=data.get('player_id'), arena_id=arena.id).first()
    if not player:
        return jsonify({'error': 'Player not found in this arena'}), 404
    if not player.is_active:
        return jsonify({'error': 'Player was already eliminated'}), 409

    # Eliminated players stay listed but no longer count toward the minimum
    player.is_active = False
    db.session.add(player)
    db.session.commit()

    room = get_room(arena.arena_code)
    if room is not None:
        room.broadcast('phase_message', {'message': f'{player.name} was eliminated!'})
    _emit_state_update(arena)
    current_app.logger.info(f"[player-eliminate] arena={arena.arena_code} player={player.id}")
    return jsonify(player.to_dict()), 200


@arenas.route('/<string:arena_code>/state', methods=['GET'])
def get_arena_state(arena_code):
    arena = Arena.query.filter_by(arena_code=arena_code.upper()).first_or_404()
    return jsonify(_state_payload(arena))


@arenas.route('/<string:arena_code>/freeze', methods=['POST'])
def freeze_phase(arena_code):
    data = request.get_json(silent=True) or {}
    arena = Arena.query.filter_by(arena_code=arena_code.upper()).first_or_404()
    room = get_room(arena.arena_code)
    if room is None or room.scheduler.current is None:
        return jsonify({'error': 'No phase is running in this arena'}), 409

    room.scheduler.freeze(bool(data.get('frozen', True)))
    _emit_state_update(arena)
    return jsonify(room.scheduler.snapshot())


@arenas.route('/<string:arena_code>/skip', methods=['POST'])
def skip_phase(arena_code):
    arena = Arena.query.filter_by(arena_code=arena_code.upper()).first_or_404()
    room = get_room(arena.arena_code)
    if room is None or room.scheduler.current is None:
        return jsonify({'error': 'No phase is running in this arena'}), 409

    room.scheduler.skip()
    current_app.logger.info(f"[phase-skip] arena={arena.arena_code} phase={room.scheduler.current.friendly_name}")
    return jsonify({'message': 'Skip requested', 'phase': room.scheduler.snapshot()}), 202


@arenas.route('/<string:arena_code>/history', methods=['GET'])
def get_phase_history(arena_code):
    arena = Arena.query.filter_by(arena_code=arena_code.upper()).first_or_404()
    records = PhaseRecord.query.filter_by(arena_id=arena.id).order_by(PhaseRecord.id).all()
    return jsonify([r.to_dict() for r in records])


@arenas.route('/active', methods=['GET'])
def get_active_arenas():
    active = Arena.query.filter(Arena.status != 'finished').all()
    return jsonify([{'arena_code': a.arena_code, 'name': a.name, 'status': a.status} for a in active])
