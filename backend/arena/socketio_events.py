from flask_socketio import join_room, leave_room, emit
from arena import socketio


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    pass


def handle_join_arena(data):
    arena_code = (data or {}).get('arena_code')
    if not arena_code:
        emit('error', {'message': 'arena_code is required'})
        return
    room = f"arena:{arena_code.upper()}"
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_arena(data):
    arena_code = (data or {}).get('arena_code')
    if not arena_code:
        emit('error', {'message': 'arena_code is required'})
        return
    room = f"arena:{arena_code.upper()}"
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
        socketio.on_event('join_arena', handle_join_arena, namespace=namespace)
        socketio.on_event('leave_arena', handle_leave_arena, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
