from flask_socketio import join_room, leave_room, emit
from livequiz import socketio


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def _room_for(data):
    session_id = (data or {}).get('session_id')
    if session_id is None or str(session_id).strip() == '':
        emit('error', {'message': 'session_id is required'})
        return None
    return f"session:{str(session_id).strip()}"


def handle_join_session(data):
    room = _room_for(data)
    if room is None:
        return
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_session(data):
    room = _room_for(data)
    if room is None:
        return
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = {
        'connect': handle_connect,
        'join_session': handle_join_session,
        'leave_session': handle_leave_session,
        'ping': handle_ping,
    }
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        for event, handler in handlers.items():
            socketio.on_event(event, handler, namespace=namespace)
