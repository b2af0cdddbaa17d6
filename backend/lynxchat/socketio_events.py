from typing import Optional

from flask import current_app, request
from flask_socketio import ConnectionRefusedError

from lynxchat import matches, presence, rooms, socketio
from lynxchat.services import identity
from lynxchat.sessions import ConnectionSession, SessionStore

_sessions = SessionStore()


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _session() -> Optional[ConnectionSession]:
    return _sessions.get(_get_sid())


def _room_id(data) -> Optional[str]:
    """Room events carry either a bare id or ``{'roomId': ...}``."""
    if isinstance(data, dict):
        data = data.get('roomId')
    if isinstance(data, str) and data.strip():
        return data.strip()
    return None


def _payload(data) -> dict:
    return data if isinstance(data, dict) else {}


def handle_connect(auth=None):
    verified = identity.verify_connection()
    if verified is None:
        current_app.logger.info(f"[connect-refused] sid={_get_sid()}")
        raise ConnectionRefusedError('unauthorized')
    sid = _get_sid()
    _sessions.open(sid, verified.user_id, verified.username)
    presence.register(sid, verified.user_id, verified.username)
    current_app.logger.info(f"[connect] user={verified.username} sid={sid}")


def handle_disconnect(reason=None):
    sid = _get_sid()
    session = _sessions.close(sid)
    presence.unregister(sid)
    if session is None:
        return
    rooms.announce_departure(session)
    matches.disconnect_cleanup(sid)
    current_app.logger.info(f"[disconnect] user={session.username} sid={sid}")


def handle_join_room(data=None):
    session, room_id = _session(), _room_id(data)
    if session and room_id:
        rooms.join(session, room_id)


def handle_leave_room(data=None):
    session, room_id = _session(), _room_id(data)
    if session and room_id:
        rooms.leave(session, room_id)


def handle_chat_message(data=None):
    session, data = _session(), _payload(data)
    if session:
        rooms.send_message(session, _room_id(data), data.get('message'))


def handle_typing(data=None):
    session, room_id = _session(), _room_id(data)
    if session and room_id:
        rooms.typing(session, room_id)


def handle_stop_typing(data=None):
    session, room_id = _session(), _room_id(data)
    if session and room_id:
        rooms.stop_typing(session, room_id)


def handle_game_invite(data=None):
    data = _payload(data)
    matches.invite(_get_sid(), data.get('targetUsername'), data.get('roomId'), data.get('gameType'))


def handle_game_accept(data=None):
    data = _payload(data)
    matches.accept(_get_sid(), data.get('fromSocketId'), data.get('gameType'))


def handle_game_decline(data=None):
    matches.decline(_get_sid(), _payload(data).get('fromSocketId'))


def handle_game_move(data=None):
    data = _payload(data)
    matches.move(_get_sid(), data.get('gameId'), data.get('position'))


def handle_game_quit(data=None):
    matches.quit(_get_sid(), _payload(data).get('gameId'))


def handle_error(exc):
    # Log and drop the failing event; the connection stays open
    current_app.logger.exception(f"[event-error] sid={_get_sid()} event={request.event} error={exc}")


_EVENTS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'join-room': handle_join_room,
    'leave-room': handle_leave_room,
    'chat-message': handle_chat_message,
    'typing': handle_typing,
    'stop-typing': handle_stop_typing,
    'game-invite': handle_game_invite,
    'game-accept': handle_game_accept,
    'game-decline': handle_game_decline,
    'game-move': handle_game_move,
    'game-quit': handle_game_quit,
}


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on ``namespace``.

    Also resets the session table, since a new app starts with nobody
    connected.
    """
    _sessions.clear()
    for event, handler in _EVENTS.items():
        socketio.on_event(event, handler, namespace=namespace)
    socketio.on_error(namespace)(handle_error)
