"""Per-room multicast groups on top of Socket.IO rooms."""

from typing import Optional

from flask import current_app
from flask_socketio import join_room, leave_room
from sqlalchemy.exc import SQLAlchemyError

from lynxchat import socketio
from lynxchat.models import MESSAGE_CONTENT_MAX
from lynxchat.services import message_log
from lynxchat.sessions import ConnectionSession


class RoomBroadcast:
    def __init__(self):
        self.namespace = '/'
        self.history_limit = 50
        self.max_length = MESSAGE_CONTENT_MAX

    def init_app(self, app) -> None:
        self.namespace = app.config.get('SOCKETIO_NAMESPACE', '/')
        self.history_limit = int(app.config.get('ROOM_HISTORY_LIMIT', 50))
        # Never accept more than the message column can store
        self.max_length = min(int(app.config.get('MESSAGE_MAX_LENGTH', MESSAGE_CONTENT_MAX)), MESSAGE_CONTENT_MAX)
        app.extensions['lynxchat.rooms'] = self

    def join(self, session: ConnectionSession, room_id: str) -> None:
        # A connection is live in at most one room at a time
        previous = session.current_room
        if previous and previous != room_id:
            self.leave(session, previous)

        join_room(room_id, sid=session.sid, namespace=self.namespace)
        session.current_room = room_id

        try:
            history = message_log.recent(room_id, self.history_limit)
        except SQLAlchemyError as exc:
            current_app.logger.error(f"[history-failed] room={room_id} error={exc}")
            history = []
        history.reverse()
        socketio.emit('room-history', history, to=session.sid, namespace=self.namespace)
        socketio.emit(
            'user-joined',
            {'username': session.username, 'roomId': room_id},
            to=room_id,
            skip_sid=session.sid,
            namespace=self.namespace,
        )
        current_app.logger.info(f"[room-join] user={session.username} room={room_id} history={len(history)}")

    def leave(self, session: ConnectionSession, room_id: str) -> None:
        leave_room(room_id, sid=session.sid, namespace=self.namespace)
        # Only a subscribed connection may announce its departure
        if session.current_room != room_id:
            return
        session.current_room = None
        socketio.emit(
            'user-left',
            {'username': session.username, 'roomId': room_id},
            to=room_id,
            skip_sid=session.sid,
            namespace=self.namespace,
        )
        current_app.logger.info(f"[room-leave] user={session.username} room={room_id}")

    def announce_departure(self, session: ConnectionSession) -> None:
        """Tell the session's current room that its user went away."""
        if not session.current_room:
            return
        socketio.emit(
            'user-left',
            {'username': session.username, 'roomId': session.current_room},
            to=session.current_room,
            skip_sid=session.sid,
            namespace=self.namespace,
        )

    def send_message(self, session: ConnectionSession, room_id: str, content) -> Optional[dict]:
        if not isinstance(content, str) or not room_id:
            return None
        content = content.strip()
        if not content or len(content) > self.max_length:
            return None

        try:
            stored = message_log.append(session.user_id, room_id, content)
        except SQLAlchemyError as exc:
            # At-most-once: the sender gets no confirmation and nothing is broadcast
            current_app.logger.error(f"[message-dropped] user={session.username} room={room_id} error={exc}")
            return None

        socketio.emit('new-message', stored, to=room_id, namespace=self.namespace)
        return stored

    def typing(self, session: ConnectionSession, room_id: str) -> None:
        self._relay('user-typing', session, room_id)

    def stop_typing(self, session: ConnectionSession, room_id: str) -> None:
        self._relay('user-stop-typing', session, room_id)

    def _relay(self, event: str, session: ConnectionSession, room_id: str) -> None:
        if not room_id:
            return
        socketio.emit(event, {'username': session.username}, to=room_id, skip_sid=session.sid, namespace=self.namespace)
