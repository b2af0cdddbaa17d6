from typing import List

from lynxchat import db
from lynxchat.models import Message


def append(sender_id: int, room_id: str, content: str, message_type: str = 'text') -> dict:
    """Persist a chat message and return it enriched with its sender.

    Raises ``SQLAlchemyError`` after rolling back if the write fails.
    """
    message = Message(content=content, sender_id=sender_id, room_id=room_id, type=message_type)
    try:
        db.session.add(message)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return message.to_dict()


def recent(room_id: str, limit: int = 50) -> List[dict]:
    """Most recent ``limit`` messages for a room, newest first."""
    rows = (
        Message.query.filter_by(room_id=room_id)
        .order_by(Message.created_at.desc(), Message.id.desc())
        .limit(limit)
        .all()
    )
    return [m.to_dict() for m in rows]
