from datetime import datetime, timezone
from urllib.parse import quote

from flask_login import UserMixin

from lynxchat import db, bcrypt


MESSAGE_CONTENT_MAX = 2000


def _utcnow():
    return datetime.now(timezone.utc)


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(20), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    avatar = db.Column(db.String(256), nullable=False, default='')
    status = db.Column(db.String(16), nullable=False, default='offline')  # online, offline, away
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def get_avatar(self):
        if self.avatar:
            return self.avatar
        return f"https://ui-avatars.com/api/?name={quote(self.username)}&background=6366f1&color=fff"

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'avatar': self.get_avatar(),
            'status': self.status,
        }


class Message(db.Model):
    __tablename__ = 'message'
    __table_args__ = (
        db.Index('ix_message_room_created', 'room_id', 'created_at'),
    )
    id = db.Column(db.Integer, primary_key=True)
    content = db.Column(db.String(MESSAGE_CONTENT_MAX), nullable=False)
    sender_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    room_id = db.Column(db.String(64), nullable=False)
    type = db.Column(db.String(16), nullable=False, default='text')  # text, image, file, system
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    sender = db.relationship('User')

    def to_dict(self):
        sender = self.sender
        return {
            'id': self.id,
            'content': self.content,
            'sender': {
                'id': sender.id,
                'username': sender.username,
                'avatar': sender.get_avatar(),
            } if sender else None,
            'room': self.room_id,
            'type': self.type,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
