import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'lynxchat-secret-key'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///lynxchat.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Comma separated list of browser origins allowed for HTTP and Socket.IO
    CORS_ORIGINS = [o.strip() for o in os.environ.get(
        'CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000'
    ).split(',') if o.strip()]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    # Number of messages replayed to a connection when it joins a room
    ROOM_HISTORY_LIMIT = int(os.environ.get('ROOM_HISTORY_LIMIT', '50'))
    MESSAGE_MAX_LENGTH = int(os.environ.get('MESSAGE_MAX_LENGTH', '2000'))
    # Finished matches stay reachable this long so both clients can render the result
    MATCH_CLEANUP_DELAY_SEC = float(os.environ.get('MATCH_CLEANUP_DELAY_SEC', '60'))
