from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

# Realtime singletons live at module level so socket handlers and HTTP
# routes share the same in-memory state.
from lynxchat.presence_registry import PresenceRegistry  # noqa: E402
from lynxchat.room_broadcast import RoomBroadcast  # noqa: E402
from lynxchat.services.matches import MatchEngine  # noqa: E402

presence = PresenceRegistry()
rooms = RoomBroadcast()
matches = MatchEngine(presence)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS', [])

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Each app gets fresh realtime state; presence and matches never outlive the process
    presence.init_app(flask_app)
    rooms.init_app(flask_app)
    matches.init_app(flask_app)

    from lynxchat.auth import auth
    flask_app.register_blueprint(auth, url_prefix='/auth')

    from lynxchat.api.rooms import rooms_api
    flask_app.register_blueprint(rooms_api, url_prefix='/api')

    @flask_app.route('/')
    def index():
        return jsonify({'message': 'Welcome to Lynx Chat!'})

    from lynxchat.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/'))

    # Flask-Login user loader
    from lynxchat.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Authentication required'}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from lynxchat.models import Message
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed users
            users = ['testuser1', 'testuser2', 'testuser3']
            for u in users:
                user = User(username=u, email=f'{u}@example.com')
                user.set_password('password')
                db.session.add(user)
            db.session.flush()

            first = User.query.filter_by(username=users[0]).first()
            db.session.add(Message(
                content='Welcome to Lynx Chat! This is the general discussion room.',
                sender_id=first.id,
                room_id='general',
                type='system',
            ))
            db.session.commit()
            click.echo('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
