from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS', [])
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Live sessions are process-local; timers run on Socket.IO background tasks
    from app.services.games.registry import EXTENSION_KEY, SessionRegistry
    from app.services.games.scheduler import BackgroundScheduler
    from app.socketio_events import emit_state_update, register_socketio_handlers
    flask_app.extensions[EXTENSION_KEY] = SessionRegistry(
        scheduler=BackgroundScheduler(flask_app, socketio),
        on_change=emit_state_update,
    )

    # Import and register blueprints here
    from app.main import main
    flask_app.register_blueprint(main)

    from app.api.games import games
    # Mount game routes under /api to match frontend API client
    flask_app.register_blueprint(games, url_prefix='/api/games')

    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    return flask_app
