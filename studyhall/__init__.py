"""
Application Factory
Creates and configures the Flask application
"""
import logging

from flask import Flask

from studyhall.config import get_config
from studyhall.extensions import db, socketio
from studyhall.errors import register_error_handlers
from studyhall.pubsub import MessageHub
from studyhall.utils import configure_logging

logger = logging.getLogger(__name__)


def create_app(config_name=None):
    """
    Application factory pattern
    Creates and configures Flask app
    """
    app = Flask(__name__, template_folder='../templates')

    # Load configuration
    if config_name:
        from studyhall.config import config
        app.config.from_object(config[config_name])
    else:
        app.config.from_object(get_config())

    configure_logging(app.config['LOG_LEVEL'])

    # Initialize extensions
    db.init_app(app)
    socketio.init_app(
        app,
        cors_allowed_origins=app.config['SOCKETIO_CORS_ALLOWED_ORIGINS'],
        async_mode=app.config['SOCKETIO_ASYNC_MODE']
    )
    register_error_handlers(app)

    # Per-app shared state
    from studyhall.clients.access_gate import AccessGate
    from studyhall.quiz import ExamCatalog
    from studyhall.services import FingerprintLogService, GitHubClient, RateLimiter

    github = GitHubClient.from_config(app.config)
    app.extensions['message_hub'] = MessageHub()
    app.extensions['github_client'] = github
    app.extensions['fingerprint_service'] = FingerprintLogService(
        github,
        app.config['GITHUB_REPO'],
        RateLimiter(
            max_requests=app.config['FINGERPRINT_RATE_LIMIT'],
            window_seconds=app.config['FINGERPRINT_RATE_WINDOW'],
        ),
    )
    app.extensions['access_gate'] = AccessGate(app.config['FINGERPRINT_ALLOWLIST'])
    app.extensions['exam_catalog'] = ExamCatalog.from_directory(app.config['EXAM_DATA_DIR'])

    if not app.config.get('GITHUB_TOKEN'):
        logger.warning('GITHUB_TOKEN not set; fingerprint logging will answer 500')

    # Register blueprints
    from studyhall.routes import (
        admin_bp, chat_bp, exams_bp, fingerprint_bp, leaderboard_bp, oauth_bp, profile_bp,
    )

    app.register_blueprint(exams_bp, url_prefix='/api/exams')
    app.register_blueprint(leaderboard_bp, url_prefix='/api')
    app.register_blueprint(chat_bp, url_prefix='/api/chat')
    app.register_blueprint(profile_bp, url_prefix='/api/profile')
    app.register_blueprint(fingerprint_bp, url_prefix='/api')
    app.register_blueprint(oauth_bp, url_prefix='/auth')
    app.register_blueprint(admin_bp, url_prefix='/admin')

    # Register Socket.IO events
    from studyhall.sockets import register_socket_events
    with app.app_context():
        register_socket_events()

    # Create database tables
    with app.app_context():
        db.create_all()
        logger.info('Database tables created/verified')

    return app
