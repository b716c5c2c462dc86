"""
Gym Subscriptions API Application Factory.
"""
import importlib
import logging
import os

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_restx import Api
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import text

# Initialize extensions
db = SQLAlchemy()
jwt = JWTManager()
migrate = Migrate()

logger = logging.getLogger(__name__)

CONFIG_MAPPING = {
    'development': ('gymsubs.config.development_config', 'DevelopmentConfig'),
    'testing': ('gymsubs.config.testing_config', 'TestingConfig'),
    'production': ('gymsubs.config.production_config', 'ProductionConfig'),
}


def _configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger('gymsubs').setLevel(level)
    app.logger.setLevel(level)


def create_app(config_name=None):
    """
    Application Factory Pattern implementation.

    Args:
        config_name: Configuration name to use (development, testing, production).

    Returns:
        Flask application instance.
    """
    load_dotenv()

    app = Flask(__name__)

    app_config = config_name or os.getenv("FLASK_ENV", "development")
    if app_config not in CONFIG_MAPPING:
        logger.warning("Unknown configuration %r, falling back to development", app_config)
        app_config = 'development'

    module_path, class_name = CONFIG_MAPPING[app_config]
    config_class = getattr(importlib.import_module(module_path), class_name)
    app.config.from_object(config_class)

    _configure_logging(app)
    logger.info("Loaded configuration class: %s", class_name)

    # Initialize extensions with app
    db.init_app(app)
    jwt.init_app(app)
    migrate.init_app(app, db)

    # Import models to ensure they're registered with SQLAlchemy
    from gymsubs.models import Membership, RevokedToken, Subscription, SubscriptionItem, User

    @jwt.user_lookup_loader
    def load_token_user(jwt_header, jwt_payload):
        """Load the token's user; disabled or deleted accounts load as None."""
        user = db.session.get(User, int(jwt_payload["sub"]))
        if user is None or not user.is_active:
            return None
        return user

    @jwt.user_lookup_error_loader
    def token_user_error_callback(jwt_header, jwt_payload):
        """Return a response when the token's account is gone or disabled."""
        return jsonify({
            'status': 401,
            'message': 'Account is disabled'
        }), 401

    if app.config.get('JWT_BLACKLIST_ENABLED'):
        @jwt.token_in_blocklist_loader
        def check_if_token_revoked(jwt_header, jwt_payload):
            """Check if a token is revoked."""
            return RevokedToken.is_revoked(jwt_payload["jti"])

        @jwt.revoked_token_loader
        def revoked_token_callback(jwt_header, jwt_payload):
            """Return a response when a revoked token is used."""
            return jsonify({
                'status': 401,
                'message': 'Token has been revoked'
            }), 401

    api = Api(
        app,
        version=app.config.get("API_VERSION", "1.0"),
        title=app.config.get("API_TITLE", "Gym Subscriptions API"),
        description=app.config.get("API_DESCRIPTION", "Memberships and subscriptions for a gym"),
        doc="/api/docs",
        authorizations={
            'Bearer Auth': {
                'type': 'apiKey',
                'in': 'header',
                'name': 'Authorization',
                'description': 'Enter: **Bearer &lt;JWT&gt;**'
            },
        },
        security='Bearer Auth'
    )

    from gymsubs.api.auth import auth_ns
    from gymsubs.api.errors import register_error_handlers
    from gymsubs.api.memberships import membership_ns
    from gymsubs.api.subscriptions import subscription_ns

    prefix = app.config.get('API_PREFIX', '/api')
    api.add_namespace(auth_ns, path=f'{prefix}/auth')
    api.add_namespace(membership_ns, path=f'{prefix}/memberships')
    api.add_namespace(subscription_ns, path=f'{prefix}/subscriptions')
    register_error_handlers(api)

    @app.route('/health')
    def health_check():
        """Health check endpoint to verify the application is running."""
        return jsonify({
            'status': 'healthy',
            'environment': app_config,
            'database_connected': _check_db_connection()
        })

    def _check_db_connection():
        """Check if the database connection is working."""
        try:
            db.session.execute(text('SELECT 1'))
            return True
        except Exception as e:
            logger.warning("Database connection error: %s", e)
            return False

    @app.shell_context_processor
    def shell_context():
        return {
            "app": app,
            "db": db,
            "User": User,
            "Membership": Membership,
            "Subscription": Subscription,
            "SubscriptionItem": SubscriptionItem,
        }

    return app
