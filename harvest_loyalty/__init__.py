"""
Harvest Loyalty Engine
Flask application factory
"""
import os
import logging
from flask import Flask
from flask_cors import CORS

from .extensions import db, migrate
from .config import get_config, validate_config
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def create_app(config_name: str = None, config_overrides: dict = None) -> Flask:
    """
    Application factory for creating Flask app instances.

    Args:
        config_name: Configuration environment (development, production, testing)
        config_overrides: Extra settings applied after the config class (tests)

    Returns:
        Configured Flask application
    """
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    setup_logging()
    validate_config(config_name)

    app = Flask(__name__)
    app.config.from_object(get_config(config_name))
    if config_overrides:
        app.config.update(config_overrides)

    db.init_app(app)
    migrate.init_app(app, db)

    CORS(
        app,
        origins=app.config['CORS_ORIGINS'],
        supports_credentials=True,
        allow_headers=['Content-Type', 'Authorization', 'X-User-Id', 'X-User-Created-At'],
    )

    # Rewards catalog is loaded once; a bad catalog fails startup
    from .services.rewards_catalog import init_catalog
    init_catalog(app)

    register_blueprints(app)

    from .commands import init_app as init_commands
    init_commands(app)

    register_error_handlers(app)

    @app.route('/health')
    def health_check():
        return {'status': 'healthy', 'service': 'harvest-loyalty'}

    logger.info('Harvest loyalty engine started (config=%s)', config_name)
    return app


def register_blueprints(app: Flask) -> None:
    """Register all API blueprints."""
    from .api.loyalty import loyalty_bp
    from .api.checkout import checkout_bp
    from .webhooks.order_events import order_events_bp

    app.register_blueprint(loyalty_bp)
    app.register_blueprint(checkout_bp)
    app.register_blueprint(order_events_bp)


def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from .utils.errors import loyalty_error_response, not_found as not_found_response
    from .utils.exceptions import LoyaltyError

    @app.errorhandler(LoyaltyError)
    def loyalty_error(error):
        return loyalty_error_response(error)

    @app.errorhandler(400)
    def bad_request(error):
        return {'error': {'message': str(error), 'code': 'INVALID_REQUEST'}}, 400

    @app.errorhandler(404)
    def not_found(error):
        return not_found_response('Resource not found')

    @app.errorhandler(500)
    def internal_error(error):
        return {'error': {'message': 'Internal server error', 'code': 'INTERNAL_ERROR'}}, 500
