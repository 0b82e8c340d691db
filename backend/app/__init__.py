"""Flask application factory and initialization."""
import logging

from flask import Flask, jsonify
from backend.app.config import Config
from backend.app.extensions import init_extensions
from backend.app.middleware.cors import init_cors
from backend.app import db


def create_app(config_class=Config):
    """Create and configure the Flask application.

    Args:
        config_class: Configuration class to use

    Returns:
        Flask: Configured Flask application instance
    """
    app = Flask(__name__)
    app.config.from_object(config_class)

    init_extensions(app)

    # Unique owner index backs the one-list-per-user invariant
    if app.config.get('ENSURE_INDEXES_ON_STARTUP'):
        with app.app_context():
            if not db.ensure_indexes():
                logging.getLogger(__name__).warning('Could not ensure DB indexes at startup')

    @app.route('/api/health')
    def health_check():
        """Health check endpoint with database connectivity."""
        response = {
            "status": "ok",
            "service": "campsite-favorites-api"
        }
        db_health = db.health_check()
        response["database"] = db_health
        if db_health.get("status") != "healthy":
            response["status"] = "degraded"
        return jsonify(response)

    register_blueprints(app)
    init_cors(app)

    return app


def register_blueprints(app):
    """Register Flask blueprints with the application.

    Args:
        app: Flask application instance
    """
    # Import API blueprints here to avoid circular imports
    from backend.app.blueprints.api.favorites.routes import favorites_bp

    app.register_blueprint(favorites_bp, url_prefix='/api/favorites')
