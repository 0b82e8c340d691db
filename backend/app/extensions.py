"""Flask extensions initialization (PyMongo, Limiter, JWT).

JWT error callbacks return JSON bodies in the same ``{"error", "message"}``
shape the API uses everywhere else.
"""
from flask import jsonify
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_jwt_extended import JWTManager

from . import db

# Initialize Flask extensions
limiter = Limiter(key_func=get_remote_address)
jwt = JWTManager()


def init_extensions(app):
    """Initialize Flask extensions with app context.

    Args:
        app: Flask application instance
    """
    limiter.init_app(app)
    jwt.init_app(app)
    register_jwt_callbacks(jwt)

    # Initialize MongoDB connection using db module
    db.init_app(app)


def register_jwt_callbacks(manager: JWTManager) -> None:
    @manager.unauthorized_loader
    def missing_token_callback(reason):
        return jsonify({"error": "authorization_required", "message": reason}), 401

    @manager.invalid_token_loader
    def invalid_token_callback(reason):
        return jsonify({"error": "invalid_token", "message": reason}), 401

    @manager.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({"error": "token_expired", "message": "token has expired"}), 401
