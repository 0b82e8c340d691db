"""Database connection and utility functions for MongoDB.

This module provides a centralized MongoDB client with connection management,
error handling, and index creation for the campsite favorites service.
"""

from __future__ import annotations

import logging
from typing import Optional
from pymongo import ASCENDING, MongoClient
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError
from flask import current_app, g

logger = logging.getLogger(__name__)


class StoreUnavailable(Exception):
    """Raised when the document store cannot be reached."""
    pass


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client instance.

    Returns:
        MongoClient: Configured MongoDB client instance

    Raises:
        StoreUnavailable: If connection cannot be established
    """
    if 'mongo_client' not in g:
        try:
            mongo_uri = current_app.config['MONGO_URI']
            g.mongo_client = MongoClient(
                mongo_uri,
                serverSelectionTimeoutMS=5000,  # 5 second timeout
                connectTimeoutMS=10000,         # 10 second connection timeout
                socketTimeoutMS=20000,          # 20 second socket timeout
                maxPoolSize=50,
                retryWrites=True
            )
            g.mongo_client.admin.command('ping')
            logger.info("MongoDB connection established successfully")
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            g.pop('mongo_client', None)
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise StoreUnavailable(f"Database connection failed: {e}")

    return g.mongo_client


def get_db():
    """Get database instance for the current application.

    Returns:
        Database: MongoDB database instance

    Raises:
        StoreUnavailable: If database connection fails
    """
    client = get_mongo_client()
    db_name = current_app.config['MONGO_DB']
    return client[db_name]


def close_db(error: Optional[Exception] = None) -> None:
    """Close database connection if it exists.

    Args:
        error: Optional exception that caused the close (for logging)
    """
    mongo_client = g.pop('mongo_client', None)

    if mongo_client is not None:
        try:
            mongo_client.close()
            if error:
                logger.warning(f"Database connection closed due to error: {error}")
            else:
                logger.debug("Database connection closed successfully")
        except Exception as e:
            logger.error(f"Error closing database connection: {e}")


def init_app(app) -> None:
    """Initialize database connection with Flask app.

    Args:
        app: Flask application instance
    """
    app.teardown_appcontext(close_db)

    if app.testing:
        return

    # Probe connectivity once at startup; a store outage must not block boot
    with app.app_context():
        try:
            collections = get_db().list_collection_names()
            logger.info(f"Database initialization successful. Found {len(collections)} collections.")
        except StoreUnavailable as e:
            logger.error(f"Database initialization failed: {e}")
        except Exception as e:
            logger.error(f"Unexpected error during database initialization: {e}")


def health_check() -> dict:
    """Perform database health check.

    Returns:
        dict: Health check results with status and details
    """
    try:
        client = get_mongo_client()
        client.admin.command('ping')
        server_info = client.server_info()
        return {
            'status': 'healthy',
            'database': current_app.config['MONGO_DB'],
            'server_version': server_info.get('version', 'unknown'),
            'message': 'Database connection is operational'
        }
    except StoreUnavailable as e:
        return {
            'status': 'unhealthy',
            'error': str(e),
            'message': 'Database connection failed'
        }
    except Exception as e:
        logger.error(f"Health check failed with unexpected error: {e}")
        return {
            'status': 'unhealthy',
            'error': f"Unexpected error: {str(e)}",
            'message': 'Database health check failed'
        }


def create_indexes(database) -> None:
    """Create the indexes the favorites service relies on.

    The unique ``owner`` index is what makes concurrent upserts converge on a
    single favorites document per user.
    """
    favorites = database.favorites
    favorites.create_index([('owner', ASCENDING)], name='uq_owner', unique=True)
    favorites.create_index([('campsites', ASCENDING)], name='idx_campsites')


def ensure_indexes() -> bool:
    """Ensure all required indexes are created.

    Returns:
        bool: True if all indexes were created/verified successfully
    """
    try:
        create_indexes(get_db())
        logger.info("Database indexes created/verified successfully")
        return True
    except Exception as e:
        logger.error(f"Failed to create indexes: {e}")
        return False
