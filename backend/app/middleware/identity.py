"""Identity verification for API endpoints.

Tokens are minted by the accounts service; this module only verifies them
and exposes the caller's identity to route handlers.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Callable, Optional

from flask import jsonify
from flask_jwt_extended import get_jwt, verify_jwt_in_request

logger = logging.getLogger(__name__)


def current_owner() -> Optional[str]:
    """Return the subject of the verified token for the current request."""
    claims = get_jwt() or {}
    return claims.get('sub') or claims.get('identity') or claims.get('id')


def owner_required(func: Callable[..., Any]) -> Callable[..., Any]:
    """Verify the request's JWT and pass the caller's id as ``owner``."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        verify_jwt_in_request()
        owner = current_owner()
        if not owner:
            logger.warning("Token without subject rejected", extra={"endpoint": func.__name__})
            return jsonify({"error": "invalid_token", "message": "token has no subject"}), 401
        return func(*args, owner=owner, **kwargs)

    return wrapper
