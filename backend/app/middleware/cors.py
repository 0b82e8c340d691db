"""CORS policy applied to every response.

Reads are open to any origin. Mutating requests only get an allow-origin
header when the caller's origin is whitelisted in ``CORS_ORIGINS``.
"""

from __future__ import annotations

import logging

from flask import current_app, request

logger = logging.getLogger(__name__)

OPEN_METHODS = ('GET', 'HEAD')
ALLOWED_METHODS = 'GET, POST, PUT, DELETE, OPTIONS'
ALLOWED_HEADERS = 'Content-Type, Authorization'


def apply_cors_headers(response):
    if request.method in OPEN_METHODS:
        response.headers['Access-Control-Allow-Origin'] = '*'
    else:
        origin = request.headers.get('Origin')
        if origin and origin in current_app.config.get('CORS_ORIGINS', []):
            response.headers['Access-Control-Allow-Origin'] = origin
            response.vary.add('Origin')
        elif origin:
            logger.debug('Origin %s not whitelisted for %s %s', origin, request.method, request.path)
    response.headers['Access-Control-Allow-Methods'] = ALLOWED_METHODS
    response.headers['Access-Control-Allow-Headers'] = ALLOWED_HEADERS
    return response


def init_cors(app) -> None:
    app.after_request(apply_cors_headers)
