"""API endpoints for a user's favorite campsites.

Routes:
- GET    /api/favorites                 list favorites with campsites populated
- POST   /api/favorites                 add a JSON array of campsite ids
- DELETE /api/favorites                 delete the whole favorites list
- POST   /api/favorites/<campsite_id>   add one campsite
- DELETE /api/favorites/<campsite_id>   remove one campsite

PUT on either path, and GET on a single campsite, answer 403.
"""
from __future__ import annotations

import logging
from collections import namedtuple
from functools import wraps
from typing import Any, Callable

from flask import Blueprint, jsonify, make_response, request

from backend.app.db import StoreUnavailable
from backend.app.middleware.identity import owner_required
from backend.app.services.user import favorites_service as svc

logger = logging.getLogger(__name__)
favorites_bp = Blueprint('favorites', __name__)


def _handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except svc.FavoritesServiceError as e:
            logger.debug('%s rejected: %s', func.__name__, e.message)
            return jsonify({'error': e.code, 'message': e.message}), e.status
        except StoreUnavailable:
            logger.exception('Document store unavailable in %s', func.__name__)
            return jsonify({'error': 'store_unavailable', 'message': 'database is unavailable'}), 503
        except Exception:
            logger.exception('Unexpected error in %s', func.__name__)
            return jsonify({'error': 'internal_server_error'}), 500

    return wrapper


def _not_supported(message: str):
    response = make_response(message, 403)
    response.mimetype = 'text/plain'
    return response


@owner_required
@_handle_errors
def list_favorites(owner: str):
    return jsonify(svc.serialize(svc.get_list(owner))), 200


@owner_required
@_handle_errors
def add_favorites(owner: str):
    payload = request.get_json(silent=True)
    campsite_ids = svc.parse_campsite_ids(payload)
    return jsonify(svc.serialize(svc.add_many(owner, campsite_ids))), 200


@owner_required
def reject_put_collection(owner: str):
    logger.info('PUT /favorites rejected for %s', owner)
    return _not_supported('PUT operation not supported on /favorites')


@owner_required
@_handle_errors
def delete_favorites(owner: str):
    return jsonify(svc.serialize(svc.clear(owner))), 200


def reject_get_campsite(campsite_id: str):
    return _not_supported(f'GET operation not supported on /favorites/{campsite_id}')


@owner_required
@_handle_errors
def add_favorite(campsite_id: str, owner: str):
    doc, already_present = svc.add_one(owner, campsite_id)
    body = svc.serialize(doc)
    if already_present:
        body['message'] = 'Campsite already exists'
    return jsonify(body), 200


@owner_required
def reject_put_campsite(campsite_id: str, owner: str):
    logger.info('PUT /favorites/%s rejected for %s', campsite_id, owner)
    return _not_supported(f'PUT operation not supported on /favorites/{campsite_id}')


@owner_required
@_handle_errors
def delete_favorite(campsite_id: str, owner: str):
    return jsonify(svc.serialize(svc.remove_one(owner, campsite_id))), 200


# Collection rules also answer without the trailing slash; a redirected
# CORS preflight is rejected by browsers.
Route = namedtuple('Route', ['rule', 'method', 'view', 'strict_slashes'], defaults=[True])

# Verb-to-operation table, registered once at import time.
ROUTES = (
    Route('/', 'GET', list_favorites, False),
    Route('/', 'POST', add_favorites, False),
    Route('/', 'PUT', reject_put_collection, False),
    Route('/', 'DELETE', delete_favorites, False),
    Route('/<campsite_id>', 'GET', reject_get_campsite),
    Route('/<campsite_id>', 'POST', add_favorite),
    Route('/<campsite_id>', 'PUT', reject_put_campsite),
    Route('/<campsite_id>', 'DELETE', delete_favorite),
)


def register_routes(blueprint: Blueprint, routes=ROUTES) -> None:
    for route in routes:
        blueprint.add_url_rule(
            route.rule,
            endpoint=route.view.__name__,
            view_func=route.view,
            methods=[route.method],
            strict_slashes=route.strict_slashes,
        )


register_routes(favorites_bp)
