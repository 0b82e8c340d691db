"""Service layer for managing a user's favorite campsites.

Each user owns at most one favorites document holding a set of campsite
references. Adds and removals map onto single atomic store updates
(``$addToSet`` / ``$pull`` with upsert), so the service never reads a list
just to write it back.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Tuple

from bson import ObjectId
from bson.errors import InvalidId

from backend.app.repositories import campsites_repo, favorites_repo

logger = logging.getLogger(__name__)


class FavoritesServiceError(Exception):
    def __init__(self, code: str, message: str, status: int = 400):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status


class ValidationFailed(FavoritesServiceError):
    def __init__(self, message: str):
        super().__init__('validation_failed', message, 400)


class InvalidIdentifier(FavoritesServiceError):
    def __init__(self, value: Any):
        super().__init__('invalid_identifier', f'Invalid campsite id: {value!r}', 404)
        self.value = value


class CampsiteNotFound(FavoritesServiceError):
    def __init__(self, campsite_ids: Iterable[ObjectId]):
        self.campsite_ids = [str(cid) for cid in campsite_ids]
        super().__init__('campsite_not_found', f"Campsite not found: {', '.join(self.campsite_ids)}", 404)


class FavoritesListNotFound(FavoritesServiceError):
    def __init__(self, message: str = 'You do not have any favorites'):
        super().__init__('favorites_not_found', message, 404)


def parse_campsite_id(value: Any) -> ObjectId:
    """Coerce a path/body value into a campsite ``ObjectId``."""
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str):
        raise InvalidIdentifier(value)
    try:
        return ObjectId(value.strip())
    except (InvalidId, TypeError):
        raise InvalidIdentifier(value)


def parse_campsite_ids(payload: Any) -> List[ObjectId]:
    """Deserialize a bulk-add request body into de-duplicated campsite ids.

    Accepts a JSON array whose items are id strings or objects carrying
    ``_id`` (or ``id``). Order of first appearance is kept.
    """
    if not isinstance(payload, list):
        raise ValidationFailed('request body must be a JSON array of campsite ids')
    if not payload:
        raise ValidationFailed('at least one campsite id is required')
    ids: List[ObjectId] = []
    for item in payload:
        if isinstance(item, dict):
            raw = item.get('_id', item.get('id'))
            if raw is None:
                raise ValidationFailed('campsite objects must carry an _id')
            ids.append(parse_campsite_id(raw))
        else:
            ids.append(parse_campsite_id(item))
    return list(dict.fromkeys(ids))


def owner_key(owner: Any) -> Any:
    """Normalize the token subject so lookups match how the owner was stored."""
    if isinstance(owner, ObjectId):
        return owner
    if owner is None or (isinstance(owner, str) and not owner.strip()):
        raise ValidationFailed('missing owner identity')
    owner = str(owner).strip()
    if ObjectId.is_valid(owner):
        return ObjectId(owner)
    return owner


def get_list(owner: Any) -> Dict[str, Any]:
    doc = favorites_repo.find_populated(owner_key(owner))
    if doc is None:
        raise FavoritesListNotFound()
    return doc


def add_many(owner: Any, campsite_ids: Iterable[Any]) -> Dict[str, Any]:
    ids = [parse_campsite_id(cid) for cid in campsite_ids]
    ids = list(dict.fromkeys(ids))
    if not ids:
        raise ValidationFailed('at least one campsite id is required')
    missing = campsites_repo.find_missing(ids)
    if missing:
        raise CampsiteNotFound(missing)
    key = owner_key(owner)
    doc = favorites_repo.add_campsites(key, ids)
    logger.info('Added %d campsite(s) to favorites of %s', len(ids), key)
    return doc


def add_one(owner: Any, campsite_id: Any) -> Tuple[Dict[str, Any], bool]:
    """Add a single campsite. Returns ``(list, already_present)``."""
    cid = parse_campsite_id(campsite_id)
    if not campsites_repo.exists(cid):
        raise CampsiteNotFound([cid])
    key = owner_key(owner)
    doc, added = favorites_repo.add_campsite(key, cid)
    if doc is None:
        # Cleared by a concurrent request right after the add
        raise FavoritesListNotFound()
    if not added:
        logger.debug('Campsite %s already in favorites of %s', cid, key)
        return doc, True
    logger.info('Added campsite %s to favorites of %s', cid, key)
    return doc, False


def remove_one(owner: Any, campsite_id: Any) -> Dict[str, Any]:
    cid = parse_campsite_id(campsite_id)
    key = owner_key(owner)
    doc = favorites_repo.pull_campsite(key, cid)
    if doc is None:
        raise FavoritesListNotFound()
    logger.info('Removed campsite %s from favorites of %s', cid, key)
    return doc


def clear(owner: Any) -> Dict[str, Any]:
    key = owner_key(owner)
    doc = favorites_repo.delete_by_owner(key)
    if doc is None:
        raise FavoritesListNotFound('You do not have any favorites to delete')
    logger.info('Cleared favorites of %s', key)
    return doc


def serialize(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Shape a favorites document for JSON responses."""
    campsites = []
    for item in doc.get('campsites', []):
        if isinstance(item, dict):
            campsites.append(_serialize_campsite(item))
        else:
            campsites.append(str(item))
    out = {
        'id': str(doc['_id']) if doc.get('_id') is not None else None,
        'owner': str(doc.get('owner')),
        'campsites': campsites,
    }
    for k in ('createdAt', 'updatedAt'):
        v = doc.get(k)
        out[k] = v.isoformat() if hasattr(v, 'isoformat') else v
    return out


def _serialize_campsite(campsite: Dict[str, Any]) -> Dict[str, Any]:
    out = {k: _jsonable(v) for k, v in campsite.items() if k != '_id'}
    out['id'] = str(campsite.get('_id'))
    return out


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    if isinstance(value, ObjectId):
        return str(value)
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    return value
