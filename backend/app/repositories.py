"""Repository pattern for database operations.

This module provides repository classes for each main collection,
abstracting database operations and providing a clean interface for the
service layer. Every favorites mutation is a single atomic MongoDB call so
concurrent requests for the same owner never lose updates.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple
from datetime import datetime, timezone
from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import PyMongoError
from bson import ObjectId

from . import db

logger = logging.getLogger(__name__)


class BaseRepository:
    """Base repository class with common database operations."""

    def __init__(self, collection_name: str):
        """Initialize repository with collection name.

        Args:
            collection_name: Name of the MongoDB collection
        """
        self.collection_name = collection_name

    @property
    def collection(self) -> Collection:
        database = db.get_db()
        return database[self.collection_name]

    def count_documents(self, filter_dict: Dict[str, Any], **kwargs: Any) -> int:
        try:
            return self.collection.count_documents(filter_dict, **kwargs)
        except PyMongoError as e:
            logger.error(f"Error counting documents in {self.collection_name}: {e}")
            raise


class CampsitesRepository(BaseRepository):
    """Read-only access to the campsite catalog."""

    def __init__(self) -> None:
        super().__init__('campsites')

    def exists(self, campsite_id: ObjectId) -> bool:
        return self.count_documents({'_id': campsite_id}, limit=1) > 0

    def find_missing(self, campsite_ids: Iterable[ObjectId]) -> List[ObjectId]:
        """Return the ids from ``campsite_ids`` that have no catalog document, in input order."""
        wanted = list(campsite_ids)
        if not wanted:
            return []
        try:
            found: Set[ObjectId] = {
                doc['_id'] for doc in self.collection.find({'_id': {'$in': wanted}}, {'_id': 1})
            }
        except PyMongoError as e:
            logger.error(f"Error looking up campsites: {e}")
            raise
        return [cid for cid in wanted if cid not in found]


class FavoritesRepository(BaseRepository):
    def __init__(self) -> None:
        super().__init__('favorites')

    def find_populated(self, owner: Any) -> Optional[Dict[str, Any]]:
        """Fetch the owner's list with ``campsites`` resolved to catalog documents.

        ``$lookup`` does not keep array order, so the joined documents are put
        back in the stored order. Refs whose campsite was deleted drop out.
        """
        pipeline = [
            {'$match': {'owner': owner}},
            {'$limit': 1},
            {'$lookup': {
                'from': 'campsites',
                'localField': 'campsites',
                'foreignField': '_id',
                'as': 'campsite_docs',
            }},
        ]
        try:
            results = list(self.collection.aggregate(pipeline))
        except PyMongoError as e:
            logger.error(f"Error populating favorites for {owner}: {e}")
            raise
        if not results:
            return None
        doc = results[0]
        by_id = {c['_id']: c for c in doc.pop('campsite_docs', [])}
        doc['campsites'] = [by_id[cid] for cid in doc.get('campsites', []) if cid in by_id]
        return doc

    def add_campsites(self, owner: Any, campsite_ids: List[ObjectId]) -> Dict[str, Any]:
        """Union ``campsite_ids`` into the owner's list, creating it if absent."""
        now = datetime.now(timezone.utc)
        update = {
            '$addToSet': {'campsites': {'$each': list(campsite_ids)}},
            '$set': {'updatedAt': now},
            '$setOnInsert': {'createdAt': now},
        }
        try:
            return self.collection.find_one_and_update(
                {'owner': owner},
                update,
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error(f"Error adding campsites to favorites of {owner}: {e}")
            raise

    def add_campsite(self, owner: Any, campsite_id: ObjectId) -> Tuple[Optional[Dict[str, Any]], bool]:
        """Add one ref and report whether it was new.

        The update only matches a list that lacks the ref, so a repeat add
        writes nothing. A missing list is created by a ``$setOnInsert``-only
        upsert, which leaves an existing document untouched. Returns the
        stored document and ``True`` when the ref was added.
        """
        now = datetime.now(timezone.utc)
        lacks_ref = {'owner': owner, 'campsites': {'$ne': campsite_id}}
        push_ref = {'$addToSet': {'campsites': campsite_id}, '$set': {'updatedAt': now}}
        try:
            doc = self.collection.find_one_and_update(lacks_ref, push_ref, return_document=ReturnDocument.AFTER)
            if doc is not None:
                return doc, True
            result = self.collection.update_one(
                {'owner': owner},
                {'$setOnInsert': {'campsites': [campsite_id], 'createdAt': now, 'updatedAt': now}},
                upsert=True,
            )
            doc = self.collection.find_one({'owner': owner})
            if result.upserted_id is not None:
                return doc, True
            if doc is not None and campsite_id not in doc.get('campsites', []):
                # List was created concurrently without this ref
                doc = self.collection.find_one_and_update(lacks_ref, push_ref, return_document=ReturnDocument.AFTER) or doc
                return doc, True
            return doc, False
        except PyMongoError as e:
            logger.error(f"Error adding campsite {campsite_id} to favorites of {owner}: {e}")
            raise

    def pull_campsite(self, owner: Any, campsite_id: ObjectId) -> Optional[Dict[str, Any]]:
        """Remove one ref from an existing list. Returns ``None`` when the owner has no list."""
        try:
            return self.collection.find_one_and_update(
                {'owner': owner},
                {'$pull': {'campsites': campsite_id}, '$set': {'updatedAt': datetime.now(timezone.utc)}},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error(f"Error removing campsite from favorites of {owner}: {e}")
            raise

    def delete_by_owner(self, owner: Any) -> Optional[Dict[str, Any]]:
        try:
            return self.collection.find_one_and_delete({'owner': owner})
        except PyMongoError as e:
            logger.error(f"Error deleting favorites of {owner}: {e}")
            raise


# Repository instances for easy import
campsites_repo = CampsitesRepository()
favorites_repo = FavoritesRepository()
