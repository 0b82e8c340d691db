"""Unit tests for the favorites and campsites repositories.

Tests check that every mutation is issued as a single atomic MongoDB call
with the expected operators, and that lookups shape results correctly.
"""

from __future__ import annotations

import unittest
from unittest.mock import MagicMock, patch

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from backend.app.repositories import CampsitesRepository, FavoritesRepository

C1 = ObjectId('507f1f77bcf86cd7994390c1')
C2 = ObjectId('507f1f77bcf86cd7994390c2')
C3 = ObjectId('507f1f77bcf86cd7994390c3')


class RepositoryTestCase(unittest.TestCase):
    collection_name = ''

    def setUp(self):
        self.collection = MagicMock()
        patcher = patch('backend.app.repositories.db.get_db', return_value={self.collection_name: self.collection})
        patcher.start()
        self.addCleanup(patcher.stop)


class TestFavoritesRepository(RepositoryTestCase):
    collection_name = 'favorites'

    def setUp(self):
        super().setUp()
        self.repo = FavoritesRepository()

    def test_add_campsites_is_single_upsert_with_add_to_set(self):
        self.collection.find_one_and_update.return_value = {'owner': 'U1', 'campsites': [C1, C2]}

        result = self.repo.add_campsites('U1', [C1, C2])

        self.assertEqual(result['campsites'], [C1, C2])
        self.collection.find_one_and_update.assert_called_once()
        args, kwargs = self.collection.find_one_and_update.call_args
        self.assertEqual(args[0], {'owner': 'U1'})
        update = args[1]
        self.assertEqual(update['$addToSet'], {'campsites': {'$each': [C1, C2]}})
        self.assertIn('updatedAt', update['$set'])
        self.assertIn('createdAt', update['$setOnInsert'])
        self.assertTrue(kwargs['upsert'])
        self.assertEqual(kwargs['return_document'], ReturnDocument.AFTER)
        self.collection.find_one.assert_not_called()

    def test_add_campsite_updates_list_lacking_the_ref(self):
        stored = {'_id': ObjectId(), 'owner': 'U1', 'campsites': [C2, C1]}
        self.collection.find_one_and_update.return_value = stored

        doc, added = self.repo.add_campsite('U1', C1)

        self.assertIs(doc, stored)
        self.assertTrue(added)
        args, kwargs = self.collection.find_one_and_update.call_args
        self.assertEqual(args[0], {'owner': 'U1', 'campsites': {'$ne': C1}})
        self.assertEqual(args[1]['$addToSet'], {'campsites': C1})
        self.assertNotIn('upsert', kwargs)
        self.assertEqual(kwargs['return_document'], ReturnDocument.AFTER)
        self.collection.update_one.assert_not_called()

    def test_add_campsite_creates_missing_list(self):
        stored = {'_id': ObjectId(), 'owner': 'U1', 'campsites': [C1]}
        self.collection.find_one_and_update.return_value = None
        self.collection.update_one.return_value = MagicMock(upserted_id=stored['_id'])
        self.collection.find_one.return_value = stored

        doc, added = self.repo.add_campsite('U1', C1)

        self.assertIs(doc, stored)
        self.assertTrue(added)
        args, kwargs = self.collection.update_one.call_args
        self.assertEqual(args[0], {'owner': 'U1'})
        self.assertEqual(set(args[1]), {'$setOnInsert'})
        self.assertEqual(args[1]['$setOnInsert']['campsites'], [C1])
        self.assertTrue(kwargs['upsert'])

    def test_add_campsite_already_present(self):
        stored = {'_id': ObjectId(), 'owner': 'U1', 'campsites': [C1]}
        self.collection.find_one_and_update.return_value = None
        self.collection.update_one.return_value = MagicMock(upserted_id=None)
        self.collection.find_one.return_value = stored

        doc, added = self.repo.add_campsite('U1', C1)

        self.assertIs(doc, stored)
        self.assertFalse(added)
        self.collection.find_one_and_update.assert_called_once()

    def test_pull_campsite_does_not_upsert(self):
        self.collection.find_one_and_update.return_value = None

        self.assertIsNone(self.repo.pull_campsite('U1', C1))

        args, kwargs = self.collection.find_one_and_update.call_args
        self.assertEqual(args[1]['$pull'], {'campsites': C1})
        self.assertNotIn('upsert', kwargs)
        self.assertEqual(kwargs['return_document'], ReturnDocument.AFTER)

    def test_delete_by_owner(self):
        self.collection.find_one_and_delete.return_value = {'owner': 'U1', 'campsites': []}

        self.assertEqual(self.repo.delete_by_owner('U1')['owner'], 'U1')
        self.collection.find_one_and_delete.assert_called_once_with({'owner': 'U1'})

    def test_find_populated_restores_stored_order(self):
        self.collection.aggregate.return_value = iter([{
            '_id': ObjectId(),
            'owner': 'U1',
            'campsites': [C3, C1, C2],
            'campsite_docs': [
                {'_id': C1, 'name': 'one'},
                {'_id': C3, 'name': 'three'},
            ],
        }])

        doc = self.repo.find_populated('U1')

        self.assertEqual([c['name'] for c in doc['campsites']], ['three', 'one'])
        self.assertNotIn('campsite_docs', doc)
        pipeline = self.collection.aggregate.call_args[0][0]
        self.assertEqual(pipeline[0], {'$match': {'owner': 'U1'}})
        self.assertEqual(pipeline[-1]['$lookup']['from'], 'campsites')

    def test_find_populated_absent(self):
        self.collection.aggregate.return_value = iter([])
        self.assertIsNone(self.repo.find_populated('U1'))

    def test_errors_propagate(self):
        self.collection.find_one_and_update.side_effect = PyMongoError('down')
        with self.assertRaises(PyMongoError):
            self.repo.add_campsites('U1', [C1])


class TestCampsitesRepository(RepositoryTestCase):
    collection_name = 'campsites'

    def setUp(self):
        super().setUp()
        self.repo = CampsitesRepository()

    def test_exists(self):
        self.collection.count_documents.return_value = 1
        self.assertTrue(self.repo.exists(C1))
        self.collection.count_documents.assert_called_once_with({'_id': C1}, limit=1)

        self.collection.count_documents.return_value = 0
        self.assertFalse(self.repo.exists(C2))

    def test_find_missing_keeps_input_order(self):
        self.collection.find.return_value = iter([{'_id': C2}])

        missing = self.repo.find_missing([C3, C2, C1])

        self.assertEqual(missing, [C3, C1])
        self.collection.find.assert_called_once_with({'_id': {'$in': [C3, C2, C1]}}, {'_id': 1})

    def test_find_missing_empty_input_skips_query(self):
        self.assertEqual(self.repo.find_missing([]), [])
        self.collection.find.assert_not_called()


if __name__ == '__main__':
    unittest.main()
