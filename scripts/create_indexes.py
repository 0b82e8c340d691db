# scripts/create_indexes.py
"""
Create MongoDB indexes for the campsite favorites service.

- Unique index on favorites.owner (one favorites list per user)
- Multikey index on favorites.campsites

The script is idempotent - safe to run multiple times.

Usage:
    python scripts/create_indexes.py

Requires:
    MONGO_URI, MONGO_DB environment variables (loaded from .env file)
"""

import os
import sys
from pathlib import Path

from pymongo import MongoClient
from pymongo.database import Database
from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from backend.app.db import create_indexes  # noqa: E402

# Load environment variables from .env file
load_dotenv()


def get_db() -> Database:
    mongo_uri = os.environ.get('MONGO_URI')
    mongo_db = os.environ.get('MONGO_DB')
    if not mongo_uri or not mongo_db:
        raise ValueError("MONGO_URI and MONGO_DB environment variables must be set")
    client = MongoClient(mongo_uri)
    return client[mongo_db]


def main():
    database = get_db()
    print("[INFO] Creating indexes for the favorites collection...")
    create_indexes(database)
    print("[SUCCESS] All indexes created successfully!")


if __name__ == "__main__":
    main()
