#!/usr/bin/env python3
"""
Migration script for circles created before co-sheikh support.

Older circles store a single ``sheikhId``. This script:
1. Finds circles without a ``sheikhIds`` array
2. Sets ``sheikhIds`` to the original sheikh and fills ``teacherId``

Safe to run more than once; migrated circles are skipped.

Usage:
    python scripts/migrate_circle_sheikhs.py
    python scripts/migrate_circle_sheikhs.py --sheikh-id <uid>

Environment variables required:
    MONGODB_URI - MongoDB connection string
    MONGODB_DATABASE - Database name (default: halaqa)
"""

import argparse
import asyncio
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.database import MongoDB
from halaqa.config import settings
from halaqa.services.circles import CircleService


async def migrate(sheikh_id=None):
    print(f"Connecting to database: {settings.MONGODB_DATABASE}")
    db = MongoDB()
    await db.connect(uri=settings.MONGODB_URI, database_name=settings.MONGODB_DATABASE)

    try:
        migrated = await CircleService(db=db.db).migrate_legacy_circles(sheikh_id)
    finally:
        await db.disconnect()

    print("\n=== Migration Complete ===")
    print(f"Circles migrated: {migrated}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Migrate legacy single-sheikh circles")
    parser.add_argument("--sheikh-id", default=None, help="Only migrate this sheikh's circles")
    args = parser.parse_args()
    asyncio.run(migrate(args.sheikh_id))
