"""
Database module - Generic async MongoDB connection using Motor.

Usage:
    from common.database import MongoDB, run_in_transaction

    db = MongoDB()
    await db.connect(uri, database_name)
    users = db.db["users"]
"""

from common.database.mongodb import MongoDB
from common.database.transactions import run_in_transaction

__all__ = [
    "MongoDB",
    "run_in_transaction",
]
