#!/usr/bin/env python3
"""
Create or deactivate a teacher invite code.

Sheikh accounts can only be created with a valid invite code. This script
issues codes for new teachers, or switches an existing code off.

Usage:
    python scripts/create_teacher_invite.py --created-by admin
    python scripts/create_teacher_invite.py --code MASJID2025 --max-uses 5 --created-by admin
    python scripts/create_teacher_invite.py --deactivate MASJID2025

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
from common.utils.exceptions import APIException
from halaqa.config import settings
from halaqa.services.auth import TeacherInviteService


def parse_args():
    parser = argparse.ArgumentParser(description="Manage teacher invite codes")
    parser.add_argument("--code", help="Invite code to create (generated when omitted)")
    parser.add_argument("--max-uses", type=int, default=None, help="Redemption limit (unlimited when omitted)")
    parser.add_argument("--created-by", default="admin", help="Who is issuing the code")
    parser.add_argument("--deactivate", metavar="CODE", help="Deactivate an existing code instead")
    return parser.parse_args()


async def main():
    args = parse_args()

    print(f"Connecting to database: {settings.MONGODB_DATABASE}")
    db = MongoDB()
    await db.connect(uri=settings.MONGODB_URI, database_name=settings.MONGODB_DATABASE)

    # Redemption doesn't happen here, so no transaction is needed
    service = TeacherInviteService(db=db.db, use_transactions=False)

    try:
        if args.deactivate:
            await service.deactivate_teacher_invite(args.deactivate)
            print(f"Invite code {args.deactivate.strip().upper()} deactivated")
        else:
            invite = await service.create_teacher_invite(
                created_by=args.created_by,
                code=args.code,
                max_uses=args.max_uses,
            )
            limit = invite["maxUses"] if invite["maxUses"] is not None else "unlimited"
            print(f"Invite code created: {invite['_id']} (max uses: {limit})")
    except APIException as e:
        print(f"ERROR: {e.message} ({e.code})")
        sys.exit(1)
    finally:
        await db.disconnect()


if __name__ == "__main__":
    asyncio.run(main())
