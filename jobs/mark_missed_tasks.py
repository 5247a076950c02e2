"""
Missed task background job.

Marks pending tasks whose due date has passed as missed.
This job should be run daily via CRON, shortly after midnight UTC.

Usage:
    Run via CRON:
        10 0 * * * cd /path/to/project && python -m jobs.mark_missed_tasks

    Or run directly:
        python -m jobs.mark_missed_tasks
"""

import asyncio
import logging
import sys

from common.database import MongoDB
from common.utils.dates import today_utc
from halaqa.config import settings
from halaqa.services.tasks import TaskService

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


class MarkMissedTasksJob:
    """
    Flips overdue pending tasks to ``missed``.

    A task due today is still open; only due dates strictly before the
    current UTC day are affected. Submitted and completed tasks are left
    alone.
    """

    def __init__(self, db: MongoDB):
        self._db = db

    async def run(self) -> int:
        today = today_utc().isoformat()
        logger.info(f"Marking pending tasks due before {today} as missed")

        task_service = TaskService(db=self._db.db)
        count = await task_service.mark_missed_tasks(today)

        logger.info(f"Marked {count} tasks as missed")
        return count


async def main() -> int:
    db = MongoDB()
    await db.connect(uri=settings.MONGODB_URI, database_name=settings.MONGODB_DATABASE)
    try:
        await MarkMissedTasksJob(db).run()
    except Exception:
        logger.exception("Missed task job failed")
        return 1
    finally:
        await db.disconnect()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
