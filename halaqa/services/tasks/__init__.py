"""
Task services - assignment, submission state and overdue handling.
"""

from halaqa.services.tasks.task_service import TaskService

__all__ = ["TaskService"]
