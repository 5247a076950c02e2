"""
Messaging services - two-party threads and read state.
"""

from halaqa.services.messages.thread_service import ThreadService

__all__ = ["ThreadService"]
