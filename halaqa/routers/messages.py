"""
FastAPI router for direct messaging endpoints.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from halaqa.dependencies import require_auth, get_thread_service
from halaqa.schemas.messages import OpenThreadRequest, SendMessageRequest
from halaqa.services.messages import ThreadService
from common.utils import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("/threads")
async def list_threads(
    user: Annotated[dict, Depends(require_auth)],
    thread_service: Annotated[ThreadService, Depends(get_thread_service)],
):
    """Inbox with unread flags and the total unread count."""
    result = await thread_service.list_threads(user["_id"])
    return success_response(result)


@router.post("/threads")
async def open_thread(
    body: OpenThreadRequest,
    user: Annotated[dict, Depends(require_auth)],
    thread_service: Annotated[ThreadService, Depends(get_thread_service)],
):
    thread = await thread_service.create_or_open_thread(user["_id"], body.otherUserId, body.circleId)
    return success_response({"thread": thread})


@router.get("/threads/{thread_id}")
async def get_messages(
    thread_id: str,
    user: Annotated[dict, Depends(require_auth)],
    thread_service: Annotated[ThreadService, Depends(get_thread_service)],
):
    result = await thread_service.get_messages(thread_id, user["_id"])
    return success_response(result)


@router.post("/threads/{thread_id}/messages")
async def send_message(
    thread_id: str,
    body: SendMessageRequest,
    user: Annotated[dict, Depends(require_auth)],
    thread_service: Annotated[ThreadService, Depends(get_thread_service)],
):
    message = await thread_service.send_message(thread_id, user["_id"], body.content)
    return success_response({"message": message})


@router.post("/threads/{thread_id}/read")
async def mark_as_read(
    thread_id: str,
    user: Annotated[dict, Depends(require_auth)],
    thread_service: Annotated[ThreadService, Depends(get_thread_service)],
):
    await thread_service.mark_as_read(thread_id, user["_id"])
    return success_response()
