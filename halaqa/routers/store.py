"""
FastAPI router for the rewards store.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from halaqa.dependencies import require_auth, get_points_service
from halaqa.schemas.store import PurchaseRequest, EquipRequest
from halaqa.services.points import PointsService, list_rewards
from common.utils import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/store", tags=["store"])


@router.get("/rewards")
async def get_rewards(
    user: Annotated[dict, Depends(require_auth)],
    type: Optional[str] = Query(None, description="frame | badge"),
    tier: Optional[str] = Query(None),
):
    return success_response({"rewards": list_rewards(type, tier)})


@router.get("/wallet")
async def get_wallet(
    user: Annotated[dict, Depends(require_auth)],
    points_service: Annotated[PointsService, Depends(get_points_service)],
):
    """Balance, lifetime points, owned items and equipped slots."""
    wallet = await points_service.get_wallet(user["_id"])
    return success_response(wallet)


@router.post("/purchase")
async def purchase(
    body: PurchaseRequest,
    user: Annotated[dict, Depends(require_auth)],
    points_service: Annotated[PointsService, Depends(get_points_service)],
):
    result = await points_service.purchase_reward(user["_id"], body.rewardId)
    return success_response(result)


@router.post("/equip")
async def equip(
    body: EquipRequest,
    user: Annotated[dict, Depends(require_auth)],
    points_service: Annotated[PointsService, Depends(get_points_service)],
):
    result = await points_service.equip_item(user["_id"], body.type, body.itemId)
    return success_response(result)
