"""
FastAPI router for circle and membership endpoints.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from halaqa.dependencies import (
    require_auth,
    require_sheikh,
    get_circle_service,
    get_membership_service,
    get_points_service,
)
from halaqa.schemas.circles import (
    CreateCircleRequest,
    UpdateCircleRequest,
    JoinCircleRequest,
    AddCoSheikhRequest,
    MemberRoleRequest,
)
from halaqa.services.circles import CircleService, MembershipService
from halaqa.services.circles.circle_service import is_circle_sheikh
from halaqa.services.points import PointsService
from common.utils import success_response, NotFoundException

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/circles", tags=["circles"])


async def _get_circle_member(
    membership_service: MembershipService,
    circle_id: str,
    member_id: str,
) -> dict:
    """Membership that belongs to the given circle."""
    member = await membership_service.get_member(member_id)
    if member["circleId"] != circle_id:
        raise NotFoundException(message="Membership not found", code="MEMBER_NOT_FOUND")
    return member


# ─────────────────────────────────────────────────────────────────
# Circles
# ─────────────────────────────────────────────────────────────────

@router.post("")
async def create_circle(
    body: CreateCircleRequest,
    user: Annotated[dict, Depends(require_sheikh)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
):
    """Create a circle; the caller becomes its owner."""
    circle = await circle_service.create_circle(
        sheikh_id=user["_id"],
        name=body.name,
        description=body.description,
        schedule=body.schedule,
    )
    return success_response({"circle": circle})


@router.get("")
async def list_my_circles(
    user: Annotated[dict, Depends(require_sheikh)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
):
    circles = await circle_service.list_sheikh_circles(user["_id"])
    return success_response({"circles": circles})


@router.post("/migrate")
async def migrate_my_circles(
    user: Annotated[dict, Depends(require_sheikh)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
):
    """Convert the caller's circles from the single-sheikh format."""
    migrated = await circle_service.migrate_legacy_circles(user["_id"])
    return success_response({"migrated": migrated})


@router.get("/mine")
async def get_my_circle(
    user: Annotated[dict, Depends(require_auth)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """The student's active circle and open join requests."""
    circle = await membership_service.get_active_circle(user["_id"])
    memberships = await membership_service.get_my_memberships(user["_id"])
    return success_response({"circle": circle, "memberships": memberships})


@router.post("/join")
async def join_circle(
    body: JoinCircleRequest,
    user: Annotated[dict, Depends(require_auth)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Request to join a circle with its invite code."""
    result = await membership_service.join_circle_by_code(user["_id"], body.code)
    return success_response(result)


@router.get("/{circle_id}")
async def get_circle(
    circle_id: str,
    user: Annotated[dict, Depends(require_auth)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    circle = await circle_service.get_circle(circle_id)
    if not is_circle_sheikh(circle, user["_id"]):
        await membership_service.ensure_member(circle_id, user["_id"])
        circle.pop("inviteCode", None)
    return success_response({"circle": circle})


@router.patch("/{circle_id}")
async def update_circle(
    circle_id: str,
    body: UpdateCircleRequest,
    user: Annotated[dict, Depends(require_sheikh)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
):
    await circle_service.ensure_sheikh_access(circle_id, user["_id"])
    circle = await circle_service.update_circle(circle_id, body.model_dump(exclude_unset=True))
    return success_response({"circle": circle})


@router.post("/{circle_id}/invite-code")
async def regenerate_invite_code(
    circle_id: str,
    user: Annotated[dict, Depends(require_sheikh)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
):
    await circle_service.ensure_sheikh_access(circle_id, user["_id"])
    code = await circle_service.regenerate_invite_code(circle_id)
    return success_response({"inviteCode": code})


@router.delete("/{circle_id}")
async def delete_circle(
    circle_id: str,
    user: Annotated[dict, Depends(require_sheikh)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
):
    """Delete a circle with its memberships."""
    await circle_service.ensure_sheikh_access(circle_id, user["_id"])
    result = await circle_service.delete_circle(circle_id)
    return success_response(result)


# ─────────────────────────────────────────────────────────────────
# Co-sheikhs
# ─────────────────────────────────────────────────────────────────

@router.post("/{circle_id}/sheikhs")
async def add_co_sheikh(
    circle_id: str,
    body: AddCoSheikhRequest,
    user: Annotated[dict, Depends(require_sheikh)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
):
    """
    Add a co-sheikh by email.

    A non-sheikh account is refused with NOT_A_SHEIKH unless promote is set.
    """
    await circle_service.ensure_sheikh_access(circle_id, user["_id"])
    result = await circle_service.add_co_sheikh(circle_id, body.email, promote=body.promote)
    return success_response(result)


@router.delete("/{circle_id}/sheikhs/{sheikh_id}")
async def remove_co_sheikh(
    circle_id: str,
    sheikh_id: str,
    user: Annotated[dict, Depends(require_sheikh)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
):
    await circle_service.ensure_sheikh_access(circle_id, user["_id"])
    await circle_service.remove_co_sheikh(circle_id, sheikh_id)
    return success_response()


# ─────────────────────────────────────────────────────────────────
# Members
# ─────────────────────────────────────────────────────────────────

@router.get("/{circle_id}/members")
async def list_members(
    circle_id: str,
    user: Annotated[dict, Depends(require_sheikh)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
    status: Optional[str] = Query(None, description="pending | approved | removed"),
):
    await circle_service.ensure_sheikh_access(circle_id, user["_id"])
    members = await membership_service.list_members(circle_id, status)
    return success_response({"members": members})


@router.post("/{circle_id}/members/{member_id}/approve")
async def approve_member(
    circle_id: str,
    member_id: str,
    user: Annotated[dict, Depends(require_sheikh)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    await circle_service.ensure_sheikh_access(circle_id, user["_id"])
    await _get_circle_member(membership_service, circle_id, member_id)
    member = await membership_service.approve_member(member_id)
    return success_response({"member": member})


@router.post("/{circle_id}/members/{member_id}/reject")
async def reject_member(
    circle_id: str,
    member_id: str,
    user: Annotated[dict, Depends(require_sheikh)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    await circle_service.ensure_sheikh_access(circle_id, user["_id"])
    await _get_circle_member(membership_service, circle_id, member_id)
    member = await membership_service.reject_member(member_id)
    return success_response({"member": member})


@router.patch("/{circle_id}/members/{member_id}/role")
async def set_member_role(
    circle_id: str,
    member_id: str,
    body: MemberRoleRequest,
    user: Annotated[dict, Depends(require_sheikh)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    await circle_service.ensure_sheikh_access(circle_id, user["_id"])
    await _get_circle_member(membership_service, circle_id, member_id)
    member = await membership_service.set_member_role(member_id, body.role)
    return success_response({"member": member})


@router.delete("/{circle_id}/students/{student_id}")
async def remove_student(
    circle_id: str,
    student_id: str,
    user: Annotated[dict, Depends(require_sheikh)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    await circle_service.ensure_sheikh_access(circle_id, user["_id"])
    removed = await membership_service.remove_student_from_circle(circle_id, student_id)
    return success_response({"removed": removed})


@router.get("/{circle_id}/leaderboard")
async def get_leaderboard(
    circle_id: str,
    user: Annotated[dict, Depends(require_auth)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
    points_service: Annotated[PointsService, Depends(get_points_service)],
    limit: int = Query(10, ge=1, le=100),
):
    """Circle students ranked by lifetime points."""
    circle = await circle_service.get_circle(circle_id)
    if not is_circle_sheikh(circle, user["_id"]):
        await membership_service.ensure_member(circle_id, user["_id"])

    student_ids = await membership_service.get_approved_student_ids(circle_id)
    leaderboard = await points_service.get_leaderboard(student_ids, limit)
    return success_response({"leaderboard": leaderboard})
