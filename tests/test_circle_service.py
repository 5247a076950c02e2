"""Unit tests for CircleService and MembershipService."""

import pytest
from unittest.mock import MagicMock
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from common.utils.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from halaqa.services.circles import CircleService, MembershipService
from halaqa.services.circles.circle_service import INVITE_CODE_ALPHABET, generate_invite_code, is_circle_sheikh


@pytest.fixture
def circles(collections):
    return collections["circles"]


@pytest.fixture
def members(collections):
    return collections["circleMembers"]


@pytest.fixture
def users(collections):
    return collections["users"]


@pytest.fixture
def circle_doc():
    return {
        "_id": ObjectId(),
        "name": "حلقة الفجر",
        "teacherId": "sheikh-1",
        "sheikhIds": ["sheikh-1"],
        "assistants": [],
        "inviteCode": "ABC234",
    }


# ─────────────────────────────────────────────────────────────────
# CircleService
# ─────────────────────────────────────────────────────────────────


class TestInviteCodes:
    def test_generated_codes_avoid_ambiguous_characters(self):
        code = generate_invite_code()
        assert len(code) == 6
        assert all(c in INVITE_CODE_ALPHABET for c in code)
        assert not set(code) & set("01OI")

    @pytest.mark.asyncio
    async def test_gives_up_after_repeated_collisions(self, mock_db, circles):
        circles.find_one.return_value = {"_id": ObjectId()}

        with pytest.raises(ConflictException) as exc:
            await CircleService(mock_db).regenerate_invite_code(str(ObjectId()))
        assert exc.value.code == "INVITE_CODE_COLLISION"
        assert circles.find_one.await_count == CircleService.MAX_CODE_ATTEMPTS


class TestCreateCircle:
    @pytest.mark.asyncio
    async def test_creator_owns_circle(self, mock_db, circles):
        circles.find_one.return_value = None
        circles.insert_one.return_value = MagicMock(inserted_id=ObjectId())

        circle = await CircleService(mock_db).create_circle("sheikh-1", "  حلقة الفجر ")

        doc = circles.insert_one.call_args[0][0]
        assert doc["name"] == "حلقة الفجر"
        assert doc["teacherId"] == "sheikh-1"
        assert doc["sheikhIds"] == ["sheikh-1"]
        assert len(circle["inviteCode"]) == 6

    @pytest.mark.asyncio
    async def test_requires_name(self, mock_db):
        with pytest.raises(ValidationException) as exc:
            await CircleService(mock_db).create_circle("sheikh-1", " ")
        assert exc.value.code == "CIRCLE_NAME_REQUIRED"


class TestSheikhAccess:
    def test_legacy_teacher_id_counts(self):
        assert is_circle_sheikh({"teacherId": "sheikh-1"}, "sheikh-1")
        assert not is_circle_sheikh({"sheikhIds": ["sheikh-2"]}, "sheikh-1")

    @pytest.mark.asyncio
    async def test_non_sheikh_is_forbidden(self, mock_db, circles, circle_doc):
        circles.find_one.return_value = circle_doc

        with pytest.raises(ForbiddenException) as exc:
            await CircleService(mock_db).ensure_sheikh_access(str(circle_doc["_id"]), "student-1")
        assert exc.value.code == "NOT_CIRCLE_SHEIKH"

    @pytest.mark.asyncio
    async def test_missing_circle(self, mock_db, circles):
        circles.find_one.return_value = None

        with pytest.raises(NotFoundException) as exc:
            await CircleService(mock_db).ensure_sheikh_access(str(ObjectId()), "sheikh-1")
        assert exc.value.code == "CIRCLE_NOT_FOUND"


class TestCoSheikhs:
    @pytest.mark.asyncio
    async def test_student_needs_promotion(self, mock_db, circles, users, circle_doc):
        circles.find_one.return_value = circle_doc
        users.find_one.return_value = {"_id": "user-2", "role": "student", "email": "a@b.com"}

        with pytest.raises(ValidationException) as exc:
            await CircleService(mock_db).add_co_sheikh(str(circle_doc["_id"]), "A@B.com")
        assert exc.value.code == "NOT_A_SHEIKH"
        assert exc.value.detail["details"]["canPromote"] is True
        users.find_one.assert_awaited_once_with({"email": "a@b.com"})

    @pytest.mark.asyncio
    async def test_promote_then_add(self, mock_db, circles, users, circle_doc):
        circles.find_one.return_value = circle_doc
        users.find_one.return_value = {"_id": "user-2", "role": "student", "displayName": "Yusuf"}

        result = await CircleService(mock_db).add_co_sheikh(str(circle_doc["_id"]), "a@b.com", promote=True)

        assert users.update_one.call_args[0][1]["$set"]["role"] == "sheikh"
        assert circles.update_one.call_args[0][1]["$addToSet"] == {"sheikhIds": "user-2"}
        assert result == {"uid": "user-2", "displayName": "Yusuf"}

    @pytest.mark.asyncio
    async def test_already_sheikh(self, mock_db, circles, users, circle_doc):
        circles.find_one.return_value = circle_doc
        users.find_one.return_value = {"_id": "sheikh-1", "role": "sheikh"}

        with pytest.raises(ConflictException) as exc:
            await CircleService(mock_db).add_co_sheikh(str(circle_doc["_id"]), "s@b.com")
        assert exc.value.code == "ALREADY_SHEIKH"

    @pytest.mark.asyncio
    async def test_owner_cannot_be_removed(self, mock_db, circles, circle_doc):
        circles.find_one.return_value = circle_doc

        with pytest.raises(ValidationException) as exc:
            await CircleService(mock_db).remove_co_sheikh(str(circle_doc["_id"]), "sheikh-1")
        assert exc.value.code == "CANNOT_REMOVE_OWNER"
        circles.update_one.assert_not_called()


class TestDeleteAndMigrate:
    @pytest.mark.asyncio
    async def test_delete_cascades_to_members(self, mock_db, circles, members, users, circle_doc, make_cursor):
        circle_id = str(circle_doc["_id"])
        members.find.return_value = make_cursor([{"userId": "s1"}, {"userId": "s2"}])
        users.update_many.return_value = MagicMock(modified_count=1)
        members.delete_many.return_value = MagicMock(deleted_count=2)
        circles.delete_one.return_value = MagicMock(deleted_count=1)

        result = await CircleService(mock_db).delete_circle(circle_id)

        assert users.update_many.call_args[0][0] == {"_id": {"$in": ["s1", "s2"]}, "circleId": circle_id}
        members.delete_many.assert_awaited_once_with({"circleId": circle_id})
        assert result == {"membersDeleted": 2, "usersDetached": 1}

    @pytest.mark.asyncio
    async def test_migrates_single_sheikh_circles(self, mock_db, circles, make_cursor):
        legacy = {"_id": ObjectId(), "sheikhId": "sheikh-9"}
        circles.find.return_value = make_cursor([legacy])

        migrated = await CircleService(mock_db).migrate_legacy_circles()

        assert migrated == 1
        fields = circles.update_one.call_args[0][1]["$set"]
        assert fields["sheikhIds"] == ["sheikh-9"]
        assert fields["teacherId"] == "sheikh-9"


# ─────────────────────────────────────────────────────────────────
# MembershipService
# ─────────────────────────────────────────────────────────────────


class TestJoinCircle:
    @pytest.mark.asyncio
    async def test_new_request_is_pending(self, mock_db, circles, members, circle_doc):
        circles.find_one.return_value = circle_doc
        members.find_one.return_value = None

        result = await MembershipService(mock_db).join_circle_by_code("student-1", " abc234 ")

        circles.find_one.assert_awaited_once_with({"inviteCode": "ABC234"})
        doc = members.insert_one.call_args[0][0]
        assert doc["status"] == "pending"
        assert doc["roleInCircle"] == "student"
        assert result["status"] == "pending"
        assert result["circleId"] == str(circle_doc["_id"])

    @pytest.mark.asyncio
    async def test_unknown_code(self, mock_db, circles):
        circles.find_one.return_value = None

        with pytest.raises(NotFoundException) as exc:
            await MembershipService(mock_db).join_circle_by_code("student-1", "ZZZZZZ")
        assert exc.value.code == "INVALID_INVITE_CODE"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,code", [
        ("pending", "JOIN_REQUEST_PENDING"),
        ("approved", "ALREADY_MEMBER"),
    ])
    async def test_existing_membership_conflicts(self, mock_db, circles, members, circle_doc, status, code):
        circles.find_one.return_value = circle_doc
        members.find_one.return_value = {"_id": ObjectId(), "status": status}

        with pytest.raises(ConflictException) as exc:
            await MembershipService(mock_db).join_circle_by_code("student-1", "ABC234")
        assert exc.value.code == code

    @pytest.mark.asyncio
    async def test_removed_member_can_request_again(self, mock_db, circles, members, circle_doc):
        circles.find_one.return_value = circle_doc
        members.find_one.return_value = {"_id": ObjectId(), "status": "removed"}

        await MembershipService(mock_db).join_circle_by_code("student-1", "ABC234")

        assert members.update_one.call_args[0][1]["$set"]["status"] == "pending"
        members.insert_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrent_request_conflicts(self, mock_db, circles, members, circle_doc):
        circles.find_one.return_value = circle_doc
        members.find_one.return_value = None
        members.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")

        with pytest.raises(ConflictException) as exc:
            await MembershipService(mock_db).join_circle_by_code("student-1", "ABC234")
        assert exc.value.code == "JOIN_REQUEST_PENDING"


class TestReviewMembers:
    @pytest.mark.asyncio
    async def test_approval_sets_active_circle(self, mock_db, members, users, sample_circle_id):
        member_id = ObjectId()
        members.find_one_and_update.return_value = {
            "_id": member_id, "userId": "student-1", "circleId": sample_circle_id, "status": "approved",
        }

        await MembershipService(mock_db).approve_member(str(member_id))

        query, update = users.update_one.call_args[0]
        assert query == {"_id": "student-1"}
        assert update["$set"]["circleId"] == sample_circle_id

    @pytest.mark.asyncio
    async def test_assistant_role_updates_circle(self, mock_db, members, circles, sample_circle_id):
        member_id = ObjectId()
        members.find_one_and_update.return_value = {
            "_id": member_id, "userId": "student-1", "circleId": sample_circle_id, "roleInCircle": "assistant",
        }

        await MembershipService(mock_db).set_member_role(str(member_id), "assistant")

        assert circles.update_one.call_args[0][1] == {"$addToSet": {"assistants": "student-1"}}

    @pytest.mark.asyncio
    async def test_invalid_role(self, mock_db):
        with pytest.raises(ValidationException) as exc:
            await MembershipService(mock_db).set_member_role(str(ObjectId()), "sheikh")
        assert exc.value.code == "INVALID_CIRCLE_ROLE"

    @pytest.mark.asyncio
    async def test_non_member_is_forbidden(self, mock_db, members, sample_circle_id):
        members.find_one.return_value = None

        with pytest.raises(ForbiddenException) as exc:
            await MembershipService(mock_db).ensure_member(sample_circle_id, "student-1")
        assert exc.value.code == "NOT_CIRCLE_MEMBER"


class TestRemoveStudent:
    @pytest.mark.asyncio
    async def test_profile_detach_failure_is_tolerated(self, mock_db, members, users, sample_circle_id):
        members.delete_many.return_value = MagicMock(deleted_count=1)
        users.update_one.side_effect = RuntimeError("connection reset")

        deleted = await MembershipService(mock_db).remove_student_from_circle(sample_circle_id, "student-1")

        assert deleted == 1

    @pytest.mark.asyncio
    async def test_not_a_member(self, mock_db, members, users, sample_circle_id):
        members.delete_many.return_value = MagicMock(deleted_count=0)

        with pytest.raises(NotFoundException) as exc:
            await MembershipService(mock_db).remove_student_from_circle(sample_circle_id, "student-1")
        assert exc.value.code == "MEMBER_NOT_FOUND"
        users.update_one.assert_not_called()
