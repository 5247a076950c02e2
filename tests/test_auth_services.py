"""Unit tests for profiles, teacher invites and the auth pipelines."""

import pytest
from unittest.mock import AsyncMock, MagicMock
from pymongo.errors import DuplicateKeyError

from common.auth import AuthProviderError
from common.auth.firebase_auth import map_rest_error
from common.utils.exceptions import (
    APIException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from halaqa.pipelines.auth import (
    complete_onboarding_pipeline,
    get_session_pipeline,
    login_pipeline,
    register_pipeline,
)
from halaqa.services.auth import ProfileService, TeacherInviteService, auth_error_to_exception, get_dashboard_route
from halaqa.services.auth.profile_service import DEFAULT_GOALS


@pytest.fixture
def users(collections):
    return collections["users"]


@pytest.fixture
def invites(collections):
    return collections["teacherInvites"]


# ─────────────────────────────────────────────────────────────────
# ProfileService
# ─────────────────────────────────────────────────────────────────


class TestProfileService:
    @pytest.mark.asyncio
    async def test_create_profile_defaults(self, mock_db, users):
        users.find_one_and_update.return_value = {"_id": "uid-1"}

        await ProfileService(mock_db).create_user_profile("uid-1", {
            "email": " Student@Example.COM ",
            "displayName": "Omar",
            "phoneNumber": None,
        })

        query, update = users.find_one_and_update.call_args[0]
        assert query == {"_id": "uid-1"}
        assert update["$set"]["email"] == "student@example.com"
        assert update["$set"]["role"] == "student"
        assert update["$setOnInsert"]["settings.language"] == "ar"
        assert "settings" not in update["$set"]
        assert "phoneNumber" not in update["$set"]
        assert update["$setOnInsert"]["points"] == 0
        assert users.find_one_and_update.call_args.kwargs["upsert"] is True

    @pytest.mark.asyncio
    async def test_repeat_onboarding_keeps_existing_settings(self, mock_db, users):
        users.find_one_and_update.return_value = {"_id": "uid-1"}

        await ProfileService(mock_db).create_user_profile("uid-1", {
            "displayName": "Omar",
            "settings": {"theme": "dark"},
        })

        update = users.find_one_and_update.call_args[0][1]
        assert update["$set"]["settings.theme"] == "dark"
        # goals and language are never overwritten on an existing profile
        assert not any(key.startswith("settings") and key != "settings.theme" for key in update["$set"])
        assert "settings.theme" not in update["$setOnInsert"]
        assert update["$setOnInsert"]["settings.language"] == "ar"
        assert not any(key.startswith("settings.goals") for key in update["$setOnInsert"])

    @pytest.mark.asyncio
    async def test_rejects_unknown_role(self, mock_db):
        with pytest.raises(ValidationException) as exc:
            await ProfileService(mock_db).create_user_profile("uid-1", {"role": "admin"})
        assert exc.value.code == "INVALID_ROLE"

    @pytest.mark.asyncio
    async def test_update_ignores_protected_fields(self, mock_db):
        with pytest.raises(ValidationException) as exc:
            await ProfileService(mock_db).update_profile("uid-1", {"role": "sheikh", "points": 9999})
        assert exc.value.code == "NO_FIELDS_TO_UPDATE"

    @pytest.mark.asyncio
    async def test_goals_merge_over_defaults(self, mock_db, users):
        users.find_one.return_value = {"_id": "uid-1", "settings": {"goals": {"dailyMemoTarget": 2}}}

        goals = await ProfileService(mock_db).get_goals("uid-1")

        assert goals == {**DEFAULT_GOALS, "dailyMemoTarget": 2}

    @pytest.mark.asyncio
    async def test_negative_goal(self, mock_db, users):
        with pytest.raises(ValidationException) as exc:
            await ProfileService(mock_db).update_goals("uid-1", {"dailyReviewTarget": -1})
        assert exc.value.code == "INVALID_GOAL"
        users.update_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_settings_update_missing_profile(self, mock_db, users):
        users.find_one_and_update.return_value = None

        with pytest.raises(NotFoundException) as exc:
            await ProfileService(mock_db).update_settings("uid-1", {"theme": "dark"})
        assert exc.value.code == "PROFILE_NOT_FOUND"

    def test_dashboard_routes(self):
        assert get_dashboard_route("sheikh") == "/sheikh/dashboard"
        assert get_dashboard_route("student") == "/app/dashboard"
        assert get_dashboard_route(None) == "/app/dashboard"


# ─────────────────────────────────────────────────────────────────
# TeacherInviteService
# ─────────────────────────────────────────────────────────────────


class TestVerifyTeacherInvite:
    @pytest.mark.asyncio
    async def test_reports_remaining_uses(self, mock_db, invites):
        invites.find_one.return_value = {"_id": "MASJID", "isActive": True, "maxUses": 5, "usedCount": 2}

        result = await TeacherInviteService(mock_db).verify_teacher_invite(" masjid ")

        invites.find_one.assert_awaited_once_with({"_id": "MASJID"})
        assert result == {"code": "MASJID", "maxUses": 5, "usedCount": 2, "remaining": 3}

    @pytest.mark.asyncio
    async def test_unlimited_invite(self, mock_db, invites):
        invites.find_one.return_value = {"_id": "OPEN", "isActive": True, "maxUses": None, "usedCount": 40}

        result = await TeacherInviteService(mock_db).verify_teacher_invite("open")

        assert result["remaining"] is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("invite,exc_type,code", [
        (None, NotFoundException, "INVITE_NOT_FOUND"),
        ({"_id": "X", "isActive": False, "maxUses": None}, ForbiddenException, "INVITE_INACTIVE"),
        ({"_id": "X", "isActive": True, "maxUses": 3, "usedCount": 3}, ForbiddenException, "INVITE_EXHAUSTED"),
    ])
    async def test_unusable_invites(self, mock_db, invites, invite, exc_type, code):
        invites.find_one.return_value = invite

        with pytest.raises(exc_type) as exc:
            await TeacherInviteService(mock_db).verify_teacher_invite("X")
        assert exc.value.code == code

    @pytest.mark.asyncio
    async def test_blank_code(self, mock_db):
        with pytest.raises(ValidationException) as exc:
            await TeacherInviteService(mock_db).verify_teacher_invite("  ")
        assert exc.value.code == "INVITE_CODE_REQUIRED"


class TestCreateTeacherProfile:
    @pytest.mark.asyncio
    async def test_redeems_and_writes_sheikh_profile(self, mock_db, invites, users):
        invites.find_one.return_value = {"_id": "MASJID", "isActive": True, "maxUses": 2, "usedCount": 1}
        invites.update_one.return_value = MagicMock(modified_count=1)

        fields = await TeacherInviteService(mock_db).create_teacher_profile(
            "uid-1", "masjid", {"displayName": "Sheikh Ahmad", "email": "Ahmad@Example.com"},
        )

        assert invites.update_one.call_args[0][1]["$inc"] == {"usedCount": 1}
        assert fields["role"] == "sheikh"
        assert fields["inviteCodeUsed"] == "MASJID"
        assert fields["email"] == "ahmad@example.com"
        assert users.update_one.call_args.kwargs["upsert"] is True

    @pytest.mark.asyncio
    async def test_existing_account_keeps_settings_and_goals(self, mock_db, invites, users):
        invites.find_one.return_value = {"_id": "MASJID", "isActive": True, "maxUses": None, "usedCount": 0}
        invites.update_one.return_value = MagicMock(modified_count=1)

        await TeacherInviteService(mock_db).create_teacher_profile("uid-1", "MASJID", {"displayName": "Sheikh Ahmad"})

        update = users.update_one.call_args[0][1]
        assert update["$set"]["role"] == "sheikh"
        assert not any(key.startswith("settings") for key in update["$set"])
        assert update["$setOnInsert"]["settings.language"] == "ar"
        assert set(update["$set"]).isdisjoint(update["$setOnInsert"])

    @pytest.mark.asyncio
    async def test_lost_race_for_last_slot(self, mock_db, invites, users):
        invites.find_one.return_value = {"_id": "MASJID", "isActive": True, "maxUses": 2, "usedCount": 1}
        invites.update_one.return_value = MagicMock(modified_count=0)

        with pytest.raises(ForbiddenException) as exc:
            await TeacherInviteService(mock_db).create_teacher_profile("uid-1", "MASJID", {})
        assert exc.value.code == "INVITE_EXHAUSTED"
        users.update_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_code_on_create(self, mock_db, invites):
        invites.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")

        with pytest.raises(ConflictException) as exc:
            await TeacherInviteService(mock_db).create_teacher_invite("admin", code="masjid")
        assert exc.value.code == "INVITE_CODE_TAKEN"

    @pytest.mark.asyncio
    async def test_generated_code(self, mock_db, invites):
        invite = await TeacherInviteService(mock_db).create_teacher_invite("admin", max_uses=3)

        assert len(invite["_id"]) == TeacherInviteService.GENERATED_CODE_LENGTH
        assert invite["maxUses"] == 3
        assert invite["usedCount"] == 0

    @pytest.mark.asyncio
    async def test_invalid_max_uses(self, mock_db):
        with pytest.raises(ValidationException) as exc:
            await TeacherInviteService(mock_db).create_teacher_invite("admin", max_uses=0)
        assert exc.value.code == "INVALID_MAX_USES"


# ─────────────────────────────────────────────────────────────────
# Provider errors
# ─────────────────────────────────────────────────────────────────


class TestAuthErrors:
    def test_rest_message_with_suffix(self):
        assert map_rest_error("WEAK_PASSWORD : Password should be at least 6 characters") == "auth/weak-password"

    def test_unknown_rest_message(self):
        assert map_rest_error("SOMETHING_NEW") == "auth/internal-error"
        assert map_rest_error("") == "auth/internal-error"

    def test_known_code_keeps_status(self):
        exc = auth_error_to_exception(AuthProviderError("auth/wrong-password"))
        assert exc.status_code == 401
        assert exc.code == "auth/wrong-password"

    def test_unknown_code_falls_back_to_default(self):
        exc = auth_error_to_exception(AuthProviderError("auth/popup-blocked", "blocked"))
        assert exc.status_code == 400
        assert exc.code == "auth/default"
        assert exc.message == "blocked"


# ─────────────────────────────────────────────────────────────────
# Auth pipelines
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def profile_service():
    service = MagicMock()
    service.get_profile = AsyncMock(return_value=None)
    service.create_user_profile = AsyncMock(side_effect=lambda uid, data: {"_id": uid, **data})
    return service


@pytest.fixture
def auth_provider():
    provider = MagicMock()
    provider.create_user = AsyncMock(return_value="uid-1")
    provider.sign_in_with_password = AsyncMock(return_value={
        "uid": "uid-1", "idToken": "id", "refreshToken": "refresh", "expiresIn": "3600",
    })
    return provider


class TestAuthPipelines:
    @pytest.mark.asyncio
    async def test_session_without_profile_goes_to_onboarding(self, profile_service):
        session = await get_session_pipeline(profile_service, {"uid": "uid-1"})

        assert session["hasProfile"] is False
        assert session["redirectTo"] == "/onboarding"
        assert session["role"] is None

    @pytest.mark.asyncio
    async def test_session_for_sheikh(self, profile_service):
        profile_service.get_profile.return_value = {"_id": "uid-1", "role": "sheikh"}

        session = await get_session_pipeline(profile_service, {"uid": "uid-1"})

        assert session["redirectTo"] == "/sheikh/dashboard"

    @pytest.mark.asyncio
    async def test_register_creates_student(self, auth_provider, profile_service):
        result = await register_pipeline(auth_provider, profile_service, "a@b.com", "secret1", "Omar")

        data = profile_service.create_user_profile.call_args[0][1]
        assert data["role"] == "student"
        assert result["redirectTo"] == "/app/dashboard"

    @pytest.mark.asyncio
    async def test_register_maps_provider_error(self, auth_provider, profile_service):
        auth_provider.create_user.side_effect = AuthProviderError("auth/email-already-in-use")

        with pytest.raises(APIException) as exc:
            await register_pipeline(auth_provider, profile_service, "a@b.com", "secret1", "Omar")
        assert exc.value.status_code == 409
        assert exc.value.code == "auth/email-already-in-use"
        profile_service.create_user_profile.assert_not_called()

    @pytest.mark.asyncio
    async def test_login_returns_tokens_and_route(self, auth_provider, profile_service):
        profile_service.get_profile.return_value = {"_id": "uid-1", "role": "student"}

        result = await login_pipeline(auth_provider, profile_service, "a@b.com", "secret1")

        assert result["idToken"] == "id"
        assert result["hasProfile"] is True
        assert result["redirectTo"] == "/app/dashboard"

    @pytest.mark.asyncio
    async def test_onboarding_cannot_pick_sheikh_role(self, profile_service):
        result = await complete_onboarding_pipeline(
            profile_service,
            {"uid": "uid-1", "phone_number": "+966500000000"},
            {"displayName": "Omar", "role": "sheikh"},
        )

        data = profile_service.create_user_profile.call_args[0][1]
        assert data["role"] == "student"
        assert data["phoneNumber"] == "+966500000000"
        assert result["redirectTo"] == "/app/dashboard"
