"""Unit tests for points, the rewards catalog and store purchases."""

import pytest
from unittest.mock import MagicMock

from common.utils.exceptions import ConflictException, NotFoundException, ValidationException
from halaqa.services.points import PointsService, calculate_points_for_log, get_reward, list_rewards


@pytest.fixture
def users(collections):
    return collections["users"]


@pytest.fixture
def service(mock_db):
    return PointsService(mock_db)


class TestCalculatePoints:
    def test_memorization_is_worth_triple(self):
        assert calculate_points_for_log("memorization", 5) == 15

    def test_revision_one_per_page(self):
        assert calculate_points_for_log("revision", 5) == 5

    def test_partial_pages_round_down(self):
        assert calculate_points_for_log("memorization", 2.5) == 6

    def test_unknown_type_defaults_to_one(self):
        assert calculate_points_for_log("other", 3) == 3


class TestRewardsCatalog:
    def test_sorted_by_cost_descending(self):
        costs = [r["cost"] for r in list_rewards()]
        assert costs == sorted(costs, reverse=True)

    def test_filters_by_type_and_tier(self):
        frames = list_rewards(reward_type="frame", tier="common")
        assert frames
        assert all(r["type"] == "frame" and r["tier"] == "common" for r in frames)

    def test_get_reward(self):
        assert get_reward("badge_star")["cost"] == 50
        assert get_reward("missing") is None


# ─────────────────────────────────────────────────────────────────
# Purchases
# ─────────────────────────────────────────────────────────────────


class TestSpendPoints:
    @pytest.mark.asyncio
    async def test_deducts_and_marks_owned_in_one_update(self, service, users):
        users.find_one_and_update.return_value = {"_id": "student-1", "points": 40}

        result = await service.spend_points("student-1", "badge_star", 50)

        query, update = users.find_one_and_update.call_args[0]
        assert query == {"_id": "student-1", "points": {"$gte": 50}, "inventory.badge_star": {"$ne": True}}
        assert update["$inc"] == {"points": -50}
        assert update["$set"]["inventory.badge_star"] is True
        assert result == {"itemId": "badge_star", "points": 40}

    @pytest.mark.asyncio
    async def test_insufficient_funds(self, service, users):
        users.find_one_and_update.return_value = None
        users.find_one.return_value = {"_id": "student-1", "points": 10, "inventory": {}}

        with pytest.raises(ValidationException) as exc:
            await service.spend_points("student-1", "badge_star", 50)
        assert exc.value.code == "INSUFFICIENT_FUNDS"

    @pytest.mark.asyncio
    async def test_already_owned(self, service, users):
        users.find_one_and_update.return_value = None
        users.find_one.return_value = {"_id": "student-1", "points": 500, "inventory": {"badge_star": True}}

        with pytest.raises(ConflictException) as exc:
            await service.spend_points("student-1", "badge_star", 50)
        assert exc.value.code == "ALREADY_OWNED"

    @pytest.mark.asyncio
    async def test_unknown_reward(self, service, users):
        with pytest.raises(NotFoundException) as exc:
            await service.purchase_reward("student-1", "badge_unicorn")
        assert exc.value.code == "REWARD_NOT_FOUND"
        users.find_one_and_update.assert_not_called()


class TestEquipItem:
    @pytest.mark.asyncio
    async def test_requires_ownership(self, service, users):
        users.update_one.return_value = MagicMock(matched_count=0)

        with pytest.raises(ValidationException) as exc:
            await service.equip_item("student-1", "frame", "frame_gold")
        assert exc.value.code == "ITEM_NOT_OWNED"
        assert users.update_one.call_args[0][0] == {"_id": "student-1", "inventory.frame_gold": True}

    @pytest.mark.asyncio
    async def test_clearing_a_slot_skips_ownership_check(self, service, users):
        users.update_one.return_value = MagicMock(matched_count=1)

        result = await service.equip_item("student-1", "badge", None)

        assert users.update_one.call_args[0][0] == {"_id": "student-1"}
        assert result == {"equippedBadge": None}

    @pytest.mark.asyncio
    async def test_unknown_slot(self, service):
        with pytest.raises(ValidationException) as exc:
            await service.equip_item("student-1", "hat", "x")
        assert exc.value.code == "INVALID_ITEM_TYPE"


class TestWalletAndLeaderboard:
    @pytest.mark.asyncio
    async def test_wallet_lists_owned_items(self, service, users):
        users.find_one.return_value = {
            "_id": "student-1",
            "points": 30,
            "totalPoints": 300,
            "inventory": {"badge_star": True, "frame_round": False},
            "equippedBadge": "badge_star",
        }

        wallet = await service.get_wallet("student-1")

        assert wallet["inventory"] == ["badge_star"]
        assert wallet["equippedBadge"] == "badge_star"
        assert wallet["equippedFrame"] is None

    @pytest.mark.asyncio
    async def test_leaderboard_ranks(self, service, users, make_cursor):
        users.find.return_value = make_cursor([
            {"_id": "a", "displayName": "Ali", "totalPoints": 90},
            {"_id": "b", "displayName": "Bilal", "totalPoints": 40},
        ])

        board = await service.get_leaderboard(["a", "b"])

        assert [(e["rank"], e["uid"]) for e in board] == [(1, "a"), (2, "b")]

    @pytest.mark.asyncio
    async def test_add_points_rejects_non_positive(self, service):
        with pytest.raises(ValidationException) as exc:
            await service.add_points("student-1", 0)
        assert exc.value.code == "INVALID_POINTS_AMOUNT"
