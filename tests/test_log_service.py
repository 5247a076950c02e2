"""Unit tests for LogService, log statistics and the review pipeline."""

import pytest
from datetime import date
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId

from common.utils.exceptions import (
    BadRequestException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from halaqa.pipelines.logs import review_log_pipeline
from halaqa.services.logs import LogService, compute_student_stats
from halaqa.services.logs.log_stats import arabic_day_name, last_n_days


@pytest.fixture
def logs(collections):
    return collections["logs"]


@pytest.fixture
def users(collections):
    return collections["users"]


@pytest.fixture
def service(mock_db):
    return LogService(mock_db)


@pytest.fixture
def pending_log_doc(sample_circle_id):
    return {
        "_id": ObjectId(),
        "studentId": "student-1",
        "circleId": sample_circle_id,
        "type": "memorization",
        "amount": {"pages": 5, "surah": "الملك"},
        "date": "2026-10-19",
        "status": "pending_approval",
        "taskId": None,
    }


# ─────────────────────────────────────────────────────────────────
# add_log / list_logs
# ─────────────────────────────────────────────────────────────────


class TestAddLog:
    @pytest.mark.asyncio
    async def test_new_log_awaits_approval(self, service, logs, sample_circle_id):
        logs.insert_one.return_value = MagicMock(inserted_id=ObjectId())

        log = await service.add_log("student-1", sample_circle_id, "revision", {"pages": 4}, log_date="2026-10-18")

        doc = logs.insert_one.call_args[0][0]
        assert doc["status"] == "pending_approval"
        assert doc["date"] == "2026-10-18"
        assert doc["amount"]["pages"] == 4
        assert log["teacherNotes"] is None

    @pytest.mark.asyncio
    async def test_defaults_date_to_today(self, service, logs, sample_circle_id):
        logs.insert_one.return_value = MagicMock(inserted_id=ObjectId())

        log = await service.add_log("student-1", sample_circle_id, "memorization", {"pages": 1})

        assert len(log["date"]) == 10
        date.fromisoformat(log["date"])

    @pytest.mark.asyncio
    async def test_rejects_unknown_type(self, service, logs, sample_circle_id):
        with pytest.raises(ValidationException) as exc:
            await service.add_log("student-1", sample_circle_id, "tilawah", {"pages": 1})
        assert exc.value.code == "INVALID_LOG_TYPE"
        logs.insert_one.assert_not_called()


class TestListLogs:
    @pytest.mark.asyncio
    async def test_has_more_when_extra_row_returned(self, service, logs, make_cursor):
        docs = [{"_id": ObjectId(), "date": "2026-10-01"} for _ in range(11)]
        cursor = make_cursor(docs)
        logs.find.return_value = cursor

        result = await service.list_logs("student-1", page=2)

        assert len(result["logs"]) == 10
        assert result["hasMore"] is True
        assert result["page"] == 2
        cursor.skip.assert_called_once_with(10)

    @pytest.mark.asyncio
    async def test_filters_month_and_escapes_search(self, service, logs, make_cursor):
        logs.find.return_value = make_cursor([])

        await service.list_logs("student-1", month="2026-10", search="a+b")

        query = logs.find.call_args[0][0]
        assert query["date"] == {"$regex": "^2026-10"}
        assert query["$or"][0]["amount.surah"]["$regex"] == r"a\+b"

    @pytest.mark.asyncio
    async def test_rejects_bad_month(self, service):
        with pytest.raises(ValidationException) as exc:
            await service.list_logs("student-1", month="Oct")
        assert exc.value.code == "INVALID_DATE"


# ─────────────────────────────────────────────────────────────────
# Review
# ─────────────────────────────────────────────────────────────────


class TestApproveLog:
    @pytest.mark.asyncio
    async def test_awards_three_points_per_memorized_page(self, service, logs, users, pending_log_doc):
        logs.find_one.return_value = pending_log_doc
        logs.find_one_and_update.return_value = {**pending_log_doc, "status": "approved", "pointsAwarded": 15}

        log = await service.approve_log(str(pending_log_doc["_id"]), "sheikh-1", "ممتاز")

        fields = logs.find_one_and_update.call_args[0][1]["$set"]
        assert fields["status"] == "approved"
        assert fields["pointsAwarded"] == 15
        assert fields["teacherNotes"] == "ممتاز"
        users.update_one.assert_awaited_once()
        assert users.update_one.call_args[0][0] == {"_id": pending_log_doc["studentId"]}
        assert users.update_one.call_args[0][1]["$inc"] == {"points": 15, "totalPoints": 15}
        assert log["status"] == "approved"

    @pytest.mark.asyncio
    async def test_log_without_pages_counts_as_one(self, service, logs, users, pending_log_doc):
        doc = {**pending_log_doc, "type": "revision", "amount": {"pages": 0}}
        logs.find_one.return_value = doc
        logs.find_one_and_update.return_value = {**doc, "status": "approved"}

        await service.approve_log(str(doc["_id"]), "sheikh-1")

        assert logs.find_one_and_update.call_args[0][1]["$set"]["pointsAwarded"] == 1

    @pytest.mark.asyncio
    async def test_reviewed_log_cannot_be_approved(self, service, logs, users, pending_log_doc):
        logs.find_one.return_value = {**pending_log_doc, "status": "rejected"}

        with pytest.raises(ConflictException) as exc:
            await service.approve_log(str(pending_log_doc["_id"]), "sheikh-1")
        assert exc.value.code == "INVALID_STATUS_TRANSITION"
        users.update_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_log(self, service, logs):
        logs.find_one.return_value = None

        with pytest.raises(NotFoundException) as exc:
            await service.approve_log(str(ObjectId()), "sheikh-1")
        assert exc.value.code == "LOG_NOT_FOUND"


class TestRejectLog:
    @pytest.mark.asyncio
    async def test_rejects_without_points(self, service, logs, users, pending_log_doc):
        logs.find_one.return_value = pending_log_doc
        logs.find_one_and_update.return_value = {**pending_log_doc, "status": "rejected"}

        await service.reject_log(str(pending_log_doc["_id"]), "sheikh-1", "أعد المراجعة")

        fields = logs.find_one_and_update.call_args[0][1]["$set"]
        assert fields["status"] == "rejected"
        assert "pointsAwarded" not in fields
        users.update_one.assert_not_called()


class TestEnsureLogInCircles:
    @pytest.mark.asyncio
    async def test_log_in_other_circle_is_forbidden(self, service, logs, pending_log_doc):
        logs.find_one.return_value = pending_log_doc

        with pytest.raises(ForbiddenException) as exc:
            await service.ensure_log_in_circles(str(pending_log_doc["_id"]), [str(ObjectId())])
        assert exc.value.code == "NOT_CIRCLE_SHEIKH"


# ─────────────────────────────────────────────────────────────────
# review_log_pipeline
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def review_services(sample_circle_id):
    log_service = MagicMock()
    log_service.ensure_log_in_circles = AsyncMock(return_value={"id": "log-1"})
    log_service.approve_log = AsyncMock(return_value={"id": "log-1", "status": "approved", "taskId": "task-1"})
    log_service.reject_log = AsyncMock(return_value={"id": "log-1", "status": "rejected", "taskId": "task-1"})
    task_service = MagicMock()
    task_service.set_status = AsyncMock()
    circle_service = MagicMock()
    circle_service.list_sheikh_circles = AsyncMock(return_value=[{"id": sample_circle_id}])
    return log_service, task_service, circle_service


class TestReviewLogPipeline:
    @pytest.mark.asyncio
    async def test_approval_completes_linked_task(self, review_services, sample_circle_id):
        log_service, task_service, circle_service = review_services

        log = await review_log_pipeline(log_service, task_service, circle_service, "log-1", "sheikh-1", "approve")

        log_service.ensure_log_in_circles.assert_awaited_once_with("log-1", [sample_circle_id])
        task_service.set_status.assert_awaited_once_with("task-1", "completed")
        assert log["status"] == "approved"

    @pytest.mark.asyncio
    async def test_rejection_reopens_linked_task(self, review_services):
        log_service, task_service, circle_service = review_services

        await review_log_pipeline(log_service, task_service, circle_service, "log-1", "sheikh-1", "reject", "ناقص")

        log_service.reject_log.assert_awaited_once_with("log-1", "sheikh-1", "ناقص")
        task_service.set_status.assert_awaited_once_with("task-1", "pending")

    @pytest.mark.asyncio
    async def test_task_failure_does_not_undo_review(self, review_services):
        log_service, task_service, circle_service = review_services
        task_service.set_status.side_effect = NotFoundException(message="gone", code="TASK_NOT_FOUND")

        log = await review_log_pipeline(log_service, task_service, circle_service, "log-1", "sheikh-1", "approve")

        assert log["status"] == "approved"

    @pytest.mark.asyncio
    async def test_log_without_task(self, review_services):
        log_service, task_service, circle_service = review_services
        log_service.approve_log.return_value = {"id": "log-1", "status": "approved", "taskId": None}

        await review_log_pipeline(log_service, task_service, circle_service, "log-1", "sheikh-1", "approve")

        task_service.set_status.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_action(self, review_services):
        log_service, task_service, circle_service = review_services

        with pytest.raises(BadRequestException) as exc:
            await review_log_pipeline(log_service, task_service, circle_service, "log-1", "sheikh-1", "approved")
        assert exc.value.code == "INVALID_REVIEW_ACTION"
        log_service.approve_log.assert_not_called()


# ─────────────────────────────────────────────────────────────────
# Statistics
# ─────────────────────────────────────────────────────────────────


class TestComputeStudentStats:
    # Wednesday; the week started Monday 2026-10-19
    TODAY = date(2026, 10, 21)

    def _log(self, log_type, day, pages, status="approved"):
        return {"type": log_type, "date": day, "amount": {"pages": pages}, "status": status}

    def test_totals(self):
        stats = compute_student_stats([
            self._log("memorization", "2026-10-21", 2),
            self._log("revision", "2026-10-18", 4),
            self._log("memorization", "2026-09-30", 3),
            self._log("memorization", "2026-10-21", 10, status="pending_approval"),
        ], self.TODAY)

        assert stats["totalPagesThisMonth"] == 6
        assert stats["totalPagesThisWeek"] == 2
        assert stats["memorizationPages"] == 5
        assert stats["revisionPages"] == 4
        assert stats["typeBreakdown"] == {"memorization": 5, "revision": 4}

    def test_chart_windows(self):
        stats = compute_student_stats([
            self._log("memorization", "2026-10-21", 2),
            self._log("revision", "2026-09-22", 1),
        ], self.TODAY)

        assert [d["date"] for d in stats["weeklyData"]][0] == "2026-10-15"
        assert stats["weeklyData"][-1] == {"date": "2026-10-21", "pages": 2}
        assert stats["weeklyChartData"][-1]["day"] == "الأربعاء"
        assert len(stats["monthlyChartData"]) == 30
        assert stats["monthlyChartData"][0] == {"day": 22, "date": "2026-09-22", "memorized": 0, "revised": 1}

    def test_no_logs(self):
        stats = compute_student_stats([], self.TODAY)

        assert stats["totalPagesThisMonth"] == 0
        assert all(d["pages"] == 0 for d in stats["weeklyData"])


def test_arabic_day_names_start_on_sunday():
    assert arabic_day_name(date(2026, 10, 18)) == "الأحد"
    assert arabic_day_name(date(2026, 10, 23)) == "الجمعة"


def test_last_n_days_oldest_first():
    days = last_n_days(date(2026, 3, 2), 3)
    assert days == [date(2026, 2, 28), date(2026, 3, 1), date(2026, 3, 2)]
