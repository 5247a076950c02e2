"""Unit tests for the shared transaction, i18n and date helpers."""

import json
import pytest
from datetime import date
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

from common.config import BaseAppSettings
from common.database import run_in_transaction
from common.i18n import I18nService
from common.utils.dates import month_prefix, parse_iso_date
from common.utils.exceptions import ValidationException
from common.utils.ids import parse_object_id, serialize_doc
from halaqa.database import COLLECTION_INDEXES, ensure_indexes

LOCALES_DIR = Path(__file__).resolve().parent.parent / "locales"


# ─────────────────────────────────────────────────────────────────
# run_in_transaction
# ─────────────────────────────────────────────────────────────────


class TestRunInTransaction:
    @pytest.mark.asyncio
    async def test_disabled_runs_without_session(self):
        client = MagicMock()
        callback = AsyncMock(return_value="done")

        result = await run_in_transaction(client, callback, enabled=False)

        callback.assert_awaited_once_with(None)
        client.start_session.assert_not_called()
        assert result == "done"

    @pytest.mark.asyncio
    async def test_enabled_uses_with_transaction(self):
        session = MagicMock()
        session.__aenter__ = AsyncMock(return_value=session)
        session.__aexit__ = AsyncMock(return_value=False)

        async def _with_transaction(cb):
            return await cb(session)

        session.with_transaction = AsyncMock(side_effect=_with_transaction)
        client = MagicMock()
        client.start_session = AsyncMock(return_value=session)
        callback = AsyncMock(return_value="committed")

        result = await run_in_transaction(client, callback)

        callback.assert_awaited_once_with(session)
        assert result == "committed"

    @pytest.mark.asyncio
    async def test_errors_propagate(self):
        callback = AsyncMock(side_effect=ValidationException(code="INVITE_EXHAUSTED"))

        with pytest.raises(ValidationException):
            await run_in_transaction(None, callback)


# ─────────────────────────────────────────────────────────────────
# I18nService
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def i18n(tmp_path):
    for lang, messages in {
        "ar": {"CIRCLE_NOT_FOUND": "الحلقة غير موجودة.", "GREETING": "أهلاً {name}"},
        "en": {"CIRCLE_NOT_FOUND": "Circle not found."},
    }.items():
        (tmp_path / lang).mkdir()
        (tmp_path / lang / "errors.json").write_text(json.dumps(messages, ensure_ascii=False), encoding="utf-8")
    return I18nService(locales_dir=str(tmp_path), default_language="ar")


class TestI18nService:
    def test_detects_languages(self, i18n):
        assert sorted(i18n.supported_languages) == ["ar", "en"]

    def test_translates(self, i18n):
        assert i18n.t("errors.CIRCLE_NOT_FOUND", "en") == "Circle not found."

    def test_falls_back_to_default_language(self, i18n):
        assert i18n.t("errors.GREETING", "en", name="Omar") == "أهلاً Omar"

    def test_missing_key_uses_default(self, i18n):
        assert i18n.t("errors.NOPE", "en", default="fallback") == "fallback"
        assert i18n.t("errors.NOPE", "en") == "errors.NOPE"

    def test_auth_codes_are_plain_keys(self, tmp_path):
        (tmp_path / "ar").mkdir()
        (tmp_path / "ar" / "errors.json").write_text(json.dumps({"auth/wrong-password": "x"}), encoding="utf-8")
        service = I18nService(locales_dir=str(tmp_path), default_language="ar")
        assert service.t("errors.auth/wrong-password") == "x"

    @pytest.mark.parametrize("header,expected", [
        ("en-US,en;q=0.9", "en"),
        ("fr-FR, ar;q=0.8", "ar"),
        ("fr", "ar"),
        (None, "ar"),
    ])
    def test_resolve_language(self, i18n, header, expected):
        assert i18n.resolve_language(header) == expected


def test_shipped_locales_have_the_same_keys():
    ar = json.loads((LOCALES_DIR / "ar" / "errors.json").read_text(encoding="utf-8"))
    en = json.loads((LOCALES_DIR / "en" / "errors.json").read_text(encoding="utf-8"))
    assert set(ar) == set(en)
    assert "auth/default" in ar


# ─────────────────────────────────────────────────────────────────
# Dates and ids
# ─────────────────────────────────────────────────────────────────


class TestDatesAndIds:
    def test_parse_iso_date(self):
        assert parse_iso_date("2026-02-28") == date(2026, 2, 28)

    def test_parse_iso_date_rejects_impossible_day(self):
        with pytest.raises(ValidationException) as exc:
            parse_iso_date("2026-02-30")
        assert exc.value.code == "INVALID_DATE"

    def test_month_prefix(self):
        assert month_prefix(2026, 3) == "2026-03"

    def test_parse_object_id(self):
        with pytest.raises(ValidationException) as exc:
            parse_object_id("123", "circleId")
        assert exc.value.detail["details"] == {"field": "circleId"}

    def test_serialize_doc(self):
        oid = parse_object_id("5f1d7f3e9b1e8a3b4c5d6e7f")
        assert serialize_doc({"_id": oid, "name": "x"}) == {"name": "x", "id": "5f1d7f3e9b1e8a3b4c5d6e7f"}


# ─────────────────────────────────────────────────────────────────
# Indexes
# ─────────────────────────────────────────────────────────────────


class TestEnsureIndexes:
    @pytest.mark.asyncio
    async def test_creates_declared_indexes(self, mock_db, collections):
        for name in COLLECTION_INDEXES:
            collections[name].create_indexes.return_value = ["idx"]

        await ensure_indexes(mock_db)

        for name, indexes in COLLECTION_INDEXES.items():
            collections[name].create_indexes.assert_awaited_once_with(indexes)

    def test_membership_pair_is_unique(self):
        documents = {index.document["name"]: index.document for index in COLLECTION_INDEXES["circleMembers"]}
        assert documents["circle_user_unique"]["unique"] is True


# ─────────────────────────────────────────────────────────────────
# Settings validation
# ─────────────────────────────────────────────────────────────────


class TestValidateRequired:
    def test_production_needs_firebase(self):
        settings = BaseAppSettings(
            _env_file=None,
            ENVIRONMENT="production",
            FIREBASE_CREDENTIALS_PATH=None,
            FIREBASE_API_KEY=None,
        )

        with pytest.raises(ValueError) as exc:
            settings.validate_required()
        assert "FIREBASE_CREDENTIALS_PATH" in str(exc.value)
        assert "FIREBASE_API_KEY" in str(exc.value)

    def test_development_defaults_pass(self):
        BaseAppSettings(
            _env_file=None,
            ENVIRONMENT="development",
            FIREBASE_API_KEY=None,
            DEFAULT_LANGUAGE="ar",
            SUPPORTED_LANGUAGES="ar,en",
        ).validate_required()

    def test_default_language_must_be_supported(self):
        settings = BaseAppSettings(_env_file=None, DEFAULT_LANGUAGE="fr", SUPPORTED_LANGUAGES="ar,en")

        with pytest.raises(ValueError) as exc:
            settings.validate_required()
        assert "DEFAULT_LANGUAGE" in str(exc.value)
