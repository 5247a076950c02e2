"""Shared test fixtures for Halaqa backend tests."""

from collections import defaultdict
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId


def _make_collection():
    collection = AsyncMock()
    # Motor's find() returns a cursor synchronously (not a coroutine),
    # so use MagicMock for it. Async methods like find_one, insert_one,
    # count_documents etc. stay as AsyncMock.
    collection.find = MagicMock()
    return collection


def _make_cursor(docs):
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=list(docs))
    return cursor


@pytest.fixture
def collections():
    """One mock collection per name, created on first access."""
    return defaultdict(_make_collection)


@pytest.fixture
def mock_db(collections):
    db = MagicMock()
    db.__getitem__ = MagicMock(side_effect=lambda name: collections[name])
    # No client: run_in_transaction runs callbacks without a session
    db.client = None
    return db


@pytest.fixture
def make_cursor():
    return _make_cursor


@pytest.fixture
def sample_object_id():
    return ObjectId()


@pytest.fixture
def sample_circle_id():
    return str(ObjectId())
