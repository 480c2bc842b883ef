"""Tests for MongoTodoRepository against mongomock-motor.

Run with: pytest tests/test_store.py -v
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from mongomock_motor import AsyncMongoMockClient
from pymongo.errors import ServerSelectionTimeoutError

from app.todo.store import MongoTodoRepository, TodoStoreError


@pytest.fixture
def collection():
    return AsyncMongoMockClient(tz_aware=True)["todo_test"]["todos"]


@pytest.fixture
def store(collection):
    return MongoTodoRepository(collection)


class TestMongoTodoRepository:

    @pytest.mark.asyncio
    async def test_create_persists_defaults(self, store, collection):
        todo = await store.create("buy milk")

        doc = await collection.find_one({"_id": ObjectId(todo.id)})
        assert doc["task"] == "buy milk"
        assert doc["category"] == "other"
        assert doc["completed"] is False
        assert doc["createdAt"] is not None

    @pytest.mark.asyncio
    async def test_list_is_newest_first(self, store):
        first = await store.create("A")
        second = await store.create("B")

        todos = await store.list_all()

        assert [t.id for t in todos] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_update_sets_only_given_fields(self, store):
        todo = await store.create("buy milk", "shopping")

        updated = await store.update(todo.id, {"completed": True})

        assert updated.completed is True
        assert updated.task == "buy milk"
        assert updated.category == "shopping"

    @pytest.mark.asyncio
    async def test_update_without_changes_returns_current(self, store):
        todo = await store.create("buy milk")

        same = await store.update(todo.id, {})

        assert same.id == todo.id
        assert same.task == "buy milk"

    @pytest.mark.asyncio
    async def test_update_missing_returns_none(self, store):
        assert await store.update(str(ObjectId()), {"completed": True}) is None

    @pytest.mark.asyncio
    async def test_delete_returns_record(self, store):
        todo = await store.create("buy milk")

        deleted = await store.delete(todo.id)

        assert deleted.id == todo.id
        assert await store.list_all() == []

    @pytest.mark.asyncio
    async def test_delete_missing_returns_none(self, store):
        assert await store.delete(str(ObjectId())) is None

    @pytest.mark.asyncio
    async def test_malformed_id_raises_store_error(self, store):
        with pytest.raises(TodoStoreError):
            await store.delete("123")

    @pytest.mark.asyncio
    async def test_driver_error_is_wrapped(self):
        collection = MagicMock()
        collection.insert_one = AsyncMock(side_effect=ServerSelectionTimeoutError("No servers found"))

        with pytest.raises(TodoStoreError, match="No servers found"):
            await MongoTodoRepository(collection).create("buy milk")

    @pytest.mark.asyncio
    async def test_created_at_matches_stored_value(self, store):
        todo = await store.create("buy milk")

        [listed] = await store.list_all()

        assert todo.created_at.microsecond % 1000 == 0
        assert listed.created_at == todo.created_at

    @pytest.mark.asyncio
    async def test_list_skips_malformed_documents(self, store, collection):
        good = await store.create("buy milk")
        await collection.insert_one({"category": "work"})

        todos = await store.list_all()

        assert [t.id for t in todos] == [good.id]

    @pytest.mark.asyncio
    async def test_malformed_document_on_single_op_raises_store_error(self, store, collection):
        result = await collection.insert_one({"category": "work"})

        with pytest.raises(TodoStoreError, match="malformed todo document"):
            await store.delete(str(result.inserted_id))
