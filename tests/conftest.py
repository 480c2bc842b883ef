"""Root pytest configuration for the Todo API tests.

API tests run against an app built by create_app() with an in-memory
TodoRepository and a mocked MongoHandle, so no MongoDB is needed.
The `mongo_client` fixture runs the same app over MongoTodoRepository on
mongomock-motor, which applies BSON round-tripping (millisecond dates).
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from app.config import Settings
from app.db.mongo import MongoHandle
from app.main import create_app
from app.todo.schemas import DEFAULT_CATEGORY, Todo
from app.todo.store import MongoTodoRepository, TodoStoreError


class InMemoryTodoRepository:
    """Dict-backed TodoRepository with the same id / ordering semantics."""

    def __init__(self):
        self.docs: dict[str, dict] = {}
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)
        self.fail_with: str | None = None

    def _check(self):
        if self.fail_with:
            raise TodoStoreError(self.fail_with)

    def _lookup(self, todo_id: str) -> dict | None:
        if not ObjectId.is_valid(todo_id):
            raise TodoStoreError(f"'{todo_id}' is not a valid ObjectId")
        return self.docs.get(todo_id)

    async def list_all(self) -> list[Todo]:
        self._check()
        docs = sorted(self.docs.values(), key=lambda d: d["createdAt"], reverse=True)
        return [Todo.from_document(d) for d in docs]

    async def create(self, task: str, category: str = DEFAULT_CATEGORY) -> Todo:
        self._check()
        self._clock += timedelta(seconds=1)
        doc = {
            "_id": ObjectId(),
            "task": task,
            "category": category,
            "completed": False,
            "createdAt": self._clock,
        }
        self.docs[str(doc["_id"])] = doc
        return Todo.from_document(doc)

    async def update(self, todo_id: str, changes: dict) -> Todo | None:
        self._check()
        doc = self._lookup(todo_id)
        if doc is None:
            return None
        doc.update(changes)
        return Todo.from_document(doc)

    async def delete(self, todo_id: str) -> Todo | None:
        self._check()
        doc = self._lookup(todo_id)
        if doc is None:
            return None
        del self.docs[todo_id]
        return Todo.from_document(doc)


@pytest.fixture
def settings():
    return Settings(MONGODB_URI="mongodb://localhost:27017", MONGODB_DB="todo_test")


@pytest.fixture
def mongo_handle():
    handle = MagicMock(spec=MongoHandle)
    handle.ping = AsyncMock(return_value=None)
    handle.connect = AsyncMock(return_value=True)
    return handle


@pytest.fixture
def repo():
    return InMemoryTodoRepository()


@pytest.fixture
def client(settings, mongo_handle, repo):
    app = create_app(app_settings=settings, mongo=mongo_handle, repository=repo)
    return TestClient(app)


@pytest.fixture
def mongo_repo():
    return MongoTodoRepository(AsyncMongoMockClient(tz_aware=True)["todo_test"]["todos"])


@pytest.fixture
def mongo_client(settings, mongo_handle, mongo_repo):
    app = create_app(app_settings=settings, mongo=mongo_handle, repository=mongo_repo)
    return TestClient(app)
