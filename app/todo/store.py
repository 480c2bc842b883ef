"""
Todo MongoDB 存储层

TodoRepository 是接口层依赖的抽象，MongoTodoRepository 为默认实现；
测试可替换为内存实现。

容错策略：不降级、不重试。驱动异常与非法 ObjectId 统一包装为
TodoStoreError 抛出，由接口层映射为 500 并回显错误信息。
列表查询遇到无法解析的文档时跳过并记录告警，单条操作则同样抛出 TodoStoreError。
"""

from datetime import datetime, timezone
from typing import Any, Protocol

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection
from pydantic import ValidationError
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from app.observability.metrics import STORE_OPERATION_TOTAL
from app.todo.schemas import DEFAULT_CATEGORY, Todo

log = structlog.get_logger()


class TodoStoreError(Exception):
    """存储层失败（连接、查询、非法 id 等）"""


class TodoRepository(Protocol):
    """接口层依赖的 Todo 存储抽象"""

    async def list_all(self) -> list[Todo]: ...

    async def create(self, task: str, category: str = DEFAULT_CATEGORY) -> Todo: ...

    async def update(self, todo_id: str, changes: dict[str, Any]) -> Todo | None: ...

    async def delete(self, todo_id: str) -> Todo | None: ...


def _utc_now_ms() -> datetime:
    """BSON 日期只保留毫秒，写入前截断，保证创建响应与后续读取一致"""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _to_todo(doc: dict) -> Todo:
    """文档缺字段或类型不符时按存储错误处理"""
    try:
        return Todo.from_document(doc)
    except ValidationError as e:
        raise TodoStoreError(
            f"malformed todo document {doc.get('_id')}: {e.error_count()} invalid field(s)"
        ) from e


def _object_id(todo_id: str) -> ObjectId:
    try:
        return ObjectId(todo_id)
    except (InvalidId, TypeError) as e:
        raise TodoStoreError(str(e)) from e


class MongoTodoRepository:
    """基于 motor 集合的 Todo CRUD"""

    def __init__(self, collection: AsyncIOMotorCollection):
        self._collection = collection

    async def list_all(self) -> list[Todo]:
        """全部记录，按 createdAt 倒序"""
        try:
            # createdAt 为毫秒精度，同一毫秒内按 _id 的自增计数决胜
            cursor = self._collection.find().sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            STORE_OPERATION_TOTAL.labels(operation="list", status="error").inc()
            raise TodoStoreError(str(e)) from e

        STORE_OPERATION_TOTAL.labels(operation="list", status="success").inc()
        todos = []
        for doc in docs:
            try:
                todos.append(_to_todo(doc))
            except TodoStoreError as e:
                # 单条脏数据不拖垮整个列表
                log.warning("跳过无法解析的 Todo 文档", error=str(e))
        return todos

    async def create(self, task: str, category: str = DEFAULT_CATEGORY) -> Todo:
        doc = {
            "task": task,
            "category": category,
            "completed": False,
            "createdAt": _utc_now_ms(),
        }
        try:
            result = await self._collection.insert_one(doc)
        except PyMongoError as e:
            STORE_OPERATION_TOTAL.labels(operation="create", status="error").inc()
            raise TodoStoreError(str(e)) from e

        doc["_id"] = result.inserted_id
        STORE_OPERATION_TOTAL.labels(operation="create", status="success").inc()
        log.info("Todo 已创建", todo_id=str(result.inserted_id))
        return _to_todo(doc)

    async def update(self, todo_id: str, changes: dict[str, Any]) -> Todo | None:
        """只 $set 传入的字段；changes 为空时原样返回记录"""
        oid = _object_id(todo_id)
        try:
            if changes:
                doc = await self._collection.find_one_and_update(
                    {"_id": oid},
                    {"$set": changes},
                    return_document=ReturnDocument.AFTER,
                )
            else:
                doc = await self._collection.find_one({"_id": oid})
        except PyMongoError as e:
            STORE_OPERATION_TOTAL.labels(operation="update", status="error").inc()
            raise TodoStoreError(str(e)) from e

        if doc is None:
            STORE_OPERATION_TOTAL.labels(operation="update", status="not_found").inc()
            return None
        STORE_OPERATION_TOTAL.labels(operation="update", status="success").inc()
        log.info("Todo 已更新", todo_id=todo_id, fields=list(changes))
        return _to_todo(doc)

    async def delete(self, todo_id: str) -> Todo | None:
        oid = _object_id(todo_id)
        try:
            doc = await self._collection.find_one_and_delete({"_id": oid})
        except PyMongoError as e:
            STORE_OPERATION_TOTAL.labels(operation="delete", status="error").inc()
            raise TodoStoreError(str(e)) from e

        if doc is None:
            STORE_OPERATION_TOTAL.labels(operation="delete", status="not_found").inc()
            return None
        STORE_OPERATION_TOTAL.labels(operation="delete", status="success").inc()
        log.info("Todo 已删除", todo_id=todo_id)
        return _to_todo(doc)
