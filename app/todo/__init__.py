"""
Todo 模块：单资源 CRUD

提供 MongoDB 持久化的 TodoRepository 以及请求/响应 schema，
供 /api/todos 路由使用。
"""

from app.todo.schemas import ApiResponse, Todo, TodoCreate, TodoUpdate
from app.todo.store import MongoTodoRepository, TodoRepository, TodoStoreError

__all__ = [
    "ApiResponse",
    "MongoTodoRepository",
    "Todo",
    "TodoCreate",
    "TodoRepository",
    "TodoStoreError",
    "TodoUpdate",
]
