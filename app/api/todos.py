"""
/api/todos 接口：Todo 的增删改查

端点：
- GET    /api/todos            : 全部记录，按 createdAt 倒序
- POST   /api/todos            : 创建，缺少 task 返回 400
- PUT    /api/todos/{todo_id}  : 局部更新，只改请求体里出现的字段
- DELETE /api/todos/{todo_id}  : 删除并返回被删除的记录

所有响应使用 ApiResponse 信封；存储层失败统一 500 并回显错误信息。
"""

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.todo.schemas import DEFAULT_CATEGORY, ApiResponse, TodoCreate, TodoUpdate
from app.todo.store import TodoRepository, TodoStoreError

router = APIRouter(prefix="/api/todos", tags=["Todo"])
log = structlog.get_logger()


def get_todo_repository(request: Request) -> TodoRepository:
    """FastAPI 依赖注入：获取应用级 Todo 存储"""
    return request.app.state.todo_repository


def envelope(status_code: int = 200, **fields) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ApiResponse(**fields).dump())


def _not_found() -> JSONResponse:
    return envelope(404, success=False, message="Todo not found")


def _store_failure(message: str, error: TodoStoreError) -> JSONResponse:
    return envelope(500, success=False, message=message, error=str(error))


@router.get("")
async def list_todos(repo: TodoRepository = Depends(get_todo_repository)):
    """全部 Todo，最新的在前"""
    try:
        todos = await repo.list_all()
    except TodoStoreError as e:
        log.error("查询 Todo 列表失败", error=str(e))
        return _store_failure("Error fetching todos", e)

    return envelope(success=True, data=todos)


@router.post("")
async def create_todo(
    body: TodoCreate | None = None,
    repo: TodoRepository = Depends(get_todo_repository),
):
    """创建 Todo：category 缺省或为空时取 "other"，completed 固定为 false；无请求体等同于缺少 task"""
    body = body or TodoCreate()
    if not body.task:
        return envelope(400, success=False, message="Task is required")

    try:
        todo = await repo.create(body.task, body.category or DEFAULT_CATEGORY)
    except TodoStoreError as e:
        log.error("创建 Todo 失败", error=str(e))
        return _store_failure("Error creating todo", e)

    return envelope(201, success=True, message="Todo created successfully", data=todo)


@router.put("/{todo_id}")
async def update_todo(
    todo_id: str,
    body: TodoUpdate | None = None,
    repo: TodoRepository = Depends(get_todo_repository),
):
    """局部更新：未出现在请求体中的字段保持不变，无请求体时原样返回记录"""
    changes = body.to_changes() if body is not None else {}
    try:
        todo = await repo.update(todo_id, changes)
    except TodoStoreError as e:
        log.error("更新 Todo 失败", todo_id=todo_id, error=str(e))
        return _store_failure("Error updating todo", e)

    if todo is None:
        return _not_found()
    return envelope(success=True, message="Todo updated successfully", data=todo)


@router.delete("/{todo_id}")
async def delete_todo(todo_id: str, repo: TodoRepository = Depends(get_todo_repository)):
    try:
        todo = await repo.delete(todo_id)
    except TodoStoreError as e:
        log.error("删除 Todo 失败", todo_id=todo_id, error=str(e))
        return _store_failure("Error deleting todo", e)

    if todo is None:
        return _not_found()
    return envelope(success=True, message="Todo deleted successfully", data=todo)
