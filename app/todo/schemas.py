"""
Todo 数据模型

- Todo：持久化记录的对外形态（id 为 ObjectId 的 24 位十六进制字符串）
- TodoCreate / TodoUpdate：请求体
- ApiResponse：所有接口统一的响应信封
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_CATEGORY = "other"


class Todo(BaseModel):
    """单条 Todo 记录"""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    task: str
    category: str = DEFAULT_CATEGORY
    completed: bool = False
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_document(cls, doc: dict) -> "Todo":
        """
        MongoDB 文档 → Todo，_id 统一转为字符串。

        缺少 task / createdAt 或类型不符的文档抛出 ValidationError，由存储层处理。
        """
        return cls(
            id=str(doc.get("_id", "")),
            task=doc.get("task"),
            category=doc.get("category", DEFAULT_CATEGORY),
            completed=doc.get("completed", False),
            created_at=doc.get("createdAt"),
        )


class TodoCreate(BaseModel):
    """
    创建请求体。

    task 在模型层可缺省，缺失或为空串由接口层统一返回 400 "Task is required"。
    """

    task: str | None = None
    category: str | None = None


class TodoUpdate(BaseModel):
    """
    局部更新请求体：只有客户端实际传入的字段才会被修改。

    字段是否"出现"以 model_fields_set 为准，而不是看值是否为 None；
    显式传 null 或空 task 视为非法请求。
    """

    task: str | None = None
    category: str | None = None
    completed: bool | None = None

    @model_validator(mode="after")
    def _reject_nulls(self) -> "TodoUpdate":
        for name in self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        if "task" in self.model_fields_set and not self.task:
            raise ValueError("task cannot be empty")
        return self

    def to_changes(self) -> dict[str, Any]:
        """只包含已出现字段的 $set 载荷"""
        return {name: getattr(self, name) for name in sorted(self.model_fields_set)}


class ApiResponse(BaseModel):
    """统一响应信封：{success, message?, data?, error?}"""

    success: bool
    message: str | None = None
    data: Any = None
    error: str | None = None

    def dump(self) -> dict:
        """序列化为 JSON 友好的 dict，省略未设置的可选键"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
