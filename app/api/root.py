"""
根路由：欢迎信息
"""

from datetime import datetime, timezone

from fastapi import APIRouter

router = APIRouter(tags=["根路由"])


@router.get("/")
async def read_root():
    """静态欢迎信息 + 当前时间"""
    return {
        "message": "Welcome to my backend API with MongoDB!",
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        "database": "MongoDB",
    }
