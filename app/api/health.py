"""
健康检查接口：探活 + MongoDB 连接状态
"""

import structlog
from fastapi import APIRouter, Depends, Request

from app.db.mongo import MongoHandle

router = APIRouter(tags=["健康检查"])
log = structlog.get_logger()


def get_mongo(request: Request) -> MongoHandle:
    """FastAPI 依赖注入：获取应用级 MongoDB 句柄"""
    return request.app.state.mongo


@router.get("/health")
async def health_check(mongo: MongoHandle = Depends(get_mongo)):
    """健康检查：ping MongoDB，失败时标记为 degraded"""
    status = {"status": "ok", "mongodb": "ok"}

    try:
        await mongo.ping()
    except Exception as e:
        status["mongodb"] = f"error: {e}"
        status["status"] = "degraded"
        log.error("MongoDB 健康检查失败", error=str(e))

    return status
