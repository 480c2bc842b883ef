"""
FastAPI 应用主入口
"""

import sys
from contextlib import asynccontextmanager
from pathlib import Path

# 将项目根目录添加到 python path，以便直接运行 main.py 时能找到 app 模块
sys.path.append(str(Path(__file__).resolve().parent.parent))

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from app.api.health import router as health_router
from app.api.root import router as root_router
from app.api.todos import router as todos_router
from app.config import Settings, get_settings
from app.db.mongo import MongoHandle
from app.observability.logging_config import setup_logging
from app.observability.metrics_middleware import MetricsMiddleware
from app.observability.request_logger import RequestLoggerMiddleware
from app.todo.schemas import ApiResponse
from app.todo.store import MongoTodoRepository, TodoRepository

settings = get_settings()

# 初始化日志（在 import 时就生效）
setup_logging(env=settings.ENV, level=settings.LOG_LEVEL)
log = structlog.get_logger()


def log_endpoints(application: FastAPI) -> None:
    """启动时打印接口清单"""
    cfg: Settings = application.state.settings
    base = f"http://localhost:{cfg.APP_PORT}"
    log.info(
        "服务已启动",
        url=base,
        endpoints=[
            f"GET  {base}/api/todos",
            f"POST {base}/api/todos",
            f"PUT  {base}/api/todos/:id",
            f"DEL  {base}/api/todos/:id",
        ],
        database="MongoDB",
    )


@asynccontextmanager
async def lifespan(application: FastAPI):
    """应用生命周期：启动时探测 MongoDB（失败不阻止启动），关闭时释放连接"""
    cfg: Settings = application.state.settings
    log.info("应用启动", env=cfg.ENV, app=cfg.APP_NAME)

    mongo: MongoHandle = application.state.mongo
    if not await mongo.connect():
        log.warning("MongoDB 不可用，服务继续启动，数据接口将在调用时返回 500")
    log_endpoints(application)

    yield

    mongo.close()
    log.info("应用关闭，资源已释放")


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """请求体非法（JSON 解析失败、类型错误、显式 null）统一返回 400 信封"""
    errors = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    log.warning("请求体校验失败", path=request.url.path, error=errors)
    return JSONResponse(
        status_code=400,
        content=ApiResponse(success=False, message="Invalid request body", error=errors).dump(),
    )


def create_app(
    app_settings: Settings | None = None,
    mongo: MongoHandle | None = None,
    repository: TodoRepository | None = None,
) -> FastAPI:
    """
    应用工厂。

    MongoDB 句柄与 Todo 存储显式挂在 app.state 上，测试可注入替身实现。
    """
    cfg = app_settings or settings
    mongo = mongo or MongoHandle(cfg)

    application = FastAPI(
        title=cfg.APP_NAME,
        version="0.1.0",
        lifespan=lifespan,
    )
    application.state.settings = cfg
    application.state.mongo = mongo
    application.state.todo_repository = repository or MongoTodoRepository(mongo.collection())

    application.add_exception_handler(RequestValidationError, validation_exception_handler)

    # ── 中间件（执行顺序：从下往上注册，从上往下执行） ──
    application.add_middleware(RequestLoggerMiddleware)
    application.add_middleware(MetricsMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Prometheus 指标端点 ──
    application.mount("/metrics", make_asgi_app())

    # ── 路由注册 ──
    application.include_router(root_router)
    application.include_router(health_router)
    application.include_router(todos_router)

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=settings.APP_HOST, port=settings.APP_PORT)
