"""
请求日志中间件：trace_id 注入 + 请求开始/结束日志

- /health、/metrics 为探针流量，只回写 trace 头，不打日志
- 结束日志带路由模板与 todo_id，5xx 以 error 级别记录
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.observability.context import new_trace_id, trace_id_var

log = structlog.get_logger()

TRACE_HEADER = "X-Trace-ID"
QUIET_PATHS = ("/health", "/metrics")


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """HTTP 请求日志 + trace_id 上下文注入"""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        trace_id = request.headers.get(TRACE_HEADER) or new_trace_id()
        trace_id_var.set(trace_id)

        # 绑定到 structlog 上下文，handler / 存储层的日志自动带 trace_id
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(trace_id=trace_id)

        quiet = request.url.path.rstrip("/") in QUIET_PATHS
        start = time.monotonic()
        if not quiet:
            log.info(
                "请求开始",
                method=request.method,
                path=request.url.path,
                client_ip=request.client.host if request.client else "unknown",
            )

        response = await call_next(request)
        duration_ms = int((time.monotonic() - start) * 1000)

        if not quiet:
            # 路由匹配后 scope 中才有 route / path_params
            route = request.scope.get("route")
            fields = {
                "method": request.method,
                "route": getattr(route, "path", request.url.path),
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            }
            todo_id = request.scope.get("path_params", {}).get("todo_id")
            if todo_id:
                fields["todo_id"] = todo_id

            if response.status_code >= 500:
                log.error("请求结束", **fields)
            else:
                log.info("请求结束", **fields)

        response.headers[TRACE_HEADER] = trace_id
        response.headers["X-Duration-Ms"] = str(duration_ms)
        return response
