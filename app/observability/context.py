"""
链路追踪上下文：通过 contextvars 在协程间自动传播 trace_id
"""

import contextvars
import uuid

trace_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("trace_id", default="")


def new_trace_id() -> str:
    """生成新的 trace_id"""
    return str(uuid.uuid4())
