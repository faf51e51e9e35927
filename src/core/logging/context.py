"""Context variables for structured logging."""

from contextvars import ContextVar
from typing import Dict, Optional

_trace_id: ContextVar[str] = ContextVar("trace_id", default="")
_tool: ContextVar[str] = ContextVar("tool", default="")
_request_id: ContextVar[str] = ContextVar("request_id", default="")


def set_log_context(
    trace_id: Optional[str] = None,
    tool: Optional[str] = None,
    request_id: Optional[str] = None,
) -> None:
    if trace_id is not None:
        _trace_id.set(trace_id)
    if tool is not None:
        _tool.set(tool)
    if request_id is not None:
        _request_id.set(request_id)


def get_log_context() -> Dict[str, str]:
    return {
        "trace_id": _trace_id.get(),
        "tool": _tool.get(),
        "request_id": _request_id.get(),
    }


def clear_log_context() -> None:
    _trace_id.set("")
    _tool.set("")
    _request_id.set("")
