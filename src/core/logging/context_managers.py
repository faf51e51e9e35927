"""Context managers for structured logging."""

from typing import Dict, Optional

from core.logging.context import get_log_context, set_log_context


class LogContext:
    """
    Context manager for temporary log context.

    Usage:
        with LogContext(tool="search_items", request_id=request_id):
            # All logs in this block carry tool and request_id
            await client.search_items("widget")
    """

    def __init__(
        self,
        trace_id: Optional[str] = None,
        tool: Optional[str] = None,
        request_id: Optional[str] = None,
    ):
        self.new_context = {
            "trace_id": trace_id,
            "tool": tool,
            "request_id": request_id,
        }
        self.old_context: Dict[str, str] = {}

    def __enter__(self) -> "LogContext":
        self.old_context = get_log_context()
        for key, value in self.new_context.items():
            if value is not None:
                set_log_context(**{key: value})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        # Restore old context
        set_log_context(
            trace_id=self.old_context.get("trace_id", ""),
            tool=self.old_context.get("tool", ""),
            request_id=self.old_context.get("request_id", ""),
        )
        return False
