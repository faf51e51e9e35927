"""Logging utility functions."""

import logging
from typing import Any


def log_exception(
    logger: logging.Logger,
    exc: Exception,
    msg: str,
    level: int = logging.ERROR,
    include_traceback: bool = True,
    **kwargs: Any,
) -> None:
    """
    Log exception with context and optional traceback.

    Automatically extracts error_category and http_status from GatewayError
    subclasses. Truncates long error messages.

    Example:
        try:
            await client.get_item(item_id)
        except GatewayError as e:
            log_exception(logger, e, "Item lookup failed", include_traceback=False)
    """
    if kwargs.get("error_category") is None and hasattr(exc, "category"):
        cat = exc.category
        kwargs["error_category"] = cat.value if hasattr(cat, "value") else str(cat)

    status_code = getattr(exc, "status_code", None)
    if status_code is not None:
        kwargs.setdefault("http_status", status_code)

    error_msg = str(exc)
    if len(error_msg) > 500:
        error_msg = error_msg[:500] + "..."
    kwargs["error_message"] = error_msg

    if include_traceback:
        logger.log(level, msg, exc_info=exc, extra=kwargs)
    else:
        logger.log(level, msg, extra=kwargs)
