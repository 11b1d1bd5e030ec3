"""
Request tracing helpers

Per-request correlation IDs carried in a context variable, so concurrent
operations on different threads keep their log lines apart.
"""

import contextvars
import logging
import uuid
from typing import Any, Dict, Optional

_correlation_id: "contextvars.ContextVar[Optional[str]]" = contextvars.ContextVar(
    "dex_relay_correlation_id", default=None
)


def generate_correlation_id() -> str:
    """Random 12-character hex ID"""
    return uuid.uuid4().hex[:12]


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


def set_correlation_id(correlation_id: Optional[str]) -> contextvars.Token:
    """Bind an ID to the current context, returning the reset token"""
    return _correlation_id.set(correlation_id)


class CorrelationContext:
    """
    Scopes one correlation ID to a block of work.

    Inside an enclosing context the outer ID is kept, so a wrapper operation
    and the request it dispatches log under one ID.

    Usage:
        with CorrelationContext("swapExactTokensForTokens") as cid:
            logger.info(f"[{cid}] dispatching")
    """

    def __init__(self, prefix: Optional[str] = None):
        self.prefix = prefix
        self.correlation_id: Optional[str] = None
        self._reset_token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        current = get_correlation_id()
        if current is not None:
            self.correlation_id = current
            return current

        new_id = generate_correlation_id()
        self.correlation_id = f"{self.prefix}_{new_id}" if self.prefix else new_id
        self._reset_token = set_correlation_id(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._reset_token is not None:
            _correlation_id.reset(self._reset_token)
            self._reset_token = None


def log_with_correlation(
    logger: logging.Logger,
    level: int,
    message: str,
    operation_name: str,
    state: Optional[str] = None,
    **extra: Any
):
    """
    Log ``[cid] [operation] [STATE] message``.

    The same values are attached to the record as ``correlation_id``,
    ``operation`` and ``dispatch_state`` for structured handlers.
    """
    cid = get_correlation_id()
    prefix = "".join(
        f"[{tag}] " for tag in (cid, operation_name, state) if tag
    )

    fields: Dict[str, Any] = dict(extra)
    fields.update(correlation_id=cid, operation=operation_name, dispatch_state=state)
    logger.log(level, prefix + message, extra=fields)
