"""Action ID logging context for tracing desk operations across modules.

Provides an action_id-aware logger that attaches a correlation ID to every
log message, so a single save, delete or bulk apply can be followed from
the desk controller down to the store call.

Usage:
    from bookdesk.logging_context import get_action_logger, set_action_id

    set_action_id("ACT-3f9a1c")
    logger = get_action_logger(__name__)
    logger.info("Saving booking")  # record.action_id == "ACT-3f9a1c"
"""

import logging
import uuid
from contextvars import ContextVar

_action_id: ContextVar[str] = ContextVar("action_id", default="NO_ACTION_ID")


def set_action_id(action_id: str) -> None:
    """Set the correlation ID for the current context."""
    _action_id.set(action_id)


def get_action_id() -> str:
    """Retrieve the current correlation ID."""
    return _action_id.get()


def new_action_id(prefix: str = "ACT") -> str:
    """Generate a fresh correlation ID, make it current, and return it."""
    action_id = f"{prefix}-{uuid.uuid4().hex[:6]}"
    _action_id.set(action_id)
    return action_id


class ActionIdFilter(logging.Filter):
    """Injects action_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.action_id = _action_id.get()  # type: ignore[attr-defined]
        return True


def get_action_logger(name: str) -> logging.Logger:
    """Return a logger with the ActionIdFilter attached.

    The filter adds ``action_id`` to each record so formatters can
    include ``%(action_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, ActionIdFilter) for f in logger.filters):
        logger.addFilter(ActionIdFilter())
    return logger
