"""
Correlation ID context for run tracing.

Uses contextvars to propagate correlation_id across the async call chain.
Every animation run gets a unique ID that appears in all log lines produced
while it runs, including the ones from its frame source task.

Usage:
    from shared.logging.correlation import get_correlation_id, set_correlation_id

    set_correlation_id(generate_correlation_id("run-"))
    cid = get_correlation_id()
"""

import uuid
from contextvars import ContextVar
from typing import Optional

# Context variable, copied into every asyncio task created from this context
_correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> Optional[str]:
    """Get current correlation_id (or None if not set)."""
    return _correlation_id_var.get()


def set_correlation_id(cid: Optional[str]) -> None:
    """Set correlation_id for the current async context."""
    _correlation_id_var.set(cid)


def generate_correlation_id(prefix: str = "") -> str:
    """
    Generate a new correlation_id.

    Format: {prefix}{short_uuid}
    Example: run-a1b2c3d4
    """
    short = uuid.uuid4().hex[:8]
    return f"{prefix}{short}" if prefix else short
