# src/logging/context.py - v1
"""Contextual logging support: attach identity and operation to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Set per orchestrator call (upload, delete, resolve, ...).
_identity: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "identity", default=None
)
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    identity: str | None = None
    operation: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(identity=_identity.get(), operation=_operation.get())


def set_operation_context(operation: str, identity: str | None = None) -> None:
    """Set the operation (and the identity it acts on) for subsequent records."""
    _operation.set(operation)
    _identity.set(identity)


def clear_context() -> None:
    """Reset all context variables."""
    _identity.set(None)
    _operation.set(None)
