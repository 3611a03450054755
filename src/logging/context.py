# src/logging/context.py — v1
"""Contextual logging support — attach user_id, request_id, vendor, model to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per chat request.
_user_id: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "user_id", default=None
)
_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
_vendor: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "vendor", default=None
)
_model: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "model", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    user_id: int | None = None
    request_id: str | None = None
    vendor: str | None = None
    model: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        user_id=_user_id.get(),
        request_id=_request_id.get(),
        vendor=_vendor.get(),
        model=_model.get(),
    )


def set_request_context(request_id: str, user_id: int | None = None) -> None:
    """Set request-level context (called once per chat turn)."""
    _request_id.set(request_id)
    _user_id.set(user_id)


def set_vendor_context(vendor: str, model: str | None = None) -> None:
    """Set vendor-level context (called once the adapter is resolved)."""
    _vendor.set(vendor)
    _model.set(model)


def clear_context() -> None:
    """Reset all context variables."""
    _user_id.set(None)
    _request_id.set(None)
    _vendor.set(None)
    _model.set(None)
