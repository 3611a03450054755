# src/storage/base_user_store.py — v1
"""Abstract user identity / usage ledger interface.

The current user is request-scoped: the request handler calls
``set_current_user`` once and every adapter resolves it through
``get_current_user`` on its store.
"""

from __future__ import annotations

import contextvars
from abc import ABC, abstractmethod

from snowgoose.core.models import UserRecord

_current_user_id: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "current_user_id", default=None
)


def set_current_user(user_id: int | None) -> contextvars.Token[int | None]:
    """Bind the requesting user to the current context."""
    return _current_user_id.set(user_id)


def reset_current_user(token: contextvars.Token[int | None]) -> None:
    """Restore the binding that was active before ``set_current_user``."""
    _current_user_id.reset(token)


def current_user_id() -> int | None:
    return _current_user_id.get()


class UserNotFoundError(LookupError):
    """Raised when a user id does not resolve to a stored user."""


class BaseUserStore(ABC):
    """Unified interface for user ledger backends."""

    @abstractmethod
    async def find_by_id(self, user_id: int) -> UserRecord | None:
        """Return the user, or None if unknown."""

    @abstractmethod
    async def increment_usage(self, user_id: int, amount: float) -> UserRecord:
        """Atomically add ``amount`` to both period and total usage.

        Raises:
            UserNotFoundError: If the user does not exist.
        """

    @abstractmethod
    async def reset_period_usage(self, user_id: int) -> UserRecord:
        """Zero the period counter (subscription renewal)."""

    async def get_current_user(self) -> UserRecord | None:
        """Resolve the user bound to the current request context."""
        user_id = current_user_id()
        if user_id is None:
            return None
        return await self.find_by_id(user_id)

    def close(self) -> None:
        """Release backend resources. No-op for stores that hold none."""
