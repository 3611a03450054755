# src/tracking/usage_meter.py — v1
"""Usage metering: add the cost of a call to the user's ledger."""

from __future__ import annotations

import logging
import math
from numbers import Real

from snowgoose.core.models import UserRecord
from snowgoose.llm.models import TokenUsage
from snowgoose.storage.base_user_store import BaseUserStore, UserNotFoundError
from snowgoose.tracking.call_logger import CallLogger

logger = logging.getLogger(__name__)


class UsageMeteringError(Exception):
    """Raised when a usage update is invalid or cannot be applied."""


class UsageMeter:
    """Adds call costs to period and total usage of a user.

    Args:
        user_store: Ledger backend; its ``increment_usage`` is atomic.
        call_logger: Optional sink that keeps one record per charged call.
    """

    def __init__(self, user_store: BaseUserStore, call_logger: CallLogger | None = None) -> None:
        self._user_store = user_store
        self._call_logger = call_logger

    @property
    def call_logger(self) -> CallLogger | None:
        return self._call_logger

    async def update_user_usage(self, user_id: int, amount: float) -> UserRecord:
        """Add ``amount`` to both usage counters of ``user_id``.

        Raises:
            UsageMeteringError: If the amount is negative or not a finite
                number, or the user does not exist. Nothing is mutated.
        """
        if isinstance(amount, bool) or not isinstance(amount, Real):
            raise UsageMeteringError(f"Usage amount must be a number, got {amount!r}")
        if not math.isfinite(amount) or amount < 0:
            raise UsageMeteringError(f"Usage amount must be a finite non-negative number, got {amount!r}")

        try:
            user = await self._user_store.increment_usage(user_id, float(amount))
        except UserNotFoundError as e:
            raise UsageMeteringError(f"Failed to update usage for user {user_id}: {e}") from e

        logger.debug(
            "Usage updated for user %s: +%.6f (period=%.6f total=%.6f)",
            user_id, amount, user.period_usage, user.total_usage,
        )
        return user

    async def charge(
        self,
        user_id: int,
        vendor: str,
        model: str,
        usage: TokenUsage,
        cost: float,
    ) -> UserRecord:
        """Meter one vendor call and record it with the call logger."""
        user = await self.update_user_usage(user_id, cost)
        if self._call_logger is not None:
            self._call_logger.record(user_id, vendor, model, usage, cost)
        return user
