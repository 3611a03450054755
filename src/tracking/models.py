# src/tracking/models.py — v2
"""Tracking domain models: UsageRecord, ModelUsageStats."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class UsageRecord(BaseModel):
    """One metered vendor call."""

    call_id: str
    timestamp: datetime
    user_id: int
    vendor: str
    model: str
    input_tokens: int
    output_tokens: int
    total_tokens: int
    cost: float
    status: Literal["charged", "failed"] = "charged"


class ModelUsageStats(BaseModel):
    """Per-model aggregate over a set of usage records."""

    vendor: str
    model: str
    total_calls: int
    total_input_tokens: int
    total_output_tokens: int
    total_cost: float
