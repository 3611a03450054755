# tests/unit/tracking/test_unit_cost_calculator.py — v2
"""Tests for tracking/cost_calculator.py."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from snowgoose.core.models import ModelRecord
from snowgoose.llm.models import TokenUsage
from snowgoose.tracking.cost_calculator import (
    aggregate_by_model,
    compute_call_cost,
    compute_total_cost,
)
from snowgoose.tracking.models import UsageRecord


def _record(vendor: str, model: str, cost: float, status: str = "charged") -> UsageRecord:
    return UsageRecord(
        call_id="c", timestamp=datetime.now(timezone.utc), user_id=1,
        vendor=vendor, model=model, input_tokens=100, output_tokens=50,
        total_tokens=150, cost=cost, status=status,
    )


class TestComputeCallCost:
    def test_per_million_pricing(self, claude_model):
        cost = compute_call_cost(claude_model, TokenUsage(input_tokens=1000, output_tokens=500))
        # 1000 * 3 / 1e6 + 500 * 15 / 1e6
        assert cost == pytest.approx(0.0105)

    def test_zero_usage(self, claude_model):
        assert compute_call_cost(claude_model, TokenUsage()) == 0.0

    def test_missing_output_price(self):
        model = ModelRecord(id=1, api_name="m", name="M", input_token_cost=1.0)
        assert compute_call_cost(model, TokenUsage(input_tokens=10, output_tokens=10)) is None

    def test_missing_input_price(self):
        model = ModelRecord(id=1, api_name="m", name="M", output_token_cost=1.0)
        assert compute_call_cost(model, TokenUsage(input_tokens=10)) is None


class TestAggregation:
    def test_grouped_by_vendor_and_model(self):
        records = [
            _record("anthropic", "claude", 0.01),
            _record("anthropic", "claude", 0.02),
            _record("openai", "gpt-4o", 0.5),
        ]
        stats = aggregate_by_model(records)
        assert set(stats) == {"anthropic:claude", "openai:gpt-4o"}
        assert stats["anthropic:claude"].total_calls == 2
        assert stats["anthropic:claude"].total_cost == pytest.approx(0.03)
        assert stats["anthropic:claude"].total_input_tokens == 200

    def test_failed_records_excluded(self):
        records = [_record("openai", "gpt-4o", 0.5), _record("openai", "gpt-4o", 9.0, "failed")]
        assert aggregate_by_model(records)["openai:gpt-4o"].total_calls == 1
        assert compute_total_cost(records) == pytest.approx(0.5)
