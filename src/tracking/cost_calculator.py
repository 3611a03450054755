# src/tracking/cost_calculator.py — v2
"""Cost of a vendor call from the model's per-million-token prices."""

from __future__ import annotations

from collections import defaultdict

from snowgoose.core.models import ModelRecord
from snowgoose.llm.models import TokenUsage
from snowgoose.tracking.models import ModelUsageStats, UsageRecord

PER_TOKENS = 1_000_000


def compute_call_cost(model: ModelRecord, usage: TokenUsage) -> float | None:
    """Compute the cost of one call.

    Returns None when the model has no input or output price configured,
    in which case the call is not metered.
    """
    if model.input_token_cost is None or model.output_token_cost is None:
        return None
    return (
        usage.input_tokens * model.input_token_cost / PER_TOKENS
        + usage.output_tokens * model.output_token_cost / PER_TOKENS
    )


def aggregate_by_model(records: list[UsageRecord]) -> dict[str, ModelUsageStats]:
    """Group charged records by ``vendor:model``."""
    grouped: dict[str, list[UsageRecord]] = defaultdict(list)
    for rec in records:
        if rec.status == "charged":
            grouped[f"{rec.vendor}:{rec.model}"].append(rec)

    return {
        key: ModelUsageStats(
            vendor=recs[0].vendor,
            model=recs[0].model,
            total_calls=len(recs),
            total_input_tokens=sum(r.input_tokens for r in recs),
            total_output_tokens=sum(r.output_tokens for r in recs),
            total_cost=sum(r.cost for r in recs),
        )
        for key, recs in grouped.items()
    }


def compute_total_cost(records: list[UsageRecord]) -> float:
    """Total charged cost across all records."""
    return sum(r.cost for r in records if r.status == "charged")
