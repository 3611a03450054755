# tests/unit/llm/test_unit_token_budget.py — v2
"""Tests for llm/token_budget.py."""

from __future__ import annotations

import pytest

from snowgoose.llm.token_budget import (
    ANTHROPIC_MIN_THINKING_BUDGET,
    anthropic_thinking_budget,
    reasoning_effort,
    resolve_max_tokens,
    resolve_thinking_budget,
)


class TestResolveMaxTokens:
    def test_requested(self):
        assert resolve_max_tokens(500) == 500

    @pytest.mark.parametrize("requested", [None, 0, -5])
    def test_default(self, requested):
        assert resolve_max_tokens(requested, 2048) == 2048


class TestThinkingBudget:
    def test_explicit_budget(self):
        assert resolve_thinking_budget(4000, 1500) == 1500

    def test_half_of_max_tokens(self):
        assert resolve_thinking_budget(4000) == 2000
        assert resolve_thinking_budget(4000, 0) == 2000


class TestAnthropicBudget:
    def test_budget_within_max(self):
        assert anthropic_thinking_budget(8000, 2000) == (8000, 2000)

    def test_minimum_budget_enforced(self):
        max_tokens, budget = anthropic_thinking_budget(1024)
        assert budget == ANTHROPIC_MIN_THINKING_BUDGET
        assert max_tokens > budget

    def test_max_tokens_raised_above_budget(self):
        max_tokens, budget = anthropic_thinking_budget(2000, 3000)
        assert budget == 3000
        assert max_tokens > 3000


class TestReasoningEffort:
    def test_levels(self):
        assert reasoning_effort(1000, 200) == "low"
        assert reasoning_effort(1000) == "medium"
        assert reasoning_effort(1000, 900) == "high"
