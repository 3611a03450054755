# tests/unit/mcp_bridge/test_unit_mcp_tools.py — v1
"""Tests for mcp_bridge/tools.py — tool descriptor and result conversion."""

from __future__ import annotations

import json
from types import SimpleNamespace

from mcp.types import CallToolResult, TextContent, Tool

from snowgoose.mcp_bridge.tools import format_tools_for_anthropic, normalize_tool_result


class TestFormatTools:
    def test_sdk_tool(self):
        tool = Tool(
            name="get_weather",
            description="Current weather",
            inputSchema={"type": "object", "properties": {"city": {"type": "string"}}},
        )
        assert format_tools_for_anthropic([tool]) == [
            {
                "name": "get_weather",
                "description": "Current weather",
                "input_schema": {"type": "object", "properties": {"city": {"type": "string"}}},
            }
        ]

    def test_dict_tool_without_schema(self):
        (formatted,) = format_tools_for_anthropic([{"name": "ping"}])
        assert formatted == {
            "name": "ping",
            "description": "",
            "input_schema": {"type": "object", "properties": {}},
        }


class TestNormalizeToolResult:
    def test_string_content(self):
        assert normalize_tool_result({"content": "72F sunny"}) == "72F sunny"

    def test_text_items_joined(self):
        result = CallToolResult(
            content=[TextContent(type="text", text="72F"), TextContent(type="text", text="sunny")]
        )
        assert normalize_tool_result(result) == "72F\nsunny"

    def test_non_text_serialized(self):
        result = {"content": [{"type": "image", "data": "AAAA"}]}
        assert json.loads(normalize_tool_result(result)) == result

    def test_plain_object(self):
        assert normalize_tool_result(SimpleNamespace(content="done")) == "done"
