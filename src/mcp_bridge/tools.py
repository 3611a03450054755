# src/mcp_bridge/tools.py — v1
"""Conversions between MCP tool objects and vendor tool-call formats."""

from __future__ import annotations

import json
from typing import Any


def _field(obj: Any, *names: str, default: Any = None) -> Any:
    """Read the first present field from a dict or an SDK object."""
    for name in names:
        if isinstance(obj, dict):
            if name in obj:
                return obj[name]
        elif hasattr(obj, name):
            return getattr(obj, name)
    return default


def format_tools_for_anthropic(tools: list[Any]) -> list[dict[str, Any]]:
    """MCP tool descriptors → Anthropic ``tools`` parameter."""
    formatted: list[dict[str, Any]] = []
    for tool in tools:
        schema = _field(tool, "inputSchema", "input_schema") or {"type": "object", "properties": {}}
        formatted.append(
            {
                "name": _field(tool, "name"),
                "description": _field(tool, "description") or "",
                "input_schema": schema,
            }
        )
    return formatted


def normalize_tool_result(result: Any) -> str:
    """Reduce a tool result to text for a ``tool_result`` block.

    A string ``content`` is used as-is; a list of text items is joined with
    newlines; anything else is serialized to JSON.
    """
    content = _field(result, "content", default=result)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        texts = [
            _field(item, "text")
            for item in content
            if _field(item, "type", default="text") == "text" and _field(item, "text") is not None
        ]
        if texts:
            return "\n".join(texts)
    return json.dumps(_jsonable(result), default=str)


def _jsonable(obj: Any) -> Any:
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    return obj
