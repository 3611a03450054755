# src/storage/catalog.py — v1
"""JSON catalog file → InMemoryModelStore.

Expected shape::

    {
      "vendors":   [{"id": 1, "name": "anthropic"}],
      "models":    [{"id": 3, "api_name": "claude-sonnet-4-20250514", "name": "Sonnet",
                     "api_vendor_id": 1, "is_thinking": true,
                     "input_token_cost": 3.0, "output_token_cost": 15.0}],
      "mcp_tools": [{"id": 1, "name": "weather", "path": "weather-server --stdio"}]
    }
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from snowgoose.core.models import ApiVendor, MCPTool, ModelRecord
from snowgoose.storage.memory_store import InMemoryModelStore

logger = logging.getLogger(__name__)


class CatalogError(ValueError):
    """Raised when a catalog file cannot be read or validated."""


def load_catalog(path: Path | str) -> InMemoryModelStore:
    """Load vendors, models and MCP tools from a JSON catalog file.

    Raises:
        CatalogError: If the file is missing, not JSON, or a record is invalid.
    """
    catalog_path = Path(path).expanduser()
    if not catalog_path.exists():
        raise CatalogError(f"Catalog file not found: {catalog_path}")
    try:
        data = json.loads(catalog_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise CatalogError(f"Catalog {catalog_path} is not valid JSON: {e}") from e

    try:
        store = InMemoryModelStore(
            vendors=[ApiVendor(**v) for v in data.get("vendors", [])],
            models=[ModelRecord(**m) for m in data.get("models", [])],
            mcp_tools=[MCPTool(**t) for t in data.get("mcp_tools", [])],
        )
    except (TypeError, ValueError) as e:
        raise CatalogError(f"Invalid record in catalog {catalog_path}: {e}") from e

    logger.info(
        "Loaded catalog %s: %d vendors, %d models, %d MCP tools",
        catalog_path, len(store.vendors), len(store.models), len(store.mcp_tools),
    )
    return store
