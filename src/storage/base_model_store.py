# src/storage/base_model_store.py — v1
"""Abstract model / vendor / tool configuration store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from snowgoose.core.models import ApiVendor, MCPTool, ModelRecord


class BaseModelStore(ABC):
    """Read-only access to admin-maintained configuration records."""

    @abstractmethod
    async def find_model_by_id(self, model_id: int) -> ModelRecord | None:
        """Return the model record, or None if unknown."""

    @abstractmethod
    async def find_vendor_by_id(self, vendor_id: int) -> ApiVendor | None:
        """Return the vendor record, or None if unknown."""

    @abstractmethod
    async def find_vendor_by_name(self, name: str) -> ApiVendor | None:
        """Case-insensitive vendor lookup by human name."""

    @abstractmethod
    async def find_mcp_tool_by_id(self, tool_id: int) -> MCPTool | None:
        """Return the tool-server record, or None if unknown."""
