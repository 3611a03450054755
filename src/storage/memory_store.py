# src/storage/memory_store.py — v1
"""In-process stores, used by the CLI catalog and by tests."""

from __future__ import annotations

import logging

from snowgoose.core.models import ApiVendor, MCPTool, ModelRecord, UserRecord
from snowgoose.storage.base_model_store import BaseModelStore
from snowgoose.storage.base_user_store import BaseUserStore, UserNotFoundError

logger = logging.getLogger(__name__)


class InMemoryModelStore(BaseModelStore):
    """Configuration records held in dicts keyed by id."""

    def __init__(
        self,
        vendors: list[ApiVendor] | None = None,
        models: list[ModelRecord] | None = None,
        mcp_tools: list[MCPTool] | None = None,
    ) -> None:
        self._vendors = {v.id: v for v in vendors or []}
        self._models = {m.id: m for m in models or []}
        self._tools = {t.id: t for t in mcp_tools or []}

    @property
    def models(self) -> list[ModelRecord]:
        return sorted(self._models.values(), key=lambda m: m.id)

    @property
    def vendors(self) -> list[ApiVendor]:
        return sorted(self._vendors.values(), key=lambda v: v.id)

    @property
    def mcp_tools(self) -> list[MCPTool]:
        return sorted(self._tools.values(), key=lambda t: t.id)

    def add_vendor(self, vendor: ApiVendor) -> None:
        self._vendors[vendor.id] = vendor

    def add_model(self, model: ModelRecord) -> None:
        self._models[model.id] = model

    def add_mcp_tool(self, tool: MCPTool) -> None:
        self._tools[tool.id] = tool

    async def find_model_by_id(self, model_id: int) -> ModelRecord | None:
        return self._models.get(model_id)

    async def find_vendor_by_id(self, vendor_id: int) -> ApiVendor | None:
        return self._vendors.get(vendor_id)

    async def find_vendor_by_name(self, name: str) -> ApiVendor | None:
        wanted = name.lower()
        for vendor in self._vendors.values():
            if vendor.name.lower() == wanted:
                return vendor
        return None

    async def find_mcp_tool_by_id(self, tool_id: int) -> MCPTool | None:
        return self._tools.get(tool_id)


class InMemoryUserStore(BaseUserStore):
    """User ledger held in a dict.

    Increments happen without an await between read and write, so they are
    atomic with respect to other coroutines on the same event loop.
    """

    def __init__(self, users: list[UserRecord] | None = None) -> None:
        self._users = {u.id: u for u in users or []}

    def add_user(self, user: UserRecord) -> None:
        self._users[user.id] = user

    async def find_by_id(self, user_id: int) -> UserRecord | None:
        user = self._users.get(user_id)
        return user.model_copy() if user is not None else None

    async def increment_usage(self, user_id: int, amount: float) -> UserRecord:
        user = self._users.get(user_id)
        if user is None:
            raise UserNotFoundError(f"User with ID {user_id} not found.")
        updated = user.model_copy(
            update={
                "period_usage": user.period_usage + amount,
                "total_usage": user.total_usage + amount,
            }
        )
        self._users[user_id] = updated
        return updated.model_copy()

    async def reset_period_usage(self, user_id: int) -> UserRecord:
        user = self._users.get(user_id)
        if user is None:
            raise UserNotFoundError(f"User with ID {user_id} not found.")
        updated = user.model_copy(update={"period_usage": 0.0})
        self._users[user_id] = updated
        logger.info("Reset period usage for user %s", user_id)
        return updated.model_copy()
