# src/mcp_bridge/manager.py — v1
"""Process-lifetime cache of MCP clients keyed by tool id.

The manager is created once and injected into the orchestrator. First use
of a tool id is serialized by a per-id lock, so concurrent first uses
connect once. Disconnect failures are logged and never propagate.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from snowgoose.config.settings import Settings
from snowgoose.core.models import MCPTool
from snowgoose.mcp_bridge.client import MCPClient

logger = logging.getLogger(__name__)

ClientFactory = Callable[[MCPTool], MCPClient]


class MCPManager:
    """Owns one connected client and its tool list per MCP tool id."""

    def __init__(
        self,
        settings: Settings | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._settings = settings
        self._client_factory = client_factory or (lambda tool: MCPClient(tool, settings))
        self._clients: dict[int, MCPClient] = {}
        self._tools: dict[int, list[Any]] = {}
        self._locks: dict[int, asyncio.Lock] = {}

    def is_connected(self, tool_id: int) -> bool:
        return tool_id in self._clients

    async def get_client(self, mcp_tool: MCPTool) -> MCPClient:
        """Return the cached client, connecting and listing tools on first use."""
        client = self._clients.get(mcp_tool.id)
        if client is not None:
            return client

        lock = self._locks.setdefault(mcp_tool.id, asyncio.Lock())
        async with lock:
            client = self._clients.get(mcp_tool.id)
            if client is None:
                client = self._client_factory(mcp_tool)
                await client.connect()
                try:
                    self._tools[mcp_tool.id] = await client.list_tools()
                except Exception:
                    # Connected but unusable: stop the server process before re-raising.
                    await self._safe_disconnect(mcp_tool.id, client)
                    raise
                self._clients[mcp_tool.id] = client
                logger.info(
                    "MCP tool %s ready with %d functions",
                    mcp_tool.name, len(self._tools[mcp_tool.id]),
                )
        return client

    async def get_available_tools(self, mcp_tool: MCPTool) -> list[Any]:
        client = await self.get_client(mcp_tool)
        if mcp_tool.id not in self._tools:
            self._tools[mcp_tool.id] = await client.list_tools()
        return list(self._tools[mcp_tool.id])

    async def call_tool(self, mcp_tool: MCPTool, tool_name: str, args: dict[str, Any]) -> Any:
        client = await self.get_client(mcp_tool)
        return await client.call_tool(tool_name, args)

    async def get_resources(self, mcp_tool: MCPTool) -> list[Any]:
        client = await self.get_client(mcp_tool)
        return await client.list_resources()

    async def read_resource(self, mcp_tool: MCPTool, uri: str) -> Any:
        client = await self.get_client(mcp_tool)
        return await client.read_resource(uri)

    async def get_prompts(self, mcp_tool: MCPTool) -> list[Any]:
        client = await self.get_client(mcp_tool)
        return await client.list_prompts()

    async def execute_prompt(
        self, mcp_tool: MCPTool, prompt_name: str, args: dict[str, str] | None = None
    ) -> Any:
        client = await self.get_client(mcp_tool)
        return await client.get_prompt(prompt_name, args)

    async def disconnect_client(self, tool_id: int) -> None:
        client = self._clients.pop(tool_id, None)
        self._tools.pop(tool_id, None)
        self._locks.pop(tool_id, None)
        if client is not None:
            await self._safe_disconnect(tool_id, client)

    async def disconnect_all(self) -> None:
        clients = list(self._clients.items())
        self._clients.clear()
        self._tools.clear()
        self._locks.clear()
        await asyncio.gather(*(self._safe_disconnect(tid, c) for tid, c in clients))

    async def _safe_disconnect(self, tool_id: int, client: MCPClient) -> None:
        try:
            await client.disconnect()
        except Exception:
            logger.warning("Error disconnecting MCP client %s", tool_id, exc_info=True)
