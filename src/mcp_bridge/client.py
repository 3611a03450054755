# src/mcp_bridge/client.py — v1
"""Client for one MCP tool server spawned over stdio.

State machine: DISCONNECTED → CONNECTING → CONNECTED. Every operation
connects first when needed, so a call on a fresh client is valid.
"""

from __future__ import annotations

import logging
import shutil
from contextlib import AsyncExitStack
from enum import Enum
from pathlib import Path
from typing import Any

from mcp import ClientSession
from mcp.client.stdio import StdioServerParameters, stdio_client
from mcp.types import Implementation

from snowgoose.config.settings import Settings
from snowgoose.core.models import MCPTool

logger = logging.getLogger(__name__)


class MCPConnectionError(Exception):
    """Raised when a tool server cannot be started or initialized."""


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


def parse_server_command(path: str, root: Path) -> tuple[str, list[str]]:
    """Split a tool path into ``(command, args)``.

    The first whitespace-separated token is the executable. It resolves
    against ``root`` unless it is absolute or a bare command on PATH.
    """
    parts = path.strip().split()
    if not parts:
        raise MCPConnectionError("MCP tool path is empty")
    command, args = parts[0], parts[1:]
    if Path(command).is_absolute():
        return command, args
    if "/" not in command and shutil.which(command):
        return command, args
    return str((root / command).resolve()), args


class MCPClient:
    """Session with a single MCP tool server."""

    def __init__(self, mcp_tool: MCPTool, settings: Settings | None = None) -> None:
        self._tool = mcp_tool
        self._settings = settings or Settings()
        self._state = ConnectionState.DISCONNECTED
        self._session: ClientSession | None = None
        self._exit_stack: AsyncExitStack | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    async def connect(self) -> None:
        """Spawn the server process and perform the MCP handshake."""
        if self.connected:
            return
        command, args = parse_server_command(self._tool.path, self._settings.mcp_servers_root)
        logger.info("Connecting to MCP server %s: %s %s", self._tool.name, command, " ".join(args))

        self._state = ConnectionState.CONNECTING
        stack = AsyncExitStack()
        try:
            read_stream, write_stream = await stack.enter_async_context(
                stdio_client(StdioServerParameters(command=command, args=args))
            )
            session = await stack.enter_async_context(
                ClientSession(
                    read_stream,
                    write_stream,
                    client_info=Implementation(
                        name=self._settings.mcp_client_name,
                        version=self._settings.mcp_client_version,
                    ),
                )
            )
            await session.initialize()
        except Exception as e:
            await stack.aclose()
            self._state = ConnectionState.DISCONNECTED
            raise MCPConnectionError(
                f"Failed to connect to MCP server {self._tool.name}: {e}"
            ) from e

        self._exit_stack = stack
        self._session = session
        self._state = ConnectionState.CONNECTED
        logger.info("Connected to MCP server: %s", self._tool.name)

    async def disconnect(self) -> None:
        if not self.connected or self._exit_stack is None:
            return
        stack, self._exit_stack, self._session = self._exit_stack, None, None
        self._state = ConnectionState.DISCONNECTED
        await stack.aclose()
        logger.info("Disconnected from MCP server: %s", self._tool.name)

    async def _ensure_session(self) -> ClientSession:
        if not self.connected:
            await self.connect()
        assert self._session is not None
        return self._session

    async def list_tools(self) -> list[Any]:
        session = await self._ensure_session()
        result = await session.list_tools()
        return list(result.tools)

    async def call_tool(self, name: str, args: dict[str, Any]) -> Any:
        session = await self._ensure_session()
        logger.debug("Calling tool %s on %s", name, self._tool.name)
        return await session.call_tool(name, args)

    async def list_resources(self) -> list[Any]:
        session = await self._ensure_session()
        result = await session.list_resources()
        return list(result.resources)

    async def read_resource(self, uri: str) -> Any:
        session = await self._ensure_session()
        return await session.read_resource(uri)

    async def list_prompts(self) -> list[Any]:
        session = await self._ensure_session()
        result = await session.list_prompts()
        return list(result.prompts)

    async def get_prompt(self, name: str, args: dict[str, str] | None = None) -> Any:
        session = await self._ensure_session()
        return await session.get_prompt(name, args or {})
