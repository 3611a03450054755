# src/main.py — v2
"""CLI entry point — chat, vendors, tools, usage, user-add commands.

Usage:
    snowgoose chat "<prompt>" --model-id 3 --user-id 1 [--stream]
    snowgoose vendors
    snowgoose tools <mcp_tool_id>
    snowgoose usage <user_id> [--reset]
    snowgoose user-add <user_id> <username> [--limit 5.0]
"""

from __future__ import annotations

import argparse
import asyncio
import base64
import logging
import mimetypes
import sys
from pathlib import Path

from snowgoose.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="snowgoose",
        description=f"snowgoose v{__version__} — Multi-vendor AI chat orchestration",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--catalog", type=Path, default=None,
        help="Model catalog JSON (default: CATALOG_PATH setting)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- chat ---
    p_chat = subparsers.add_parser("chat", help="Send one prompt to a model")
    p_chat.add_argument("prompt", help="User prompt")
    p_chat.add_argument("--model-id", type=int, required=True, help="Catalog model id")
    p_chat.add_argument("--user-id", type=int, required=True, help="User the call is billed to")
    p_chat.add_argument("--system", default=None, help="System prompt")
    p_chat.add_argument("--max-tokens", type=int, default=None)
    p_chat.add_argument("--budget-tokens", type=int, default=None, help="Thinking budget")
    p_chat.add_argument("--image", type=Path, default=None, help="Image file for vision models")
    p_chat.add_argument("--mcp-tool-id", type=int, default=None, help="Catalog MCP tool id")
    p_chat.add_argument("--stream", action="store_true", help="Stream the reply")
    p_chat.add_argument("--show-thinking", action="store_true", help="Print reasoning blocks")
    p_chat.set_defaults(func=_cmd_chat)

    # --- vendors ---
    p_vendors = subparsers.add_parser("vendors", help="List vendors and models")
    p_vendors.set_defaults(func=_cmd_vendors)

    # --- tools ---
    p_tools = subparsers.add_parser("tools", help="List functions of an MCP tool server")
    p_tools.add_argument("tool_id", type=int, help="Catalog MCP tool id")
    p_tools.set_defaults(func=_cmd_tools)

    # --- usage ---
    p_usage = subparsers.add_parser("usage", help="Show a user's usage ledger")
    p_usage.add_argument("user_id", type=int)
    p_usage.add_argument("--reset", action="store_true", help="Reset period usage")
    p_usage.set_defaults(func=_cmd_usage)

    # --- user-add ---
    p_user = subparsers.add_parser("user-add", help="Create a user in the ledger")
    p_user.add_argument("user_id", type=int)
    p_user.add_argument("username")
    p_user.add_argument("--email", default=None)
    p_user.add_argument("--limit", type=float, default=None, help="Period usage limit")
    p_user.add_argument("--subscribed", action="store_true")
    p_user.add_argument("--unlimited", action="store_true")
    p_user.set_defaults(func=_cmd_user_add)

    return parser


async def _cmd_chat(args: argparse.Namespace) -> int:
    """Run one chat turn against the catalog."""
    from snowgoose.api.facade import build_orchestrator
    from snowgoose.core.models import Chat
    from snowgoose.core.stream import (
        ErrorChunk,
        ImageChunk,
        TextChunk,
        ThinkingChunk,
    )
    from snowgoose.storage.base_user_store import reset_current_user, set_current_user
    from snowgoose.storage.catalog import load_catalog
    from snowgoose.tracking.call_logger import CallLogger

    settings = _settings()
    model_store = load_catalog(args.catalog or settings.catalog_path)
    model = await model_store.find_model_by_id(args.model_id)
    if model is None:
        logger.error("Model %s not in catalog", args.model_id)
        return 1

    call_logger = CallLogger()
    orchestrator = build_orchestrator(settings, model_store, call_logger=call_logger)

    chat = Chat(
        model=model.api_name,
        model_id=model.id,
        system_prompt=args.system,
        prompt=args.prompt,
        max_tokens=args.max_tokens,
        budget_tokens=args.budget_tokens,
        mcp_tool_id=args.mcp_tool_id,
    )
    chat.append_user_message(args.prompt)
    if args.image is not None:
        chat.image_data = _read_image(args.image)

    token = set_current_user(args.user_id)
    try:
        if args.stream:
            async for chunk in orchestrator.stream_chat(chat):
                if isinstance(chunk, TextChunk):
                    sys.stdout.write(chunk.text)
                elif isinstance(chunk, ThinkingChunk) and args.show_thinking:
                    sys.stdout.write(chunk.thinking)
                elif isinstance(chunk, ImageChunk):
                    sys.stdout.write(f"\n[image] {chunk.url}\n")
                elif isinstance(chunk, ErrorChunk):
                    sys.stdout.write(f"\n[error] {chunk.public_message} ({chunk.private_message})\n")
                sys.stdout.flush()
            print()
        else:
            result = await orchestrator.send_chat(chat)
            if isinstance(result, str):
                print(result)
            else:
                _print_response(result, args.show_thinking)
    finally:
        reset_current_user(token)
        await orchestrator.aclose()
        if call_logger.total_calls:
            call_logger.save(settings.usage_log_path)
    return 0


async def _cmd_vendors(args: argparse.Namespace) -> int:
    """List configured vendors and catalog models."""
    from snowgoose.llm.client_factory import registered_vendors
    from snowgoose.llm.config import resolve_vendor_configs
    from snowgoose.storage.catalog import load_catalog

    settings = _settings()
    configured = resolve_vendor_configs(settings)
    print("\nVendors:")
    for name in registered_vendors():
        status = "configured" if name in configured else "no credentials"
        print(f"  {name:12s} {status}")

    catalog_path = args.catalog or settings.catalog_path
    if not Path(catalog_path).expanduser().exists():
        return 0
    store = load_catalog(catalog_path)
    vendor_names = {v.id: v.name for v in store.vendors}
    print("\nModels:")
    for model in store.models:
        flags = [
            flag for flag, on in (
                ("vision", model.is_vision),
                ("image", model.is_image_generation),
                ("thinking", model.is_thinking),
                ("paid", model.paid_only),
            ) if on
        ]
        vendor = vendor_names.get(model.api_vendor_id or -1, "?")
        print(f"  {model.id:4d}  {vendor:11s} {model.api_name:40s} {','.join(flags)}")
    return 0


async def _cmd_tools(args: argparse.Namespace) -> int:
    """Connect to an MCP tool server and list its functions."""
    from snowgoose.mcp_bridge.manager import MCPManager
    from snowgoose.storage.catalog import load_catalog

    settings = _settings()
    store = load_catalog(args.catalog or settings.catalog_path)
    tool = await store.find_mcp_tool_by_id(args.tool_id)
    if tool is None:
        logger.error("MCP tool %s not in catalog", args.tool_id)
        return 1

    manager = MCPManager(settings)
    try:
        functions = await manager.get_available_tools(tool)
    finally:
        await manager.disconnect_all()

    print(f"\nTools of {tool.name}:")
    for function in functions:
        description = (getattr(function, "description", "") or "").splitlines()
        print(f"  {function.name:24s} {description[0] if description else ''}")
    return 0


async def _cmd_usage(args: argparse.Namespace) -> int:
    """Show (and optionally reset) a user's usage counters."""
    from snowgoose.storage.sqlite_user_store import SqliteUserStore
    from snowgoose.tracking.call_logger import load_records
    from snowgoose.tracking.cost_calculator import aggregate_by_model

    settings = _settings()
    store = SqliteUserStore(settings.user_db_path)
    try:
        user = await store.find_by_id(args.user_id)
        if user is None:
            logger.error("User %s not found", args.user_id)
            return 1
        if args.reset:
            user = await store.reset_period_usage(args.user_id)
    finally:
        store.close()

    limit = "unlimited" if user.has_unlimited_credits else (
        f"{user.usage_limit:.4f}" if user.usage_limit is not None else "none"
    )
    print(f"\nUsage for {user.username} (id={user.id}):")
    print(f"  Period usage: {user.period_usage:.6f}")
    print(f"  Total usage:  {user.total_usage:.6f}")
    print(f"  Limit:        {limit}")

    records = [r for r in load_records(settings.usage_log_path) if r.user_id == user.id]
    if records:
        print("\n  By model:")
        for key, stats in sorted(aggregate_by_model(records).items()):
            print(
                f"    {key:40s} calls={stats.total_calls:<5d} "
                f"in={stats.total_input_tokens:<8d} out={stats.total_output_tokens:<8d} "
                f"cost={stats.total_cost:.6f}"
            )
    return 0


async def _cmd_user_add(args: argparse.Namespace) -> int:
    """Create a ledger user."""
    from snowgoose.core.models import UserRecord
    from snowgoose.storage.sqlite_user_store import SqliteUserStore

    settings = _settings()
    store = SqliteUserStore(settings.user_db_path)
    try:
        if await store.find_by_id(args.user_id) is not None:
            logger.error("User %s already exists", args.user_id)
            return 1
        await store.create_user(
            UserRecord(
                id=args.user_id,
                username=args.username,
                email=args.email,
                usage_limit=args.limit,
                has_active_subscription=args.subscribed,
                has_unlimited_credits=args.unlimited,
            )
        )
    finally:
        store.close()
    print(f"Created user {args.username} (id={args.user_id})")
    return 0


def _print_response(response: object, show_thinking: bool) -> None:
    """Print a ChatResponse: reasoning (optional), answer text, images, errors."""
    from snowgoose.core.content import ErrorBlock, get_image_blocks, get_thinking_blocks, get_visible_text, normalize_content

    blocks = normalize_content(response.content)
    if show_thinking:
        for block in get_thinking_blocks(blocks):
            thinking = getattr(block, "thinking", "")
            if thinking:
                print(f"<thinking>\n{thinking}\n</thinking>")
    text = get_visible_text(blocks)
    if text:
        print(text)
    for image in get_image_blocks(blocks):
        print(f"[image] {image.url}")
    for block in blocks:
        if isinstance(block, ErrorBlock):
            print(f"[error] {block.public_message} ({block.private_message})")


def _read_image(path: Path) -> str:
    """Read an image file as a base64 data URL."""
    mime_type = mimetypes.guess_type(path.name)[0] or "image/jpeg"
    data = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime_type};base64,{data}"


def _settings():
    from snowgoose.config.settings import load_settings

    return load_settings()


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage (text format on stderr)."""
    from snowgoose.logging.logger import setup_logging

    setup_logging(level="DEBUG" if verbose else "INFO", log_format="text", stream=sys.stderr)
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
