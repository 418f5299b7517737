#!/usr/bin/env python3
"""
defitools command line
======================
Usage:
  defitools list
  defitools info <tool>
  defitools search <keyword>
  defitools exec <tool> [--key value ...] [--json '{...}'] [--timeout ms]
  defitools setup
  defitools config set <KEY> <VALUE>
  defitools config get <KEY> [--reveal]
  defitools config list
  defitools config delete <KEY>

Results go to stdout as JSON (exit 0). Errors go to stderr as JSON
{"error", "code", "hint", "retryable"} (exit 1). Usage errors exit 2.
"""

import argparse
import asyncio
import json
import logging
import os
import sys
import types
import typing
from typing import NoReturn, Optional

from pydantic import BaseModel

from defitools import __version__
from defitools.client import Tool, ToolClient
from defitools.config import (
    is_known_key,
    read_config,
    redact_value,
    resolve_all_keys,
    resolve_keys,
    write_config,
)
from defitools.errors import (
    ArgumentError,
    ChainNotSupportedError,
    ProviderError,
    ToolError,
    UnknownToolError,
)
from defitools.registry import KEY_GATED_TOOLS, create_client, search_tools
from defitools.utils import suggest_tool

DEFAULT_TIMEOUT_MS = 120_000

logger = logging.getLogger("defitools.cli")


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

def output_json(data) -> NoReturn:
    sys.stdout.write(json.dumps(data, indent=2, default=str) + "\n")
    sys.exit(0)


def output_error(
    message: str,
    code: Optional[str] = None,
    hint: Optional[str] = None,
    retryable: Optional[bool] = None,
) -> NoReturn:
    payload: dict = {"error": message}
    if code:
        payload["code"] = code
    if hint:
        payload["hint"] = hint
    if retryable is not None:
        payload["retryable"] = retryable
    sys.stderr.write(json.dumps(payload) + "\n")
    sys.exit(1)


def unknown_tool_error(name: str, tool_names: list[str]) -> NoReturn:
    required = KEY_GATED_TOOLS.get(name)
    if required:
        plural = "s" if len(required) > 1 else ""
        commands = "\n  ".join(f"defitools config set {k} <value>" for k in required)
        output_error(
            f'Tool "{name}" requires API key{plural}: {", ".join(required)}',
            code="MISSING_API_KEY",
            hint=f"Configure with:\n  {commands}",
            retryable=True,
        )
    suggestion = suggest_tool(name, tool_names)
    output_error(
        f"Unknown tool: {name}",
        code="UNKNOWN_TOOL",
        hint=f'Did you mean "{suggestion}"?' if suggestion else None,
    )


# ---------------------------------------------------------------------------
# Flag parsing for `exec`
# ---------------------------------------------------------------------------

def _field_types(annotation) -> set:
    origin = typing.get_origin(annotation)
    if origin in (typing.Union, types.UnionType):
        found = set()
        for arg in typing.get_args(annotation):
            found |= _field_types(arg)
        return found
    return {origin or annotation}


def parse_flags(argv: list[str], model: type[BaseModel]) -> dict:
    """
    Turn ``--key value`` / ``--key=value`` flags into a raw argument dict.

    ``--some-key`` is read as ``some_key``. A flag with no value is ``True``.
    Repeated flags accumulate for list fields. ``--json '{...}'`` merges an
    object in. Values stay strings; pydantic coerces them during validation.
    """
    fields = model.model_fields
    result: dict = {}
    i = 0
    while i < len(argv):
        arg = argv[i]
        i += 1
        if not arg.startswith("--"):
            continue

        key, _, inline = arg[2:].partition("=")
        has_inline = "=" in arg
        key = key.replace("-", "_")

        if key == "json":
            raw = inline if has_inline else (argv[i] if i < len(argv) else None)
            if not has_inline:
                i += 1
            if raw is None:
                output_error("--json requires a value", code="INVALID_ARGS")
            try:
                merged = json.loads(raw)
            except ValueError:
                output_error(f"Invalid JSON for --json: {raw}", code="INVALID_ARGS")
            if not isinstance(merged, dict):
                output_error("--json must be a JSON object", code="INVALID_ARGS")
            result.update(merged)
            continue

        field_types = _field_types(fields[key].annotation) if key in fields else set()
        numeric = bool(field_types & {int, float})

        value = inline if has_inline else None
        if not has_inline and i < len(argv):
            nxt = argv[i]
            if not nxt.startswith("--") or (numeric and _is_number(nxt)):
                value = nxt
                i += 1

        if value is None:
            result[key] = True
        elif list in field_types:
            existing = result.get(key)
            if isinstance(existing, list):
                existing.append(value)
            elif existing is not None and str in field_types:
                result[key] = [existing, value]
            elif str in field_types:
                result[key] = value
            else:
                result[key] = [value]
        else:
            result[key] = value
    return result


def _is_number(text: str) -> bool:
    try:
        float(text)
    except ValueError:
        return False
    return True


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def _build_client() -> ToolClient:
    return create_client(resolve_keys())


def _lookup(client: ToolClient, name: str) -> Tool:
    try:
        return client.get_tool(name)
    except UnknownToolError as e:
        unknown_tool_error(name, e.available)


def cmd_list(args) -> NoReturn:
    output_json(sorted(_build_client().get_tools()))


def cmd_info(args) -> NoReturn:
    tool = _lookup(_build_client(), args.tool)
    chains = (
        [{"id": c.id, "name": c.name} for c in tool.supported_chains]
        if tool.supported_chains else None
    )
    output_json({
        "name": tool.name,
        "description": tool.description,
        "parameters": tool.json_schema(),
        "supported_chains": chains,
    })


def cmd_search(args) -> NoReturn:
    output_json(search_tools(_build_client().get_tools(), args.keyword))


def cmd_exec(args) -> NoReturn:
    client = _build_client()
    tool = _lookup(client, args.tool)

    flags = list(args.flags)
    timeout_ms = DEFAULT_TIMEOUT_MS
    if "--timeout" in flags:
        idx = flags.index("--timeout")
        raw = flags[idx + 1] if idx + 1 < len(flags) else ""
        if not _is_number(raw) or float(raw) <= 0:
            output_error("--timeout requires a positive number (milliseconds)", code="INVALID_ARGS")
        timeout_ms = float(raw)
        del flags[idx:idx + 2]

    tool_args = parse_flags(flags, tool.parameters)

    try:
        result = asyncio.run(asyncio.wait_for(client.execute(tool.name, tool_args), timeout_ms / 1000))
    except asyncio.TimeoutError:
        output_error(
            f"Tool {tool.name} timed out after {timeout_ms:g}ms",
            code="TIMEOUT",
            hint=f"Retry with a longer timeout: --timeout {timeout_ms * 2:g}",
            retryable=True,
        )
    except ArgumentError as e:
        output_error(e.message, code=e.code, hint=f"Run: defitools info {tool.name}", retryable=True)
    except ChainNotSupportedError as e:
        chains = ", ".join(f"{c.name} ({c.id})" for c in tool.supported_chains or ())
        output_error(e.message, code=e.code, hint=f"Supported chains: {chains}" if chains else None, retryable=True)
    except ProviderError as e:
        retryable = e.status is None or e.status == 429 or e.status >= 500
        output_error(e.message, code=e.code, retryable=retryable)
    except ToolError as e:
        output_error(e.message, code=e.code)
    except Exception as e:
        logger.exception("tool %s crashed", tool.name)
        output_error(str(e) or type(e).__name__, code="EXECUTION_ERROR")
    output_json(result)


def cmd_setup(args) -> NoReturn:
    resolved = resolve_all_keys()
    configured = sum(1 for r in resolved if r.value)
    err = sys.stderr
    err.write(f"defitools v{__version__} - configuration status\n\n")
    for r in resolved:
        status = f"configured ({r.source})" if r.value else "missing"
        mark = "✓" if r.value else "✗"
        err.write(f"  {mark} {r.name:<26} {status:<20} {r.description}\n")
    err.write(f"\n  {configured}/{len(resolved)} keys configured\n")
    sys.exit(0)


def cmd_config(args) -> NoReturn:
    if args.action == "set":
        if not is_known_key(args.key):
            sys.stderr.write(json.dumps({"warning": f"{args.key} is not a known key"}) + "\n")
        config = read_config()
        config["keys"][args.key] = args.value
        write_config(config)
        output_json({"ok": True, "key": args.key})

    if args.action == "get":
        value = read_config()["keys"].get(args.key)
        if value is None:
            output_json({"key": args.key, "value": None})
        output_json({"key": args.key, "value": value if args.reveal else redact_value(value)})

    if args.action == "list":
        output_json([
            {
                "key": r.name,
                "status": "configured" if r.value else "missing",
                "source": r.source,
                "description": r.description,
            }
            for r in resolve_all_keys()
        ])

    # delete
    config = read_config()
    existed = args.key in config["keys"]
    config["keys"].pop(args.key, None)
    write_config(config)
    output_json({"ok": True, "key": args.key, "deleted": existed})


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="defitools", description="DeFi and market data agent tools")
    parser.add_argument("--version", action="version", version=f"defitools {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List tool names").set_defaults(func=cmd_list)

    p = sub.add_parser("info", help="Show a tool's description and parameter schema")
    p.add_argument("tool")
    p.set_defaults(func=cmd_info)

    p = sub.add_parser("search", help="Find tools by keyword")
    p.add_argument("keyword")
    p.set_defaults(func=cmd_search)

    p = sub.add_parser("exec", help="Run a tool")
    p.add_argument("tool")
    p.add_argument("flags", nargs=argparse.REMAINDER)
    p.set_defaults(func=cmd_exec)

    sub.add_parser("setup", help="Show credential configuration status").set_defaults(func=cmd_setup)

    p = sub.add_parser("config", help="Manage stored credentials")
    actions = p.add_subparsers(dest="action", required=True)
    a = actions.add_parser("set")
    a.add_argument("key")
    a.add_argument("value")
    a = actions.add_parser("get")
    a.add_argument("key")
    a.add_argument("--reveal", action="store_true")
    actions.add_parser("list")
    a = actions.add_parser("delete")
    a.add_argument("key")
    p.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[list[str]] = None) -> NoReturn:
    logging.basicConfig(
        level=os.environ.get("DEFITOOLS_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    args = build_parser().parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
