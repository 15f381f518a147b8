# src/mcp_app_bridge/main.py
"""Entry-point for the ``mcp-app-bridge`` CLI.

* ``normalize`` - run the payload normalizer over a JSON document
* ``rules``     - list the normalizer rule table in priority order
* ``connect``   - run a headless app session against a WebSocket host
"""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Any, Optional

import typer
from chuk_term.ui import format_table, output
from rich.console import Console
from rich.panel import Panel

from mcp_app_bridge.apps.document import VirtualDocument
from mcp_app_bridge.apps.hooks import RenderHooks
from mcp_app_bridge.apps.normalizer import DEFAULT_RULES, Normalizer
from mcp_app_bridge.apps.session import BridgeSession
from mcp_app_bridge.apps.transport import WebSocketTransport
from mcp_app_bridge.config.defaults import APP_NAME, DEFAULT_LOG_LEVEL
from mcp_app_bridge.config.enums import LogFormat, StringPolicy
from mcp_app_bridge.config.env_vars import EnvVar, get_env
from mcp_app_bridge.config.logging import get_logger, setup_logging
from mcp_app_bridge.config.models import BridgeConfig

logger = get_logger("main")

app = typer.Typer(
    name=APP_NAME,
    add_completion=False,
    help="App-side bridge for MCP Apps hosts.",
)


# --------------------------------------------------------------------------- #
# Global options                                                              #
# --------------------------------------------------------------------------- #
@app.callback()
def main_callback(
    quiet: bool = typer.Option(False, "-q", "--quiet", help="Suppress most log output"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable verbose logging"),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help=f"Set log level (default {DEFAULT_LOG_LEVEL})"
    ),
    log_file: Optional[str] = typer.Option(
        None, "--log-file", help="Also write a rotating debug log to this file"
    ),
    log_format: Optional[LogFormat] = typer.Option(
        None,
        "--log-format",
        case_sensitive=False,
        help="Console log layout (default: detailed with -v, else simple)",
    ),
) -> None:
    """Configure logging for every subcommand."""
    level = log_level or get_env(EnvVar.LOG_LEVEL) or DEFAULT_LOG_LEVEL
    try:
        setup_logging(
            level=level,
            quiet=quiet,
            verbose=verbose,
            format_style=log_format
            or (LogFormat.DETAILED if verbose else LogFormat.SIMPLE),
            log_file=log_file,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


# --------------------------------------------------------------------------- #
# normalize                                                                   #
# --------------------------------------------------------------------------- #
@app.command("normalize")
def normalize_command(
    path: str = typer.Argument(..., help="JSON file to normalize, or - for stdin"),
    string_policy: StringPolicy = typer.Option(
        StringPolicy.PARSE,
        "--string-policy",
        case_sensitive=False,
        help="How string payloads are treated",
    ),
) -> None:
    """Normalize a tool-result payload and print the canonical form."""
    try:
        text = sys.stdin.read() if path == "-" else _read_file(path)
    except OSError as exc:
        output.error(f"Cannot read {path}: {exc}")
        raise typer.Exit(1) from exc

    try:
        raw: Any = json.loads(text)
    except json.JSONDecodeError:
        # Not a JSON document: hand the text over as a string payload
        raw = text.strip()

    result = Normalizer(string_policy=string_policy).explain(raw)
    if result.is_empty:
        output.warning("No data found in payload")
        raise typer.Exit(1)

    Console().print_json(json.dumps(result.value, ensure_ascii=False, default=str))
    output.info("Rules: " + (" -> ".join(result.trace) or "passthrough"))


def _read_file(path: str) -> str:
    with open(path, encoding="utf-8") as fh:
        return fh.read()


# --------------------------------------------------------------------------- #
# rules                                                                       #
# --------------------------------------------------------------------------- #
@app.command("rules")
def rules_command() -> None:
    """List the normalizer rules in priority order."""
    data = [
        {
            "#": str(idx),
            "Rule": rule.name,
            "Recurses": "yes" if rule.recurse else "",
            "Matches": rule.description,
        }
        for idx, rule in enumerate(DEFAULT_RULES, 1)
    ]
    table = format_table(
        data=data,
        title="Normalizer Rules",
        columns=["#", "Rule", "Recurses", "Matches"],
    )
    output.print_table(table)


# --------------------------------------------------------------------------- #
# connect                                                                     #
# --------------------------------------------------------------------------- #
@app.command("connect")
def connect_command(
    url: Optional[str] = typer.Argument(None, help="WebSocket URL of the host"),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Request timeout in seconds"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Override the log level for this session"
    ),
) -> None:
    """Run a headless app session: handshake, print tool results, answer teardown."""
    if log_level:
        try:
            setup_logging(level=log_level)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--log-level") from exc

    config = build_config(url=url, timeout=timeout)

    try:
        asyncio.run(_connect(config))
    except KeyboardInterrupt:
        output.warning("Interrupted")
    except Exception as exc:  # noqa: BLE001 - show nicely then exit
        logger.debug("connect failed", exc_info=True)
        output.print(Panel(str(exc), title="Fatal Error", style="bold red"))
        raise typer.Exit(1) from exc


def build_config(url: str | None = None, timeout: float | None = None) -> BridgeConfig:
    """Resolve the session config from the environment plus CLI overrides."""
    if timeout is not None and timeout <= 0:
        raise typer.BadParameter("must be positive", param_hint="--timeout")
    config = BridgeConfig.from_env()
    updates: dict[str, Any] = {}
    if url:
        updates["host_url"] = url
    if timeout is not None:
        updates["timeouts"] = config.timeouts.model_copy(update={"request": timeout})
    return config.model_copy(update=updates) if updates else config


def console_hooks(console: Console) -> RenderHooks:
    """Hooks that print what a template would render."""

    def render(payload: Any) -> None:
        console.print_json(json.dumps(payload, ensure_ascii=False, default=str))

    return RenderHooks(
        render=render,
        empty=lambda: output.warning("No data received"),
        error=lambda message: output.error(message),
        cancelled=lambda reason: output.warning(f"Operation cancelled: {reason}"),
        host_context=lambda ctx: logger.debug("Host context: %s", ctx),
        layout=lambda mode: output.info(f"Display mode: {mode.value}"),
        teardown=lambda reason: output.info(f"Teardown: {reason}"),
    )


async def _connect(config: BridgeConfig) -> None:
    session = BridgeSession(
        config=config,
        document=VirtualDocument(),
        hooks=console_hooks(Console()),
    )
    output.info(f"Connecting to {config.host_url}")
    await WebSocketTransport(config.host_url).run(session)
    output.info("Connection closed")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
