"""agentdeck ui — launch the session dashboard."""

from __future__ import annotations

import sys

import click
from rich.console import Console
from rich.markup import escape

from agentdeck.core.constants import ExitCode
from agentdeck.core.exceptions import ConfigError

err_console = Console(stderr=True)


@click.command("ui")
@click.option(
    "--new",
    "start_profiles",
    multiple=True,
    metavar="PROFILE",
    help="Start a session from PROFILE on launch (repeatable).",
)
@click.pass_context
def ui_cmd(ctx: click.Context, start_profiles: tuple[str, ...]) -> None:
    """Launch the interactive session dashboard (requires a TTY)."""
    if not sys.stdout.isatty():
        err_console.print(
            "[red]Error:[/red] 'agentdeck ui' requires an interactive terminal (TTY)."
        )
        raise SystemExit(ExitCode.ENV_ERROR)

    from agentdeck.core.config import load_config_or_default
    from agentdeck.core.logging import configure_logging

    try:
        config = load_config_or_default()
    except ConfigError as exc:
        err_console.print(f"[red]Config error:[/red] {escape(str(exc))}")
        raise SystemExit(ExitCode.CONFIG_ERROR) from None

    obj = ctx.obj or {}
    configure_logging(
        level=obj.get("log_level") or config.logging.level,
        json_output=obj.get("log_json") or config.logging.format == "json",
        log_file=config.log_path,
    )

    from agentdeck.ui.app import run as tui_run

    tui_run(config, start_profiles=start_profiles)
