"""
agentdeck CLI entry point.

Commands:
  agentdeck ui [--new PROFILE]   — launch the session dashboard TUI
  agentdeck profile ...          — manage agent profiles
  agentdeck config show|path     — inspect the effective configuration
  agentdeck version              — show version information
"""

from __future__ import annotations

import sys

import click
from rich.console import Console

from agentdeck import __version__

console = Console()
err_console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group(
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(__version__, "--version", "-V", message="agentdeck %(version)s")
@click.option("--log-level", default=None, help="Log level (overrides config).")
@click.option("--log-json", is_flag=True, default=False, help="Emit JSON log lines.")
@click.pass_context
def cli(ctx: click.Context, log_level: str | None, log_json: bool) -> None:
    """agentdeck — live dashboard for local coding-agent sessions."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level
    ctx.obj["log_json"] = log_json

    from agentdeck.core.logging import configure_logging

    # Commands that own the terminal reconfigure logging to a file
    configure_logging(level=log_level or "WARNING", json_output=log_json)

    if ctx.invoked_subcommand is None:
        if sys.stdout.isatty():
            ctx.invoke(ui_cmd)
        else:
            click.echo(ctx.get_help())


# ---------------------------------------------------------------------------
# ui
# ---------------------------------------------------------------------------

from agentdeck.cli._ui import ui_cmd  # noqa: E402

cli.add_command(ui_cmd)


# ---------------------------------------------------------------------------
# profile / config
# ---------------------------------------------------------------------------

from agentdeck.cli._config_cmd import config_group  # noqa: E402
from agentdeck.cli._profile import profile_group  # noqa: E402

cli.add_command(profile_group)
cli.add_command(config_group)


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--json", "as_json", is_flag=True, default=False)
def version(as_json: bool) -> None:
    """Show version information."""
    import platform
    import sys as _sys

    from agentdeck.core.config import _config_file_path

    data = {
        "agentdeck": __version__,
        "python": _sys.version.split()[0],
        "platform": _sys.platform,
        "arch": platform.machine(),
        "config_path": str(_config_file_path()),
    }
    if as_json:
        import json

        click.echo(json.dumps(data, indent=2))
        return
    console.print(f"agentdeck {__version__}")
    console.print(f"Python {data['python']}")
    console.print(f"Platform: {data['platform']} {data['arch']}")
    console.print(f"Config:   {data['config_path']}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
