"""agentdeck config — write, locate and inspect the configuration file."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape

from agentdeck.core.constants import ExitCode
from agentdeck.core.exceptions import ConfigError

console = Console()


@click.group("config")
def config_group() -> None:
    """Create, locate and inspect config.toml."""


@config_group.command("path")
def config_path() -> None:
    """Print the config file path (whether or not it exists)."""
    from agentdeck.core.config import _config_file_path

    click.echo(str(_config_file_path()))


@config_group.command("show")
@click.option("--json", "as_json", is_flag=True, default=False)
def config_show(as_json: bool) -> None:
    """Print the effective configuration (file, env overrides, defaults)."""
    from agentdeck.core.config import _config_file_path, load_config_or_default

    try:
        config = load_config_or_default()
    except ConfigError as exc:
        console.print(f"[red]Config error:[/red] {escape(str(exc))}")
        raise SystemExit(ExitCode.CONFIG_ERROR) from None

    data = config.model_dump()
    if as_json:
        import json

        click.echo(json.dumps(data, indent=2))
        return

    import tomli_w

    path = _config_file_path()
    source = escape(str(path))
    if not path.exists():
        source += " [dim](not found, using defaults)[/dim]"
    console.print(f"[bold]Config:[/bold] {source}")
    console.print()
    console.print(tomli_w.dumps(data), markup=False, highlight=False)


@config_group.command("init")
@click.option("--default-profile", default="", help="Profile used for new sessions")
@click.option("--default-cwd", default="", help="Working directory for new sessions")
@click.option("--poll-interval", type=float, default=None, help="Dashboard refresh period (s)")
@click.option("--log-level", "log_level", default=None, help="Default log level")
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing file")
def config_init(
    default_profile: str,
    default_cwd: str,
    poll_interval: float | None,
    log_level: str | None,
    force: bool,
) -> None:
    """Write config.toml with the given settings; everything else keeps its default."""
    from agentdeck.core.config import _config_file_path, save_config

    path = _config_file_path()
    if path.exists() and not force:
        console.print(
            f"[red]{escape(str(path))} already exists.[/red] Pass --force to overwrite it."
        )
        raise SystemExit(ExitCode.ERROR)

    data: dict[str, object] = {}
    if default_profile:
        data["default_profile"] = default_profile
    if default_cwd:
        data["default_cwd"] = default_cwd
    if poll_interval is not None:
        data["dashboard"] = {"poll_interval_seconds": poll_interval}
    if log_level:
        data["logging"] = {"level": log_level}

    try:
        written = save_config(data, path)
    except ConfigError as exc:
        console.print(f"[red]Config error:[/red] {escape(str(exc))}")
        raise SystemExit(ExitCode.CONFIG_ERROR) from None
    console.print(f"[green]Wrote[/green] {escape(str(written))}")
