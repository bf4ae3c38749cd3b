"""
agentdeck profile — manage the recipes sessions are started from.

  agentdeck profile list [--json]
  agentdeck profile show NAME
  agentdeck profile create NAME [--agent A] [--transport CMD] [--env K=V]... -- COMMAND...
  agentdeck profile delete NAME
  agentdeck profile set-default NAME
"""

from __future__ import annotations

from typing import NoReturn

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from agentdeck.core.constants import EMPTY_FIELD, ExitCode

console = Console()


def _fail(message: str) -> NoReturn:
    console.print(f"[red]{escape(message)}[/red]")
    raise SystemExit(ExitCode.ERROR)


def _parse_env(pairs: tuple[str, ...]) -> dict[str, str]:
    env: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not (sep and key):
            _fail(f"Invalid --env value {pair!r}; expected KEY=VALUE.")
        env[key] = value
    return env


@click.group("profile")
def profile_group() -> None:
    """Manage agent profiles (the commands sessions are started from)."""


@profile_group.command("list")
@click.option("--json", "as_json", is_flag=True, default=False, help="Output as JSON")
def profile_list(as_json: bool) -> None:
    """List stored profiles; the default is marked."""
    from agentdeck.core.profile import ProfileStore

    store = ProfileStore()
    default_name = store.get_default()
    rows = [(p, p.name == default_name) for p in store.list_profiles()]

    if as_json:
        import json

        payload = [{**p.model_dump(), "default": is_default} for p, is_default in rows]
        click.echo(json.dumps(payload, indent=2))
        return

    if not rows:
        console.print("[dim]No profiles found; sessions use the built-in shell profile.[/dim]")
        console.print("Add one with [cyan]agentdeck profile create NAME -- COMMAND[/cyan]")
        return

    table = Table(title="Agent Profiles", show_lines=False)
    for column, style in (("Name", "cyan"), ("Agent", ""), ("Command", ""), ("Transport", "")):
        table.add_column(column, style=style or None)
    table.add_column("Default", justify="center")
    for p, is_default in rows:
        table.add_row(
            p.name,
            p.display_agent_name,
            escape(" ".join(p.command)),
            escape(" ".join(p.transport_command)) or f"[dim]{EMPTY_FIELD}[/dim]",
            "[green]*[/green]" if is_default else "",
        )
    console.print(table)


@profile_group.command("show")
@click.argument("name")
def profile_show(name: str) -> None:
    """Print one profile as YAML."""
    import yaml

    from agentdeck.core.profile import ProfileStore

    store = ProfileStore()
    profile = store.get(name)
    if profile is None:
        _fail(f"Profile {name!r} not found.")

    marker = "  [green](default)[/green]" if store.get_default() == name else ""
    console.print(f"[bold]{profile.name}[/bold]{marker}")
    body = yaml.safe_dump(profile.model_dump(), default_flow_style=False, sort_keys=False)
    console.print(body, markup=False)


@profile_group.command("create")
@click.argument("name")
@click.argument("command", nargs=-1, required=True)
@click.option("--agent", "agent_name", default="", help="Agent name shown in session names")
@click.option(
    "--transport",
    "transport_command",
    default="",
    help="Protocol transport command, whitespace-separated",
)
@click.option("--env", "env_pairs", multiple=True, metavar="KEY=VALUE", help="Extra environment")
@click.option("--description", default="", help="Human-readable description")
@click.option("--force", is_flag=True, default=False, help="Replace an existing profile")
def profile_create(
    name: str,
    command: tuple[str, ...],
    agent_name: str,
    transport_command: str,
    env_pairs: tuple[str, ...],
    description: str,
    force: bool,
) -> None:
    """Store a profile NAME that starts COMMAND."""
    from pydantic import ValidationError

    from agentdeck.core.profile import AgentProfile, ProfileStore

    try:
        profile = AgentProfile(
            name=name,
            agent_name=agent_name,
            description=description,
            command=list(command),
            transport_command=transport_command.split(),
            env=_parse_env(env_pairs),
        )
    except ValidationError as exc:
        _fail(f"Invalid profile: {exc}")

    store = ProfileStore()
    if not force and store.get(name) is not None:
        _fail(f"Profile {name!r} already exists; pass --force to replace it.")
    path = store.save(profile)
    console.print(f"[green]Saved profile {name!r}[/green] to {escape(str(path))}")


@profile_group.command("delete")
@click.argument("name")
def profile_delete(name: str) -> None:
    """Remove a stored profile."""
    from agentdeck.core.profile import ProfileStore

    if not ProfileStore().delete(name):
        _fail(f"Profile {name!r} not found.")
    console.print(f"Deleted profile {escape(repr(name))}.")


@profile_group.command("set-default")
@click.argument("name")
def profile_set_default(name: str) -> None:
    """Use NAME for new sessions and for restarts that match no profile."""
    from agentdeck.core.exceptions import ProfileError
    from agentdeck.core.profile import ProfileStore

    try:
        ProfileStore().set_default(name)
    except ProfileError as exc:
        _fail(str(exc))
    console.print(f"Default profile is now {escape(repr(name))}.")
