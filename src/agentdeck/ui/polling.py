"""
Polling module — builds the dashboard's row list from the session registry.

``build_entries()`` is the whole refresh pass: enumerate sessions, take one
snapshot each, resolve status, and order the rows with killed sessions last.
It is synchronous and cheap enough to run on the Textual event loop.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence

import structlog

from agentdeck.core.constants import EMPTY_FIELD, POLL_INTERVAL_SECONDS
from agentdeck.core.session.manager import SessionBackend
from agentdeck.core.session.models import SessionSnapshot
from agentdeck.core.session.status import (
    DisplayCategory,
    categorize,
    count_pending_permissions,
)
from agentdeck.ui.state import Entry

logger = structlog.get_logger()

__all__ = [
    "POLL_INTERVAL_SECONDS",
    "build_entries",
    "count_killed",
    "entry_from_snapshot",
    "stable_partition_killed_last",
    "summarize",
]


def entry_from_snapshot(snapshot: SessionSnapshot) -> Entry:
    meta = snapshot.meta
    return Entry(
        handle=snapshot.handle,
        name=snapshot.display_name or EMPTY_FIELD,
        category=categorize(snapshot),
        mode=(meta.mode_name() if meta else None) or EMPTY_FIELD,
        model=(meta.model_name() if meta else None) or EMPTY_FIELD,
        pending_permissions=count_pending_permissions(snapshot.tool_calls),
        path=snapshot.cwd or EMPTY_FIELD,
    )


def _degraded_entry(handle: str, registry: SessionBackend) -> Entry:
    snapshot = SessionSnapshot.unreadable(handle)
    try:
        snapshot = registry.snapshot(handle)
    except Exception:  # noqa: BLE001
        pass
    return Entry(
        handle=handle,
        name=snapshot.display_name or EMPTY_FIELD,
        category=DisplayCategory.UNKNOWN,
        path=snapshot.cwd or EMPTY_FIELD,
    )


def stable_partition_killed_last(entries: Iterable[Entry]) -> list[Entry]:
    """Move killed entries after the rest, keeping each group's order."""
    alive: list[Entry] = []
    killed: list[Entry] = []
    for entry in entries:
        (killed if entry.is_killed else alive).append(entry)
    return alive + killed


def build_entries(registry: SessionBackend) -> list[Entry]:
    """Return one row per live session, killed sessions last."""
    rows: list[Entry] = []
    for handle in registry.handles():
        # The handle list may lag a concurrent teardown
        if not registry.is_live(handle):
            continue
        try:
            rows.append(entry_from_snapshot(registry.snapshot(handle)))
        except Exception as exc:  # noqa: BLE001
            logger.warning("entry_degraded", handle=handle[:8], error=str(exc))
            rows.append(_degraded_entry(handle, registry))
    return stable_partition_killed_last(rows)


def count_killed(entries: Sequence[Entry]) -> int:
    return sum(1 for e in entries if e.is_killed)


def summarize(entries: Sequence[Entry]) -> dict[str, int]:
    """Category counts for the header line."""
    counts = Counter(str(e.category) for e in entries)
    return {"total": len(entries), **dict(counts)}
