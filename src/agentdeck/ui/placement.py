"""Where to show a session when the user opens it from the dashboard."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum


class PlacementKind(StrEnum):
    FOCUS = "focus"  # a view already shows this session
    REUSE = "reuse"  # retarget a view showing another session
    NEW = "new"


@dataclass(frozen=True)
class Placement:
    kind: PlacementKind
    index: int | None = None


def choose_placement(handle: str, open_views: Sequence[str | None]) -> Placement:
    """
    Pick a view for *handle* given the handles shown by the open views.

    A view already showing the session wins, then any view showing some other
    tracked session, then a new view.  ``None`` marks a view with no session.
    """
    for i, shown in enumerate(open_views):
        if shown == handle:
            return Placement(PlacementKind.FOCUS, i)
    for i, shown in enumerate(open_views):
        if shown is not None:
            return Placement(PlacementKind.REUSE, i)
    return Placement(PlacementKind.NEW)
