"""Status categorization and transition lookup utilities."""

from __future__ import annotations

from collections.abc import Iterable

from .config import DONE_TRANSITION_KEYWORDS, STATUS_CATEGORY_DONE, STATUS_COLOR_KEYWORDS, STATUS_PALETTE
from .models import StatusInfo, Transition

_PALETTE_ORDER: tuple[str, ...] = tuple(STATUS_PALETTE)


def is_done(status: StatusInfo) -> bool:
    """True when Jira reports the status in the Done category."""
    return status.category == STATUS_CATEGORY_DONE


def status_color_name(status_name: str | None) -> str:
    """Pick a palette color for a status name.

    Known keyword groups map to fixed colors (e.g. "In Progress" -> yellow);
    anything else gets a stable hashed color so the same status is always
    drawn the same way across renders.

    >>> status_color_name("In Progress")
    'yellow'
    >>> status_color_name("Ready for Dev")
    'grey'
    """
    if not status_name:
        return "blue"
    upper = status_name.upper()
    for color, keywords in STATUS_COLOR_KEYWORDS:
        if any(k in upper for k in keywords):
            return color
    digest = 0
    for ch in status_name:
        digest = (digest * 31 + ord(ch)) % len(_PALETTE_ORDER)
    return _PALETTE_ORDER[digest]


def status_color(status_name: str | None) -> str:
    return STATUS_PALETTE[status_color_name(status_name)]


def find_done_transition(transitions: Iterable[Transition]) -> Transition | None:
    """First transition whose name reads like closing the issue."""
    for transition in transitions:
        upper = (transition.name or "").upper()
        if any(k in upper for k in DONE_TRANSITION_KEYWORDS):
            return transition
    return None
