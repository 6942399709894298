"""Central configuration, constants, and tuning knobs for the issue board."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

# =============================================================================
# Jira Connection Settings
# =============================================================================
JIRA_REST_API_VERSION = "3"

# =============================================================================
# Search Settings
# =============================================================================
# Enhanced search page size (the endpoint caps maxResults at 100 for most sites)
SEARCH_PAGE_SIZE = 100

# Jira's default "Story Points" custom field on cloud sites. Per-project
# overrides live in board.yaml (see project_config.py).
DEFAULT_STORY_POINT_FIELD = "customfield_10016"
DEFAULT_ACCEPTANCE_CRITERIA_FIELD: str | None = None

# Fields requested for every tree fetch (story point field appended per project)
SEARCH_BASE_FIELDS: Sequence[str] = (
    "summary",
    "status",
    "parent",
    "priority",
    "assignee",
    "timespent",
    "timeoriginalestimate",
    "issuetype",
)

# Issue type created by the "create" action when none is given
DEFAULT_CREATE_ISSUE_TYPE = "Story"

# =============================================================================
# Async Fetch Settings
# =============================================================================
# Jira calls are blocking HTTP; keep the pool small to stay clear of rate limits.
FETCH_MAX_WORKERS = 4

# =============================================================================
# Status Configuration
# =============================================================================
# Jira statusCategory keys
STATUS_CATEGORY_DONE = "done"

# Keyword groups used to color statuses; checked in order, first match wins.
STATUS_COLOR_KEYWORDS: Sequence[tuple[str, Sequence[str]]] = (
    ("grey", ("READY FOR DEV", "READY FOR TEST")),
    ("green", ("DONE", "RESOLVED", "CLOSED", "FINISHED")),
    ("yellow", ("PROGRESS", "DEVELOPMENT", "BUILDING", "WORKING")),
    ("blue", ("TODO", "TO DO", "OPEN", "BACKLOG")),
    ("red", ("BLOCK", "REJECT", "BUG", "ERROR")),
    ("magenta", ("REVIEW", "QA", "TEST")),
)

STATUS_PALETTE: dict[str, str] = {
    "green": "#a6e3a1",
    "blue": "#89b4fa",
    "yellow": "#f9e2af",
    "red": "#f38ba8",
    "magenta": "#cba6f7",
    "cyan": "#89dceb",
    "grey": "#524f67",
}

# Transition names that count as "closing" an issue
DONE_TRANSITION_KEYWORDS: Sequence[str] = ("DONE", "CLOSED", "RESOLVED", "COMPLETE")

# =============================================================================
# UI Default Values
# =============================================================================
PROGRESS_BAR_WIDTH = 10
LOADING_POLL_SECONDS = 0.3

# =============================================================================
# Persisted Preferences
# =============================================================================
PREFERENCES_PATH = Path.home() / ".local" / "share" / "jira_board" / "state.json"


@dataclass(slots=True)
class AppSettings:
    max_table_rows: int = 1000
    fetch_max_workers: int = FETCH_MAX_WORKERS


SETTINGS = AppSettings()
