"""Turn a flattened issue forest into display text (no Streamlit dependency)."""

from __future__ import annotations

from jira_board.core.config import PROGRESS_BAR_WIDTH
from jira_board.core.models import Node, TreeRow

TYPE_ICONS: dict[str, str] = {
    "bug": "🐞",
    "story": "📗",
    "task": "☑",
    "sub-task": "↳",
    "subtask": "↳",
    "epic": "⚡",
    "test": "🧪",
    "design": "🎨",
}
DEFAULT_ICON = "•"
EXPANDED_MARKER = "▾"
COLLAPSED_MARKER = "▸"


def type_icon(issue_type: str | None) -> str:
    return TYPE_ICONS.get((issue_type or "").casefold(), DEFAULT_ICON)


def format_duration(seconds: int | None) -> str:
    """Compact Jira-style duration: ``1d 2h``, ``3h 15m``, ``0m``.

    >>> format_duration(5400)
    '1h 30m'
    """
    if not seconds or seconds <= 0:
        return "0m"
    minutes = int(seconds) // 60
    days, rem = divmod(minutes, 8 * 60)  # Jira working day
    hours, mins = divmod(rem, 60)
    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if mins or not parts:
        parts.append(f"{mins}m")
    return " ".join(parts)


def progress_bar(fraction: float | None, width: int = PROGRESS_BAR_WIDTH) -> str:
    """Text bar for spent/estimate; ``None`` renders as "no estimate"."""
    if fraction is None:
        return "no estimate"
    clamped = min(max(fraction, 0.0), 1.0)
    filled = round(clamped * width)
    return f"[{'#' * filled}{'-' * (width - filled)}] {round(fraction * 100)}%"


def format_story_points(node: Node, depth: int) -> str:
    points = node.issue.story_points
    if depth > 0 or points is None:
        return ""
    return f"{points:g}"


def expand_marker(node: Node) -> str:
    if not node.has_children:
        return " "
    return EXPANDED_MARKER if node.expanded else COLLAPSED_MARKER


def render_row(row: TreeRow) -> str:
    node, issue = row.node, row.node.issue
    indent = "    " * row.depth
    parts = [f"{indent}{expand_marker(node)} {type_icon(issue.issue_type)} {issue.key}  {issue.summary}"]
    points = format_story_points(node, row.depth)
    if points:
        parts.append(f"[{points} pts]")
    parts.append(f"@{issue.assignee}")
    parts.append(f"<{issue.status.name}>")
    if row.is_top_level and node.has_children:
        parts.append(progress_bar(node.aggregate.progress_fraction))
    elif issue.time_estimate_seconds:
        parts.append(f"{format_duration(issue.time_spent_seconds)}/{format_duration(issue.time_estimate_seconds)}")
    return "  ".join(parts)


def render_lines(rows: list[TreeRow]) -> list[str]:
    """One text line per row; index ``i`` maps back to ``rows[i].node``."""
    return [render_row(r) for r in rows]
