"""JQL builders for each board view."""

from __future__ import annotations

import re
from collections.abc import Iterable

_ORDER_BY_RE = re.compile(r"\s+ORDER\s+BY\s+", re.IGNORECASE)
_STATUS_CATEGORY_RE = re.compile(r"statuscategory", re.IGNORECASE)

NOT_DONE_CLAUSE = "statusCategory != Done"


def escape_jql_string(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def quote_project(project_key: str) -> str:
    return f'"{escape_jql_string(project_key.strip().upper())}"'


def summary_clause(filter_text: str | None) -> str | None:
    if not filter_text or not filter_text.strip():
        return None
    return f'summary ~ "{escape_jql_string(filter_text.strip())}"'


def _outside_quotes(text: str, end: int) -> bool:
    """True when position ``end`` of ``text`` is not inside a quoted JQL string."""
    quote = None
    escaped = False
    for ch in text[:end]:
        if escaped:
            escaped = False
        elif ch == "\\":
            escaped = True
        elif quote:
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
    return quote is None


def split_order_by(jql: str) -> tuple[str, str | None]:
    """Split ``jql`` into its condition and trailing ``ORDER BY`` clause.

    ``ORDER BY`` inside a quoted string is part of the condition.
    """
    text = jql.strip()
    if text.upper().startswith("ORDER BY"):
        return "", text[len("ORDER BY") :].strip()
    for match in _ORDER_BY_RE.finditer(text):
        if _outside_quotes(text, match.start()):
            return text[: match.start()].strip(), text[match.end() :].strip()
    return text, None


def _compose(clauses: Iterable[str | None], order_by: str | None) -> str:
    jql = " AND ".join(c for c in clauses if c)
    if order_by:
        jql = f"{jql} ORDER BY {order_by}" if jql else f"ORDER BY {order_by}"
    return jql


def sprint_jql(project_key: str, filter_text: str | None = None) -> str:
    return _compose(
        [f"project = {quote_project(project_key)}", "sprint in openSprints()", summary_clause(filter_text)],
        "Rank ASC",
    )


def backlog_jql(project_key: str, filter_text: str | None = None) -> str:
    return _compose(
        [
            f"project = {quote_project(project_key)}",
            "(sprint is EMPTY OR sprint not in openSprints())",
            NOT_DONE_CLAUSE,
            summary_clause(filter_text),
        ],
        "Rank ASC",
    )


def my_issues_jql(projects: Iterable[str], filter_text: str | None = None, *, hide_resolved: bool = True) -> str:
    project_list = ", ".join(quote_project(p) for p in projects)
    return _compose(
        [
            "assignee = currentUser()",
            f"project IN ({project_list})",
            NOT_DONE_CLAUSE if hide_resolved else None,
            summary_clause(filter_text),
        ],
        "updated DESC",
    )


def custom_jql(query: str, filter_text: str | None = None, *, hide_resolved: bool = True) -> str:
    """Wrap a user query with the resolved filter and summary filter.

    Resolved issues are only hidden when the query does not already constrain
    ``statusCategory`` itself.
    """
    condition, order_by = split_order_by(query)
    clauses: list[str | None] = [f"({condition})" if condition else None]
    if hide_resolved and not _STATUS_CATEGORY_RE.search(condition):
        clauses.append(NOT_DONE_CLAUSE)
    clauses.append(summary_clause(filter_text))
    return _compose(clauses, order_by)
