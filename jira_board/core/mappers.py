"""Mapping raw Jira issue JSON into IssueRecord instances.

This is the only place that knows about the loosely-typed REST payload; every
missing or null field is default-filled here so the tree and cache layers only
ever see complete records.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import pandas as pd

from .config import DEFAULT_STORY_POINT_FIELD
from .models import UNASSIGNED, IssueRecord, StatusInfo, Transition

SUBTASK_TYPE_NAMES: frozenset[str] = frozenset({"sub-task", "subtask", "sub task"})


def _name(value: Any, attr: str = "name") -> str | None:
    if isinstance(value, dict):
        text = value.get(attr)
        if isinstance(text, str) and text.strip():
            return text.strip()
    return None


def _seconds(value: Any) -> int:
    if value is None or isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return 0
    number = pd.to_numeric(value, errors="coerce")
    if pd.isna(number):
        return 0
    return max(int(number), 0)


def parse_story_points(value: Any) -> float | None:
    if value is None or isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return None
    number = pd.to_numeric(value, errors="coerce")
    if pd.isna(number):
        return None
    return float(number)


def is_subtask_type(issuetype: Any) -> bool:
    if not isinstance(issuetype, dict):
        return False
    if issuetype.get("subtask") is True:
        return True
    if issuetype.get("hierarchyLevel") == -1:
        return True
    name = (_name(issuetype) or "").casefold()
    return name in SUBTASK_TYPE_NAMES


def map_status(value: Any) -> StatusInfo:
    name = _name(value) or "Unknown"
    category = None
    if isinstance(value, dict):
        category = (value.get("statusCategory") or {}).get("key")
    return StatusInfo(name=name, category=category)


def map_issue(raw: dict[str, Any], story_point_field: str | None = DEFAULT_STORY_POINT_FIELD) -> IssueRecord:
    fields = raw.get("fields") or {}
    issuetype = fields.get("issuetype")

    # Only sub-task-like types nest; epics/parents above story level are ignored.
    parent_key = None
    if is_subtask_type(issuetype):
        parent = fields.get("parent")
        if isinstance(parent, dict) and parent.get("key"):
            parent_key = str(parent["key"])

    story_points = parse_story_points(fields.get(story_point_field)) if story_point_field else None

    return IssueRecord(
        key=str(raw.get("key") or ""),
        issue_type=_name(issuetype) or "Unknown",
        summary=(fields.get("summary") or "").strip(),
        status=map_status(fields.get("status")),
        assignee=_name(fields.get("assignee"), "displayName") or UNASSIGNED,
        priority=_name(fields.get("priority")),
        parent_key=parent_key,
        story_points=story_points,
        time_spent_seconds=_seconds(fields.get("timespent")),
        time_estimate_seconds=_seconds(fields.get("timeoriginalestimate")),
    )


def map_issues(raw_issues: Iterable[dict[str, Any]], story_point_field: str | None = DEFAULT_STORY_POINT_FIELD) -> list[IssueRecord]:
    return [map_issue(r, story_point_field) for r in raw_issues if r.get("key")]


def map_transition(raw: dict[str, Any]) -> Transition:
    return Transition(
        id=str(raw.get("id") or ""),
        name=raw.get("name") or "",
        to_status=_name(raw.get("to")),
    )
