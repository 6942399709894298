"""Domain data models for fetched issues and the displayed issue tree."""

from __future__ import annotations

from dataclasses import dataclass, field

UNASSIGNED = "Unassigned"


@dataclass(frozen=True, slots=True)
class StatusInfo:
    name: str
    category: str | None = None


@dataclass(frozen=True, slots=True)
class IssueRecord:
    """One normalized issue from a search response. Immutable once mapped."""

    key: str
    issue_type: str
    summary: str
    status: StatusInfo
    assignee: str = UNASSIGNED
    priority: str | None = None
    parent_key: str | None = None
    story_points: float | None = None
    time_spent_seconds: int = 0
    time_estimate_seconds: int = 0

    @property
    def is_unassigned(self) -> bool:
        return self.assignee == UNASSIGNED


@dataclass(frozen=True, slots=True)
class Aggregate:
    total_time_spent: int = 0
    total_time_estimate: int = 0

    @property
    def progress_fraction(self) -> float | None:
        """Spent over estimate; ``None`` means "no estimate", never a division by zero."""
        if self.total_time_estimate <= 0:
            return None
        return self.total_time_spent / self.total_time_estimate


@dataclass(slots=True)
class Node:
    issue: IssueRecord
    children: list[Node] = field(default_factory=list)
    expanded: bool = False
    aggregate: Aggregate = field(default_factory=Aggregate)

    @property
    def key(self) -> str:
        return self.issue.key

    @property
    def has_children(self) -> bool:
        return bool(self.children)


@dataclass(frozen=True, slots=True)
class TreeRow:
    """One visible line of a flattened forest."""

    node: Node
    depth: int

    @property
    def is_top_level(self) -> bool:
        return self.depth == 0


@dataclass(frozen=True, slots=True)
class Transition:
    id: str
    name: str
    to_status: str | None = None


@dataclass(frozen=True, slots=True)
class CreatedIssue:
    key: str
    assignee_account_id: str | None = None
