"""Build the displayed issue forest from a flat search result.

Pure and total: no I/O, no state, and no error outcomes. Nesting is exactly
one level deep. A record attaches under its parent only when that parent is
itself a root; orphans, self-parented records, records whose parent is already
a child, and parent cycles all become top-level nodes. Nothing is dropped.
"""

from __future__ import annotations

from collections.abc import Sequence

from jira_board.core.models import Aggregate, IssueRecord, Node


def _is_root(record: IssueRecord, known: dict[str, IssueRecord]) -> bool:
    parent_key = record.parent_key
    return parent_key is None or parent_key == record.key or parent_key not in known


def _parent_of(record: IssueRecord, known: dict[str, IssueRecord]) -> str | None:
    if _is_root(record, known):
        return None
    parent = known[record.parent_key]
    return parent.key if _is_root(parent, known) else None


def aggregate_for(issue: IssueRecord, children: Sequence[Node]) -> Aggregate:
    return Aggregate(
        total_time_spent=issue.time_spent_seconds + sum(c.issue.time_spent_seconds for c in children),
        total_time_estimate=issue.time_estimate_seconds + sum(c.issue.time_estimate_seconds for c in children),
    )


def build_issue_tree(records: Sequence[IssueRecord]) -> list[Node]:
    # First occurrence wins for duplicate keys
    known: dict[str, IssueRecord] = {}
    for record in records:
        known.setdefault(record.key, record)

    roots: list[Node] = []
    by_key: dict[str, Node] = {}
    pending: list[tuple[str, IssueRecord]] = []
    seen: set[str] = set()
    for record in records:
        if record.key in seen:
            continue
        seen.add(record.key)
        parent_key = _parent_of(record, known)
        if parent_key is None:
            node = Node(issue=record)
            roots.append(node)
            by_key[record.key] = node
        else:
            pending.append((parent_key, record))

    for parent_key, record in pending:
        by_key[parent_key].children.append(Node(issue=record))

    for node in roots:
        node.aggregate = aggregate_for(node.issue, node.children)
        for child in node.children:
            child.aggregate = aggregate_for(child.issue, ())
    return roots
