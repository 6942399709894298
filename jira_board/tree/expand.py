"""Expand/collapse state for an issue forest and its flat row index."""

from __future__ import annotations

from collections.abc import Iterator, Sequence

from jira_board.core.models import Node, TreeRow


def iter_nodes(forest: Sequence[Node]) -> Iterator[Node]:
    for node in forest:
        yield node
        yield from iter_nodes(node.children)


def find_node(forest: Sequence[Node], key: str) -> Node | None:
    for node in iter_nodes(forest):
        if node.key == key:
            return node
    return None


def expanded_keys(forest: Sequence[Node]) -> frozenset[str]:
    return frozenset(n.key for n in iter_nodes(forest) if n.expanded)


def apply_expand_state(fresh: list[Node], previous: Sequence[Node] | None) -> list[Node]:
    """Copy ``expanded`` flags from ``previous`` onto ``fresh`` by issue key.

    Nodes that are new, or that no longer have children, start collapsed.
    Returns ``fresh`` for chaining.
    """
    remembered = expanded_keys(previous or ())
    for node in iter_nodes(fresh):
        node.expanded = node.has_children and node.key in remembered
    return fresh


def toggle_node(forest: Sequence[Node], key: str) -> bool:
    """Flip one node; returns ``False`` (no-op) for leaves and unknown keys."""
    node = find_node(forest, key)
    if node is None or not node.has_children:
        return False
    node.expanded = not node.expanded
    return True


def toggle_all(forest: Sequence[Node]) -> bool:
    """Collapse everything if anything is expanded, otherwise expand everything.

    Returns the state applied to every node that has children.
    """
    parents = [n for n in iter_nodes(forest) if n.has_children]
    target = not any(n.expanded for n in parents)
    for node in parents:
        node.expanded = target
    return target


def flatten_forest(forest: Sequence[Node]) -> list[TreeRow]:
    rows: list[TreeRow] = []

    def walk(nodes: Sequence[Node], depth: int) -> None:
        for node in nodes:
            rows.append(TreeRow(node=node, depth=depth))
            if node.expanded and node.has_children:
                walk(node.children, depth + 1)

    walk(forest, 0)
    return rows
