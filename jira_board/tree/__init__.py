"""Issue hierarchy: forest building, aggregation, and expand state."""

from jira_board.tree.builder import aggregate_for, build_issue_tree
from jira_board.tree.expand import (
    apply_expand_state,
    expanded_keys,
    find_node,
    flatten_forest,
    iter_nodes,
    toggle_all,
    toggle_node,
)

__all__ = [
    "aggregate_for",
    "apply_expand_state",
    "build_issue_tree",
    "expanded_keys",
    "find_node",
    "flatten_forest",
    "iter_nodes",
    "toggle_all",
    "toggle_node",
]
