"""Reusable table helpers for Streamlit rendering of the issue tree."""

from __future__ import annotations

import pandas as pd
import streamlit as st

from jira_board.core.models import TreeRow
from jira_board.core.status import is_done, status_color
from jira_board.visual.render import expand_marker, format_duration, format_story_points, progress_bar, type_icon

TREE_COLUMNS: tuple[str, ...] = (
    "Tree",
    "Ticket",
    "Type",
    "Summary",
    "Points",
    "Assignee",
    "Status",
    "Priority",
    "Spent",
    "Estimate",
    "Progress",
)


def rows_to_dataframe(rows: list[TreeRow]) -> pd.DataFrame:
    """One DataFrame row per visible tree row, in row-index order."""
    records = []
    for row in rows:
        node, issue = row.node, row.node.issue
        top_with_children = row.is_top_level and node.has_children
        spent = node.aggregate.total_time_spent if top_with_children else issue.time_spent_seconds
        estimate = node.aggregate.total_time_estimate if top_with_children else issue.time_estimate_seconds
        records.append(
            {
                "Tree": ("    " * row.depth) + expand_marker(node),
                "key": issue.key,
                "Type": f"{type_icon(issue.issue_type)} {issue.issue_type}",
                "Summary": issue.summary,
                "Points": format_story_points(node, row.depth),
                "Assignee": issue.assignee,
                "Status": issue.status.name,
                "Priority": issue.priority or "None",
                "Spent": format_duration(spent),
                "Estimate": format_duration(estimate) if estimate else "",
                "Progress": progress_bar(node.aggregate.progress_fraction) if top_with_children else "",
                "done": is_done(issue.status),
            }
        )
    return pd.DataFrame(records)


def add_ticket_link(df: pd.DataFrame, server: str, key_col: str = "key", label: str = "Ticket"):
    if df.empty or key_col not in df.columns:
        return df, {}
    out = df.copy()
    base = server.rstrip("/")
    out[label] = out[key_col].astype(str).apply(lambda k: f"{base}/browse/{k}" if k and k != "nan" else "")
    cfg = {
        label: st.column_config.LinkColumn(
            label,
            display_text=r"browse/(.*)$",
            help="Open in Jira",
            width="small",
        )
    }
    return out, cfg


def _status_style(value: str) -> str:
    return f"background-color: {status_color(value)}; color: #1e1e2e; font-weight: bold"


def render_tree_table(rows: list[TreeRow], server: str, limit: int = 1000) -> None:
    df = rows_to_dataframe(rows)
    if df.empty:
        return
    linked, cfg = add_ticket_link(df, server)
    cols = [c for c in TREE_COLUMNS if c in linked.columns]
    shown = linked.head(limit)
    done = shown["done"].tolist()
    styled = (
        shown[cols]
        .style.map(_status_style, subset=["Status"])
        .apply(lambda col: ["text-decoration: line-through" if d else "" for d in done], subset=["Summary"])
    )
    st.dataframe(styled, hide_index=True, column_config=cfg, width="stretch")
