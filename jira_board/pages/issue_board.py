"""Issue Board page - browse sprint, backlog, My Issues, and JQL views as a tree.

All board state lives in the ViewController stored in session state; this page
only forwards user actions to it and draws whatever tree it currently holds.
"""

from __future__ import annotations

import logging
import time

import streamlit as st

from jira_board.app import register_page
from jira_board.core.config import LOADING_POLL_SECONDS, SETTINGS
from jira_board.core.errors import JiraBoardError
from jira_board.core.service import IssueService
from jira_board.views.cache import ViewKind
from jira_board.views.controller import ViewController
from jira_board.views.notify import CollectingNotifier
from jira_board.views.session import ViewState
from jira_board.visual.render import render_row
from jira_board.visual.tables import render_tree_table

logger = logging.getLogger(__name__)

PAGE_KEY = "issue_board"

_LEVEL_RENDERERS = {
    logging.ERROR: st.error,
    logging.WARNING: st.warning,
    logging.INFO: st.toast,
}


def _show_notifications(notifier: CollectingNotifier) -> None:
    for item in notifier.pop_all():
        _LEVEL_RENDERERS.get(item.level, st.info)(item.message)


def _render_view_switcher(controller: ViewController) -> None:
    s = controller.session
    project = st.sidebar.text_input("Project key", value=s.project_key or "", key=f"{PAGE_KEY}_project")
    cols = st.sidebar.columns(2)
    if cols[0].button("Active Sprint", width="stretch"):
        controller.activate(ViewKind.SPRINT, project)
    if cols[1].button("Backlog", width="stretch"):
        controller.activate(ViewKind.BACKLOG, project)
    if st.sidebar.button("My Issues", width="stretch"):
        controller.activate(ViewKind.MY_ISSUES)

    with st.sidebar.form(f"{PAGE_KEY}_jql_form"):
        jql = st.text_area("JQL", value=s.custom_jql or "")
        if st.form_submit_button("Run query"):
            controller.set_query(jql)

    with st.sidebar.form(f"{PAGE_KEY}_projects_form"):
        projects = st.text_input("My Issues projects (comma-separated)", value=", ".join(s.my_issues_projects))
        if st.form_submit_button("Save projects"):
            controller.set_my_issues_projects(projects.split(","))

    hide = st.sidebar.toggle("Hide resolved issues", value=s.hide_resolved)
    if hide != s.hide_resolved:
        controller.toggle_resolved()


def _render_toolbar(controller: ViewController) -> None:
    s = controller.session
    filter_col, apply_col, clear_col, refresh_col, all_col = st.columns([4, 1, 1, 1, 1])
    text = filter_col.text_input("Filter (summary ~)", value=s.filter_text, label_visibility="collapsed")
    if apply_col.button("Filter"):
        controller.set_filter(text)
    if clear_col.button("Clear"):
        controller.clear_filter()
    if refresh_col.button("Refresh"):
        controller.refresh()
    if all_col.button("Expand / Collapse all"):
        controller.toggle_all()


def _render_issue_actions(controller: ViewController, service: IssueService | None) -> None:
    rows = controller.rows
    if not rows:
        return
    row = st.selectbox(
        "Issue",
        range(len(rows)),
        format_func=lambda i: render_row(rows[i]).strip(),
        key=f"{PAGE_KEY}_row",
    )
    node = controller.node_at(row)
    if node is None:
        return
    issue_key = node.key

    toggle_col, close_col, details_col = st.columns(3)
    if node.has_children and toggle_col.button("Collapse" if node.expanded else "Expand"):
        controller.toggle_node_at(row)
        st.rerun()
    if close_col.button("Close issue"):
        controller.close_issue(issue_key)
    show_details = details_col.button("Read task")

    if service is not None:
        if show_details:
            with st.spinner(f"Fetching full details for {issue_key}..."):
                try:
                    st.markdown(service.issue_markdown(issue_key, controller.session.project_key))
                except JiraBoardError as exc:
                    st.error(f"Error: {exc}")

        with st.expander("Change status"):
            cache_key = f"{PAGE_KEY}_transitions"
            loaded = st.session_state.get(cache_key)
            if st.button("Load transitions") or (loaded and loaded[0] != issue_key):
                try:
                    loaded = (issue_key, service.get_transitions(issue_key))
                except JiraBoardError as exc:
                    logger.error("Failed to load transitions for %s: %s", issue_key, exc)
                    st.error(f"Error: {exc}")
                    loaded = (issue_key, [])
                st.session_state[cache_key] = loaded
            transitions = loaded[1] if loaded and loaded[0] == issue_key else []
            if transitions:
                choice = st.selectbox("Transition to", transitions, format_func=lambda t: t.name)
                if st.button("Apply transition"):
                    controller.transition_issue(issue_key, choice.id, choice.name)
            else:
                st.caption(f"No transitions available for {issue_key}")

    with st.expander("Edit issue"), st.form(f"{PAGE_KEY}_edit_form"):
        summary = st.text_input("Summary", value=node.issue.summary)
        append = st.text_area("Append to description")
        worklog = st.text_input("Log work (e.g. 1h 30m)")
        if st.form_submit_button("Save"):
            controller.edit_summary(issue_key, summary)
            controller.append_description(issue_key, append)
            controller.log_work(issue_key, worklog)


def _render_create_form(controller: ViewController) -> None:
    s = controller.session
    with st.expander("Create story"), st.form(f"{PAGE_KEY}_create_form"):
        options = s.my_issues_projects or ([s.project_key] if s.project_key else [])
        project = st.selectbox("Project", options) if options else None
        summary = st.text_input("Summary")
        description = st.text_area("Description (optional)")
        if st.form_submit_button("Create"):
            controller.create_issue(summary, project_key=project, description=description or None)


@register_page("Issue Board")
def issue_board_page():
    controller: ViewController | None = st.session_state.get("board_controller")
    if controller is None:
        st.warning("Not connected. Use the Setup / Connection page first.")
        return
    notifier: CollectingNotifier = st.session_state["board_notifier"]
    service: IssueService | None = st.session_state.get("issue_service")
    server = st.session_state.get("jira_server", "")

    # Apply fetch/mutation completions on this (the control) thread
    controller.pump()

    s = controller.session
    if s.current_key is None and s.state is ViewState.IDLE and not st.session_state.get(f"{PAGE_KEY}_opened"):
        st.session_state[f"{PAGE_KEY}_opened"] = True
        controller.open(s.project_key)

    _render_view_switcher(controller)

    title = s.rendered_key.kind.value if s.rendered_key else "Issue Board"
    if s.rendered_key and s.rendered_key.kind.is_project_scoped:
        title = f"{title} - {s.rendered_key.scope}"
    st.title(title)
    if s.filter_text:
        st.caption(f"Filter: {s.filter_text}")

    _render_toolbar(controller)
    _show_notifications(notifier)

    if s.forest:
        render_tree_table(s.rows, server, limit=SETTINGS.max_table_rows)
        st.caption(f"{len(s.forest)} top-level issues, {len(s.rows)} rows shown.")
    elif s.state is ViewState.RENDERED:
        st.info(f"No issues found in {s.rendered_key.kind.value}.")

    _render_issue_actions(controller, service)
    _render_create_form(controller)

    if s.is_busy:
        st.info(s.loading_message or "Working...")
        time.sleep(LOADING_POLL_SECONDS)
        st.rerun()
