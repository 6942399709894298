"""Connection setup page: collect Jira credentials and build the board controller."""

from __future__ import annotations

import logging

import streamlit as st
from jira import JIRAError

from jira_board.app import register_page
from jira_board.core.async_service import AsyncIssueService
from jira_board.core.errors import JiraBoardError
from jira_board.core.jira_client import JiraAPI
from jira_board.core.service import IssueService
from jira_board.views.controller import ViewController
from jira_board.views.notify import CollectingNotifier
from jira_board.views.prefs import PreferenceStore

logger = logging.getLogger(__name__)


def read_secrets() -> tuple[str | None, str | None, str | None]:
    """Credentials from a ``[jira]`` secrets section, falling back to top-level keys."""
    jira_secrets = st.secrets.get("jira", {})
    server = jira_secrets.get("JIRA_SERVER") or st.secrets.get("JIRA_SERVER")
    email = jira_secrets.get("JIRA_EMAIL") or st.secrets.get("JIRA_EMAIL")
    token = (
        jira_secrets.get("JIRA_API_TOKEN")
        or st.secrets.get("JIRA_API_TOKEN")
        or jira_secrets.get("JIRA_TOKEN")
        or st.secrets.get("JIRA_TOKEN")
    )
    return server, email, token


def connect(server: str, email: str, token: str) -> ViewController:
    """Create the Jira client, services, and controller and store them in session state."""
    previous = st.session_state.get("async_service")
    if previous is not None:
        previous.shutdown()
    service = IssueService(JiraAPI(server, email, token))
    async_service = AsyncIssueService(service)
    notifier = CollectingNotifier()
    controller = ViewController(async_service, notifier=notifier, store=PreferenceStore())
    st.session_state["jira_server"] = server
    st.session_state["jira_email"] = email
    st.session_state["issue_service"] = service
    st.session_state["async_service"] = async_service
    st.session_state["board_notifier"] = notifier
    st.session_state["board_controller"] = controller
    return controller


@register_page("Setup / Connection")
def setup_page():
    st.title("Jira Connection Setup")
    st.caption("Enter credentials (use secrets manager in production).")

    secret_server, secret_email, secret_token = read_secrets()
    server = st.text_input(
        "Jira Server URL",
        value=st.session_state.get("jira_server") or secret_server or "",
    )
    email = st.text_input(
        "Email / Username",
        value=st.session_state.get("jira_email") or secret_email or "",
    )
    token = st.text_input(
        "API Token",
        type="password",
        value=secret_token or "",
    )
    init_btn = st.button("Initialize Connection", type="primary")

    if init_btn:
        if not (server and email and token):
            st.error("Jira configuration is missing. Server, email and token are all required.")
            return
        try:
            connect(server, email, token)
            st.success("Connection initialized.")
        except (JIRAError, JiraBoardError, ValueError, OSError) as e:
            logger.error("Failed to initialize Jira client: %s", e)
            st.error(f"Failed to initialize Jira client: {e}")

    if "board_controller" in st.session_state:
        st.info("Issue board ready.")
