"""Convenience launcher for the Streamlit app.

Usage:
  streamlit run run_board.py

Automatically imports every module in ``jira_board/pages`` so each page
decorated with ``@register_page`` registers itself without manual edits here.
"""

import logging
from importlib import import_module
from pathlib import Path

import streamlit as st
from jira import JIRAError

from jira_board.app import main
from jira_board.core.errors import JiraBoardError

st.set_page_config(layout="wide")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _auto_init_board():
    """Connect from Streamlit secrets if available."""
    if "board_controller" in st.session_state:
        return

    from jira_board.pages.setup import connect, read_secrets

    server, email, token = read_secrets()
    if server and email and token:
        st.sidebar.info("Secrets found, attempting to connect to Jira...")
        try:
            connect(server, email, token)
            st.sidebar.success("Jira connection successful!")
        except (JIRAError, JiraBoardError, ValueError, OSError) as e:
            st.sidebar.error(f"Jira connection failed: {e}")
            # Clear any partial state to ensure user is directed to setup
            st.session_state.pop("board_controller", None)
    else:
        st.sidebar.warning("Jira secrets not found. Please use the Setup page.")


PAGES_DIR = Path(__file__).parent / "jira_board" / "pages"
for py in sorted(PAGES_DIR.glob("[!_]*.py")):
    import_module(f"jira_board.pages.{py.stem}")

_auto_init_board()

if __name__ == "__main__":
    main()
