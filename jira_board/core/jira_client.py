"""Jira API client wrapper (REST v3 + enhanced search pagination)."""

from __future__ import annotations

import json
import logging
from typing import Any

from jira import JIRA, JIRAError

from .config import JIRA_REST_API_VERSION, SEARCH_PAGE_SIZE
from .errors import FetchError, MutationError

logger = logging.getLogger(__name__)


class JiraAPI:
    def __init__(self, server: str, email: str, token: str):
        self.server = server.rstrip("/")
        self.client = JIRA(
            basic_auth=(email, token),
            options={"server": self.server, "rest_api_version": JIRA_REST_API_VERSION},
        )

    def _session(self):
        session = getattr(self.client, "_session", None)
        if session is None:
            raise FetchError("JIRA session unavailable")
        return session

    def search_enhanced(
        self,
        jql: str,
        fields: list[str] | None = None,
        page_size: int = SEARCH_PAGE_SIZE,
    ) -> list[dict[str, Any]]:
        """Run a JQL search and follow ``nextPageToken`` until the last page."""
        session = self._session()
        url = f"{self.server}/rest/api/3/search/jql"
        params = {"jql": jql, "maxResults": page_size}
        if fields:
            params["fields"] = ",".join(fields)
        out: list[dict[str, Any]] = []
        token = None
        while True:
            qp = dict(params)
            if token:
                qp["nextPageToken"] = token
            try:
                resp = session.get(url, params=qp)
            except JIRAError as exc:
                raise FetchError(f"Search failed: {exc.text or exc}") from exc
            if resp.status_code >= 400:
                raise FetchError(f"Search failed {resp.status_code}: {resp.text[:200]}")
            try:
                data = resp.json()
            except ValueError as exc:
                raise FetchError(f"Failed to parse search response: {resp.text[:200]}") from exc
            out.extend(data.get("issues", []))
            token = data.get("nextPageToken")
            if not token or data.get("isLast") is True:
                break
        logger.debug("Search returned %s issues for %r", len(out), jql)
        return out

    def fetch_issue_raw(self, issue_key: str) -> dict[str, Any]:
        try:
            issue = self.client.issue(issue_key)
        except JIRAError as exc:
            raise FetchError(f"Failed to fetch issue {issue_key}: {exc.text or exc}") from exc
        if hasattr(issue, "raw"):
            return issue.raw
        if isinstance(issue, dict):
            return issue
        raise FetchError(f"Unexpected issue payload type for {issue_key}: {type(issue)!r}")

    def get_transitions(self, issue_key: str) -> list[dict[str, Any]]:
        try:
            return list(self.client.transitions(issue_key) or [])
        except JIRAError as exc:
            raise FetchError(f"Failed to load transitions for {issue_key}: {exc.text or exc}") from exc

    def transition_issue(self, issue_key: str, transition_id: str) -> None:
        try:
            self.client.transition_issue(issue_key, transition_id)
        except JIRAError as exc:
            raise MutationError(f"Transition failed for {issue_key}: {exc.text or exc}") from exc

    def update_issue(self, issue_key: str, fields: dict[str, Any]) -> None:
        # PUT answers 204 No Content on success
        url = f"{self.server}/rest/api/3/issue/{issue_key}"
        try:
            resp = self._session().put(url, data=json.dumps({"fields": fields}))
        except JIRAError as exc:
            raise MutationError(f"Update failed for {issue_key}: {exc.text or exc}") from exc
        if resp.status_code >= 400:
            raise MutationError(f"Update failed {resp.status_code}: {resp.text[:200]}")

    def create_issue(self, fields: dict[str, Any]) -> str:
        try:
            issue = self.client.create_issue(fields=fields)
        except JIRAError as exc:
            raise MutationError(f"Failed to create issue: {exc.text or exc}") from exc
        return issue.key

    def add_worklog(self, issue_key: str, time_spent: str) -> None:
        try:
            self.client.add_worklog(issue_key, timeSpent=time_spent)
        except JIRAError as exc:
            raise MutationError(f"Failed to log work on {issue_key}: {exc.text or exc}") from exc

    def myself(self) -> dict[str, Any]:
        try:
            return self.client.myself()
        except JIRAError as exc:
            raise FetchError(f"Failed to resolve current user: {exc.text or exc}") from exc

