"""IssueService: fetches view result sets and performs issue mutations."""

from __future__ import annotations

import logging
from typing import Any

from .adf import adf_to_markdown, append_to_adf, text_to_adf
from .config import DEFAULT_CREATE_ISSUE_TYPE, SEARCH_BASE_FIELDS
from .errors import FetchError, MutationError
from .jira_client import JiraAPI
from .jql import backlog_jql, sprint_jql
from .mappers import map_issues, map_transition
from .models import CreatedIssue, IssueRecord, Transition
from .project_config import get_project_config
from .status import find_done_transition

logger = logging.getLogger(__name__)


class IssueService:
    def __init__(self, api: JiraAPI):
        self.api = api
        self._account_id: str | None = None

    # ------------------ Fetch Methods ------------------
    def fetch_sprint_issues(self, project_key: str, filter_text: str | None = None) -> list[IssueRecord]:
        return self.fetch_by_query(project_key, sprint_jql(project_key, filter_text))

    def fetch_backlog_issues(self, project_key: str, filter_text: str | None = None) -> list[IssueRecord]:
        return self.fetch_by_query(project_key, backlog_jql(project_key, filter_text))

    def fetch_by_query(self, scope_hint: str | None, jql: str) -> list[IssueRecord]:
        """Search ``jql`` and map the result.

        ``scope_hint`` selects the project whose field overrides (story points)
        apply; cross-project queries pass their first project or ``None``.
        """
        story_point_field = get_project_config(scope_hint).story_point_field
        fields = list(SEARCH_BASE_FIELDS)
        if story_point_field:
            fields.append(story_point_field)
        raw = self.api.search_enhanced(jql, fields=fields)
        return map_issues(raw, story_point_field)

    def fetch_issue_detail(self, issue_key: str) -> dict[str, Any]:
        return self.api.fetch_issue_raw(issue_key)

    def issue_markdown(self, issue_key: str, project_key: str | None = None) -> str:
        """Full issue text (summary, metadata, description, acceptance criteria) as Markdown."""
        issue = self.fetch_issue_detail(issue_key)
        fields = issue.get("fields") or {}
        lines = [
            f"# {issue.get('key', issue_key)}: {fields.get('summary') or ''}",
            "",
            f"**Status**: {(fields.get('status') or {}).get('name') or 'Unknown'}",
            f"**Assignee**: {(fields.get('assignee') or {}).get('displayName') or 'Unassigned'}",
            f"**Priority**: {(fields.get('priority') or {}).get('name') or 'None'}",
            "",
            "## Description",
            "",
        ]
        description = adf_to_markdown(fields.get("description"))
        lines.append(description or "_No description_")
        ac_field = get_project_config(project_key).acceptance_criteria_field
        if ac_field and fields.get(ac_field):
            lines.extend(["", "## Acceptance Criteria", "", adf_to_markdown(fields[ac_field])])
        return "\n".join(lines)

    def get_transitions(self, issue_key: str) -> list[Transition]:
        return [map_transition(t) for t in self.api.get_transitions(issue_key)]

    def current_account_id(self) -> str | None:
        """Account id of the authenticated user (cached after the first lookup)."""
        if self._account_id is None:
            try:
                self._account_id = (self.api.myself() or {}).get("accountId")
            except FetchError as exc:
                logger.warning("Could not get current user, creating unassigned: %s", exc)
                return None
        return self._account_id

    # ------------------ Mutations ------------------
    def transition_issue(self, issue_key: str, transition_id: str) -> None:
        self.api.transition_issue(issue_key, transition_id)

    def close_issue(self, issue_key: str) -> Transition:
        """Apply the first "done"-like transition; returns the transition used."""
        try:
            transitions = self.get_transitions(issue_key)
        except FetchError as exc:
            raise MutationError(str(exc)) from exc
        done = find_done_transition(transitions)
        if done is None:
            raise MutationError(f"No 'Done' transition found for {issue_key}")
        self.api.transition_issue(issue_key, done.id)
        return done

    def update_issue(self, issue_key: str, fields: dict[str, Any]) -> None:
        self.api.update_issue(issue_key, fields)

    def append_description(self, issue_key: str, text: str) -> None:
        try:
            issue = self.fetch_issue_detail(issue_key)
        except FetchError as exc:
            raise MutationError(f"Failed to fetch issue: {exc}") from exc
        current = (issue.get("fields") or {}).get("description")
        self.api.update_issue(issue_key, {"description": append_to_adf(current, text)})

    def add_worklog(self, issue_key: str, time_spent: str) -> None:
        self.api.add_worklog(issue_key, time_spent)

    def create_issue(
        self,
        project_key: str,
        summary: str,
        issue_type: str = DEFAULT_CREATE_ISSUE_TYPE,
        description: str | None = None,
    ) -> CreatedIssue:
        fields: dict[str, Any] = {
            "project": {"key": project_key},
            "summary": summary,
            "issuetype": {"name": issue_type or DEFAULT_CREATE_ISSUE_TYPE},
        }
        adf = text_to_adf(description)
        if adf:
            fields["description"] = adf
        account_id = self.current_account_id()
        if account_id:
            fields["assignee"] = {"accountId": account_id}
        key = self.api.create_issue(fields)
        logger.info("Created %s in %s", key, project_key)
        return CreatedIssue(key=key, assignee_account_id=account_id)
