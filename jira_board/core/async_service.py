"""Non-blocking facade over IssueService.

Each call submits one blocking Jira request to a small thread pool and returns
its ``Future``. The future is never cancelled; it resolves exactly once with
the service result or the raised exception.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from .config import SETTINGS
from .models import CreatedIssue, IssueRecord, Transition
from .service import IssueService


class AsyncIssueService:
    def __init__(self, service: IssueService, max_workers: int | None = None):
        self.service = service
        self._pool = ThreadPoolExecutor(
            max_workers=max_workers or SETTINGS.fetch_max_workers,
            thread_name_prefix="jira-fetch",
        )

    def shutdown(self) -> None:
        self._pool.shutdown(wait=False)

    # Fetch collaborator
    def fetch_sprint_issues(self, project_key: str, filter_text: str | None) -> Future[list[IssueRecord]]:
        return self._pool.submit(self.service.fetch_sprint_issues, project_key, filter_text)

    def fetch_backlog_issues(self, project_key: str, filter_text: str | None) -> Future[list[IssueRecord]]:
        return self._pool.submit(self.service.fetch_backlog_issues, project_key, filter_text)

    def fetch_by_query(self, scope_hint: str | None, jql: str) -> Future[list[IssueRecord]]:
        return self._pool.submit(self.service.fetch_by_query, scope_hint, jql)

    # Mutation collaborator
    def transition_issue(self, issue_key: str, transition_id: str) -> Future[None]:
        return self._pool.submit(self.service.transition_issue, issue_key, transition_id)

    def close_issue(self, issue_key: str) -> Future[Transition]:
        return self._pool.submit(self.service.close_issue, issue_key)

    def update_issue(self, issue_key: str, fields: dict[str, Any]) -> Future[None]:
        return self._pool.submit(self.service.update_issue, issue_key, fields)

    def append_description(self, issue_key: str, text: str) -> Future[None]:
        return self._pool.submit(self.service.append_description, issue_key, text)

    def add_worklog(self, issue_key: str, time_spent: str) -> Future[None]:
        return self._pool.submit(self.service.add_worklog, issue_key, time_spent)

    def create_issue(
        self, project_key: str, summary: str, issue_type: str, description: str | None
    ) -> Future[CreatedIssue]:
        return self._pool.submit(self.service.create_issue, project_key, summary, issue_type, description)
