"""ViewController: activation life cycle, cache coordination, and mutation side effects.

An activation computes the view's ``CacheKey``. A cache hit renders at once.
A miss enters ``LOADING`` and issues exactly one background fetch; the key is
captured by value when the request is made and compared with the view on
screen when the result arrives. A late result is still cached but is never
drawn over a different view. Fetch failures notify, leave the cache entry
absent, and return to ``IDLE`` with the previous tree untouched.

Completions are posted to a scheduler rather than run on the worker thread;
by default they queue up until ``pump()`` is called on the control thread.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import Future
from functools import partial
from typing import Any, Protocol

from jira_board.core.config import DEFAULT_CREATE_ISSUE_TYPE
from jira_board.core.errors import FetchError, JiraBoardError, MutationError
from jira_board.core.jql import custom_jql, my_issues_jql
from jira_board.core.models import CreatedIssue, IssueRecord, Node, Transition, TreeRow
from jira_board.tree import apply_expand_state, build_issue_tree, find_node, flatten_forest, toggle_all, toggle_node

from .cache import CacheKey, ViewKind
from .dispatch import CompletionQueue, Scheduler
from .notify import LoggingNotifier, Notifier
from .prefs import PreferenceStore
from .session import ViewSession, ViewState

logger = logging.getLogger(__name__)


class IssueFetcher(Protocol):
    def fetch_sprint_issues(self, project_key: str, filter_text: str | None) -> Future[list[IssueRecord]]: ...

    def fetch_backlog_issues(self, project_key: str, filter_text: str | None) -> Future[list[IssueRecord]]: ...

    def fetch_by_query(self, scope_hint: str | None, jql: str) -> Future[list[IssueRecord]]: ...

    def transition_issue(self, issue_key: str, transition_id: str) -> Future[None]: ...

    def close_issue(self, issue_key: str) -> Future[Transition]: ...

    def update_issue(self, issue_key: str, fields: dict[str, Any]) -> Future[None]: ...

    def append_description(self, issue_key: str, text: str) -> Future[None]: ...

    def add_worklog(self, issue_key: str, time_spent: str) -> Future[None]: ...

    def create_issue(
        self, project_key: str, summary: str, issue_type: str, description: str | None
    ) -> Future[CreatedIssue]: ...


class ViewController:
    def __init__(
        self,
        fetcher: IssueFetcher,
        session: ViewSession | None = None,
        *,
        notifier: Notifier | None = None,
        scheduler: Scheduler | None = None,
        store: PreferenceStore | None = None,
    ):
        self.fetcher = fetcher
        self.store = store
        if session is None:
            session = ViewSession(preferences=store.load()) if store else ViewSession()
        self.session = session
        self.notifier = notifier or LoggingNotifier()
        self._completions = CompletionQueue()
        self._schedule: Scheduler = scheduler or self._completions.post

    # ------------------ Read access for renderers ------------------
    @property
    def forest(self) -> list[Node]:
        return self.session.forest

    @property
    def rows(self) -> list[TreeRow]:
        return self.session.rows

    @property
    def state(self) -> ViewState:
        return self.session.state

    def node_at(self, row: int) -> Node | None:
        rows = self.session.rows
        if 0 <= row < len(rows):
            return rows[row].node
        return None

    def pump(self) -> int:
        """Run completions delivered since the last call (control thread only)."""
        return self._completions.drain()

    # ------------------ Activation ------------------
    def open(self, project_key: str | None = None) -> ViewState:
        if project_key and project_key.strip():
            return self.activate(ViewKind.SPRINT, project_key)
        if self.session.my_issues_projects:
            return self.activate(ViewKind.MY_ISSUES)
        self.notifier.notify("No projects selected. Configure My Issues projects first.", logging.WARNING)
        return self.session.state

    def activate(self, kind: ViewKind, project_key: str | None = None) -> ViewState:
        s = self.session
        if kind.is_project_scoped:
            project_key = (project_key or s.project_key or "").strip().upper()
            if not project_key:
                self.notifier.notify(f"No project context for {kind.value}.", logging.WARNING)
                return s.state
            s.project_key = project_key
        elif kind is ViewKind.MY_ISSUES and not s.my_issues_projects:
            self.notifier.notify("No projects configured for My Issues.", logging.WARNING)
            return s.state
        elif kind is ViewKind.JQL and not (s.custom_jql or "").strip():
            self.notifier.notify("No JQL query set.", logging.WARNING)
            return s.state

        key = s.key_for(kind, project_key)
        s.current_key = key

        cached = s.cache.get(key)
        if cached is not None:
            self._render(key, cached, fetched=False)
            return s.state

        s.loading_message = f"Loading {kind.value} for {key.scope}..." if kind.is_project_scoped else f"Loading {kind.value}..."
        self._set_state(ViewState.LOADING)
        try:
            future = self._request(key)
        except JiraBoardError as exc:
            self._fetch_failed(key, exc)
            return s.state
        future.add_done_callback(partial(self._deliver, partial(self._on_fetch_done, key)))
        return s.state

    def refresh(self) -> ViewState:
        s = self.session
        key = s.current_key
        if key is None:
            return s.state
        s.cache.invalidate(key)
        return self._reactivate(key)

    def _reactivate(self, key: CacheKey) -> ViewState:
        return self.activate(key.kind, key.scope if key.kind.is_project_scoped else None)

    def _request(self, key: CacheKey) -> Future[list[IssueRecord]]:
        filter_text = key.filter_text or None
        if key.kind is ViewKind.SPRINT:
            return self.fetcher.fetch_sprint_issues(key.scope, filter_text)
        if key.kind is ViewKind.BACKLOG:
            return self.fetcher.fetch_backlog_issues(key.scope, filter_text)
        if key.kind is ViewKind.MY_ISSUES:
            projects = key.scope.split(",")
            jql = my_issues_jql(projects, filter_text, hide_resolved=bool(key.hide_resolved))
            return self.fetcher.fetch_by_query(projects[0], jql)
        jql = custom_jql(key.scope, filter_text, hide_resolved=bool(key.hide_resolved))
        return self.fetcher.fetch_by_query(self.session.project_key, jql)

    def _deliver(self, handler: Callable[[Future], None], future: Future) -> None:
        # Runs on whichever thread resolved the future; hop to the control thread.
        self._schedule(partial(handler, future))

    def _on_fetch_done(self, captured: CacheKey, future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            self._fetch_failed(captured, exc if isinstance(exc, JiraBoardError) else FetchError(str(exc)))
            return
        records = future.result() or []
        s = self.session
        s.cache.put(captured, records)
        if s.current_key != captured:
            logger.debug("Cached late result for %s; %s is on screen", captured, s.current_key)
            return
        self._render(captured, records, fetched=True)

    def _fetch_failed(self, captured: CacheKey, exc: Exception) -> None:
        s = self.session
        logger.error("Fetch failed for %s: %s", captured, exc)
        if s.current_key == captured:
            s.loading_message = None
            s.last_error = str(exc)
            self._set_state(ViewState.FAILED)
            self._set_state(ViewState.IDLE)
        self.notifier.notify(f"Error: {exc}", logging.ERROR)

    def _render(self, key: CacheKey, records: Sequence[IssueRecord], *, fetched: bool) -> None:
        s = self.session
        identity = key.view_identity
        previous = s.expand_memory.get(identity)
        forest = apply_expand_state(build_issue_tree(records), previous)
        s.expand_memory[identity] = forest
        s.forest = forest
        s.rows = flatten_forest(forest)
        s.rendered_key = key
        s.loading_message = None
        s.last_error = None
        self._set_state(ViewState.RENDERED)
        if not records:
            self.notifier.notify(f"No issues found in {key.kind.value}.", logging.WARNING)
        elif fetched:
            where = f" for {key.scope}" if key.kind.is_project_scoped else ""
            self.notifier.notify(f"Loaded {key.kind.value}{where}", logging.INFO)

    def _set_state(self, state: ViewState) -> None:
        s = self.session
        if s.state is not state:
            logger.debug("View %s: %s -> %s", s.current_key, s.state.value, state.value)
        s.state = state

    # ------------------ Tree interaction ------------------
    def toggle_node(self, issue_key: str) -> bool:
        changed = toggle_node(self.session.forest, issue_key)
        if changed:
            self.session.rows = flatten_forest(self.session.forest)
        return changed

    def toggle_node_at(self, row: int) -> bool:
        node = self.node_at(row)
        return self.toggle_node(node.key) if node else False

    def toggle_all(self) -> bool:
        target = toggle_all(self.session.forest)
        self.session.rows = flatten_forest(self.session.forest)
        return target

    def find(self, issue_key: str) -> Node | None:
        return find_node(self.session.forest, issue_key)

    # ------------------ Filters and settings ------------------
    def set_filter(self, text: str | None) -> ViewState:
        self.session.filter_text = (text or "").strip()
        return self._reload_current()

    def clear_filter(self) -> ViewState:
        if not self.session.filter_text:
            self.notifier.notify("No filter active", logging.INFO)
            return self.session.state
        self.session.filter_text = ""
        self.notifier.notify("Filter cleared", logging.INFO)
        return self._reload_current()

    def set_query(self, jql: str | None) -> ViewState:
        if not jql or not jql.strip():
            return self.session.state
        self.session.preferences.last_jql = jql.strip()
        self._persist()
        return self.activate(ViewKind.JQL)

    def toggle_resolved(self) -> bool:
        prefs = self.session.preferences
        prefs.hide_resolved = not prefs.hide_resolved
        self._persist()
        self.notifier.notify(f"Resolved issues: {'hidden' if prefs.hide_resolved else 'shown'}", logging.INFO)
        self._reload_current()
        return prefs.hide_resolved

    def set_my_issues_projects(self, projects: Sequence[str]) -> ViewState:
        cleaned: list[str] = []
        for p in projects:
            key = p.strip().upper()
            if key and key not in cleaned:
                cleaned.append(key)
        self.session.preferences.my_issues_projects = cleaned
        self._persist()
        if not cleaned:
            self.notifier.notify("My Issues projects cleared", logging.INFO)
            return self.session.state
        return self.activate(ViewKind.MY_ISSUES)

    def _reload_current(self) -> ViewState:
        key = self.session.current_key
        if key is None:
            return self.session.state
        return self._reactivate(key)

    def _persist(self) -> None:
        if self.store is not None:
            self.store.save(self.session.preferences)

    # ------------------ Mutations ------------------
    def transition_issue(self, issue_key: str, transition_id: str, name: str | None = None) -> Future:
        return self._mutate(
            self.fetcher.transition_issue(issue_key, transition_id),
            issue_key,
            lambda _r: f"{issue_key} -> {name or transition_id}",
            "Transition failed",
        )

    def close_issue(self, issue_key: str) -> Future:
        return self._mutate(
            self.fetcher.close_issue(issue_key),
            issue_key,
            lambda t: f"{issue_key} -> {t.name}",
            "Failed to close",
        )

    def update_issue(self, issue_key: str, fields: dict[str, Any]) -> Future:
        return self._mutate(
            self.fetcher.update_issue(issue_key, fields),
            issue_key,
            lambda _r: f"{issue_key} updated",
            "Update failed",
        )

    def edit_summary(self, issue_key: str, summary: str) -> Future | None:
        summary = (summary or "").strip()
        node = self.find(issue_key)
        if not summary or (node is not None and node.issue.summary == summary):
            return None
        return self._mutate(
            self.fetcher.update_issue(issue_key, {"summary": summary}),
            issue_key,
            lambda _r: f"{issue_key} summary updated",
            "Update failed",
        )

    def append_description(self, issue_key: str, text: str) -> Future | None:
        if not text or not text.strip():
            return None
        return self._mutate(
            self.fetcher.append_description(issue_key, text),
            issue_key,
            lambda _r: f"{issue_key} description updated",
            "Update failed",
        )

    def log_work(self, issue_key: str, time_spent: str) -> Future | None:
        if not time_spent or not time_spent.strip():
            return None
        return self._mutate(
            self.fetcher.add_worklog(issue_key, time_spent.strip()),
            issue_key,
            lambda _r: f"Logged {time_spent.strip()} on {issue_key}",
            "Worklog failed",
        )

    def create_issue(
        self,
        summary: str,
        *,
        project_key: str | None = None,
        issue_type: str = DEFAULT_CREATE_ISSUE_TYPE,
        description: str | None = None,
    ) -> Future | None:
        s = self.session
        if not summary or not summary.strip():
            return None
        project = project_key
        if not project and s.current_kind is ViewKind.MY_ISSUES and len(s.my_issues_projects) == 1:
            project = s.my_issues_projects[0]
        project = (project or s.project_key or "").strip().upper()
        if not project:
            self.notifier.notify("No project context", logging.WARNING)
            return None
        return self._mutate(
            self.fetcher.create_issue(project, summary.strip(), issue_type, description),
            None,
            lambda created: f"Created {created.key}: {summary.strip()}",
            "Failed to create",
            created=True,
        )

    def _mutate(
        self,
        future: Future,
        issue_key: str | None,
        describe: Callable[[Any], str],
        failure_label: str,
        *,
        created: bool = False,
    ) -> Future:
        origin = self.session.current_key
        self.session.pending_mutations += 1
        handler = partial(self._on_mutation_done, origin, issue_key, describe, failure_label, created)
        future.add_done_callback(partial(self._deliver, handler))
        return future

    def _on_mutation_done(
        self,
        origin: CacheKey | None,
        issue_key: str | None,
        describe: Callable[[Any], str],
        failure_label: str,
        created: bool,
        future: Future,
    ) -> None:
        s = self.session
        s.pending_mutations = max(0, s.pending_mutations - 1)
        exc = future.exception()
        if exc is not None:
            error = exc if isinstance(exc, JiraBoardError) else MutationError(str(exc))
            logger.error("%s: %s", failure_label, error)
            self.notifier.notify(f"{failure_label}: {error}", logging.ERROR)
            return

        result = future.result()
        self.notifier.notify(describe(result), logging.INFO)
        if origin is not None:
            s.cache.invalidate(origin)
        if issue_key:
            s.cache.invalidate_issue(issue_key)
        if created and isinstance(result, CreatedIssue) and result.assignee_account_id:
            s.cache.invalidate_kind(ViewKind.MY_ISSUES)
        if origin is not None and s.current_key == origin:
            self._reactivate(origin)
