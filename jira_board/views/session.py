"""Explicit per-user board session: the state every controller operation reads and writes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from jira_board.core.models import Node, TreeRow

from .cache import CacheKey, ViewCache, ViewKind
from .prefs import Preferences


class ViewState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    RENDERED = "rendered"
    FAILED = "failed"


@dataclass
class ViewSession:
    preferences: Preferences = field(default_factory=Preferences)
    cache: ViewCache = field(default_factory=ViewCache)
    project_key: str | None = None
    filter_text: str = ""
    state: ViewState = ViewState.IDLE
    # The view the user is looking at (may still be loading)
    current_key: CacheKey | None = None
    # The view whose tree is on screen
    rendered_key: CacheKey | None = None
    forest: list[Node] = field(default_factory=list)
    rows: list[TreeRow] = field(default_factory=list)
    loading_message: str | None = None
    last_error: str | None = None
    pending_mutations: int = 0
    # Last forest per (kind, scope); source of expand flags on re-render
    expand_memory: dict[tuple[ViewKind, str], list[Node]] = field(default_factory=dict)

    @property
    def my_issues_projects(self) -> list[str]:
        return self.preferences.my_issues_projects

    @property
    def hide_resolved(self) -> bool:
        return self.preferences.hide_resolved

    @property
    def custom_jql(self) -> str | None:
        return self.preferences.last_jql

    @property
    def current_kind(self) -> ViewKind | None:
        return self.current_key.kind if self.current_key else None

    @property
    def is_busy(self) -> bool:
        return self.state is ViewState.LOADING or self.pending_mutations > 0

    def key_for(self, kind: ViewKind, project_key: str | None = None) -> CacheKey:
        return CacheKey.for_view(
            kind,
            project_key=project_key or self.project_key,
            projects=self.my_issues_projects,
            query=self.custom_jql,
            filter_text=self.filter_text,
            hide_resolved=self.hide_resolved,
        )
