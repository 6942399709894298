"""Keyed cache of fetched view result sets with explicit invalidation."""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

from jira_board.core.models import IssueRecord

logger = logging.getLogger(__name__)


class ViewKind(str, Enum):
    MY_ISSUES = "My Issues"
    SPRINT = "Active Sprint"
    BACKLOG = "Backlog"
    JQL = "JQL"

    @property
    def is_project_scoped(self) -> bool:
        return self in (ViewKind.SPRINT, ViewKind.BACKLOG)

    @property
    def honors_hide_resolved(self) -> bool:
        return self in (ViewKind.MY_ISSUES, ViewKind.JQL)


def normalize_projects(projects: Iterable[str]) -> tuple[str, ...]:
    """Upper-cased, de-duplicated, sorted project keys."""
    return tuple(sorted({p.strip().upper() for p in projects if p and p.strip()}))


@dataclass(frozen=True, slots=True)
class CacheKey:
    kind: ViewKind
    scope: str
    filter_text: str = ""
    # None for views whose query ignores the resolved-visibility setting
    hide_resolved: bool | None = None

    @classmethod
    def for_view(
        cls,
        kind: ViewKind,
        *,
        project_key: str | None = None,
        projects: Iterable[str] = (),
        query: str | None = None,
        filter_text: str | None = None,
        hide_resolved: bool = True,
    ) -> CacheKey:
        if kind is ViewKind.MY_ISSUES:
            scope = ",".join(normalize_projects(projects))
        elif kind is ViewKind.JQL:
            scope = (query or "").strip()
        else:
            scope = (project_key or "").strip().upper()
        return cls(
            kind=kind,
            scope=scope,
            filter_text=(filter_text or "").strip(),
            hide_resolved=hide_resolved if kind.honors_hide_resolved else None,
        )

    @property
    def view_identity(self) -> tuple[ViewKind, str]:
        """Kind and scope only; filter and settings variants share expand state."""
        return (self.kind, self.scope)

    def __str__(self) -> str:
        prefix = "global" if not self.kind.is_project_scoped else self.scope or "unknown"
        text = f"{prefix}:{self.kind.value}"
        if not self.kind.is_project_scoped:
            text += f":{self.scope}"
        if self.filter_text:
            text += f":filter:{self.filter_text}"
        if self.hide_resolved is not None:
            text += f":hide_resolved:{int(self.hide_resolved)}"
        return text


class ViewCache:
    """``CacheKey -> tuple[IssueRecord, ...]`` with no TTL.

    Entries live until invalidated. ``max_entries`` adds an optional LRU bound
    for long sessions; the default is unbounded.
    """

    def __init__(self, max_entries: int | None = None):
        self._entries: OrderedDict[CacheKey, tuple[IssueRecord, ...]] = OrderedDict()
        self.max_entries = max_entries

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> list[CacheKey]:
        return list(self._entries)

    def get(self, key: CacheKey) -> tuple[IssueRecord, ...] | None:
        records = self._entries.get(key)
        if records is None:
            logger.debug("Cache miss %s", key)
            return None
        self._entries.move_to_end(key)
        logger.debug("Cache hit %s (%s issues)", key, len(records))
        return records

    def put(self, key: CacheKey, records: Sequence[IssueRecord]) -> None:
        self._entries[key] = tuple(records)
        self._entries.move_to_end(key)
        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Cache evicted %s", evicted)

    def invalidate(self, key: CacheKey) -> None:
        if self._entries.pop(key, None) is not None:
            logger.debug("Cache invalidated %s", key)

    def invalidate_all(self) -> None:
        self._entries.clear()
        logger.debug("Cache cleared")

    def invalidate_where(self, predicate: Callable[[CacheKey, tuple[IssueRecord, ...]], bool]) -> list[CacheKey]:
        """Drop every entry matching ``predicate``; returns the dropped keys."""
        dropped = [k for k, records in self._entries.items() if predicate(k, records)]
        for key in dropped:
            del self._entries[key]
        if dropped:
            logger.debug("Cache invalidated %s entries", len(dropped))
        return dropped

    def invalidate_issue(self, issue_key: str) -> list[CacheKey]:
        """Drop every entry whose result set contains ``issue_key``."""
        return self.invalidate_where(lambda _k, records: any(r.key == issue_key for r in records))

    def invalidate_kind(self, kind: ViewKind) -> list[CacheKey]:
        return self.invalidate_where(lambda k, _records: k.kind is kind)
