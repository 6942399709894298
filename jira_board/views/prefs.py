"""Persisted board preferences (saved projects, resolved visibility, last query)."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from jira_board.core.config import PREFERENCES_PATH

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Preferences:
    my_issues_projects: list[str] = field(default_factory=list)
    hide_resolved: bool = True
    last_jql: str | None = None


class PreferenceStore:
    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path else PREFERENCES_PATH

    def load(self) -> Preferences:
        if not self.path.exists():
            return Preferences()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable preferences %s: %s", self.path, exc)
            return Preferences()
        if not isinstance(data, dict):
            return Preferences()
        prefs = Preferences()
        projects = data.get("my_issues_projects")
        if isinstance(projects, list):
            for p in projects:
                key = str(p).strip().upper() if p else ""
                if key and key not in prefs.my_issues_projects:
                    prefs.my_issues_projects.append(key)
        if isinstance(data.get("hide_resolved"), bool):
            prefs.hide_resolved = data["hide_resolved"]
        last_jql = data.get("last_jql")
        if isinstance(last_jql, str) and last_jql.strip():
            prefs.last_jql = last_jql
        return prefs

    def save(self, prefs: Preferences) -> None:
        payload = {
            "my_issues_projects": list(prefs.my_issues_projects),
            "hide_resolved": prefs.hide_resolved,
            "last_jql": prefs.last_jql,
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.error("Failed to save preferences to %s: %s", self.path, exc)
