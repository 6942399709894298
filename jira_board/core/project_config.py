"""Load per-project field overrides from YAML (with fallbacks).

``board.yaml`` at the repository root may look like::

    defaults:
      story_point_field: customfield_10016
    projects:
      PROJ:
        story_point_field: customfield_10028
        acceptance_criteria_field: customfield_10040
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

from .config import DEFAULT_ACCEPTANCE_CRITERIA_FIELD, DEFAULT_STORY_POINT_FIELD

logger = logging.getLogger(__name__)

_CACHE: dict[str, dict] | None = None


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    story_point_field: str | None = DEFAULT_STORY_POINT_FIELD
    acceptance_criteria_field: str | None = DEFAULT_ACCEPTANCE_CRITERIA_FIELD


def load_overrides(base_path: str | Path | None = None, *, reload: bool = False) -> dict[str, dict]:
    global _CACHE
    if _CACHE is not None and not reload:
        return _CACHE
    base = Path(base_path or Path(__file__).resolve().parent.parent.parent)
    yaml_path = base / "board.yaml"
    if not yaml_path.exists():
        _CACHE = {"defaults": {}, "projects": {}}
        return _CACHE
    try:
        data = yaml.safe_load(yaml_path.read_text()) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Ignoring unreadable %s: %s", yaml_path, exc)
        data = {}
    projects = {str(k).upper(): (v or {}) for k, v in (data.get("projects") or {}).items()}
    _CACHE = {"defaults": data.get("defaults") or {}, "projects": projects}
    return _CACHE


def get_project_config(project_key: str | None) -> ProjectConfig:
    overrides = load_overrides()
    merged = dict(overrides["defaults"])
    if project_key:
        merged.update(overrides["projects"].get(project_key.upper(), {}))
    return ProjectConfig(
        story_point_field=merged.get("story_point_field", DEFAULT_STORY_POINT_FIELD),
        acceptance_criteria_field=merged.get("acceptance_criteria_field", DEFAULT_ACCEPTANCE_CRITERIA_FIELD),
    )
