"""Repository settings applied after generation.

Layers (most specific wins):
1. Built-in defaults
2. Optional YAML overlay from ``RepoforgeConfig.repo_settings_file``
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
import yaml

if TYPE_CHECKING:
    from repoforge.config import RepoforgeConfig

log = structlog.get_logger()

DEFAULT_REPO_SETTINGS: dict[str, Any] = {
    "has_issues": True,
    "has_projects": True,
    "has_wiki": True,
    "has_downloads": True,
    "auto_init": True,
    "allow_squash_merge": False,
    "allow_merge_commit": True,
    "allow_rebase_merge": False,
    "allow_auto_merge": True,
    "delete_branch_on_merge": True,
}


def load_repo_settings(config: RepoforgeConfig) -> dict[str, Any]:
    """Build the settings patch for a freshly generated repository."""
    merged = dict(DEFAULT_REPO_SETTINGS)
    merged["team_id"] = config.github_team_id
    if config.repo_settings_file:
        merged = _merge_settings(merged, _load_overlay(config.repo_settings_file))
    return merged


def _load_overlay(path: Path) -> dict[str, Any]:
    path = path.expanduser()
    if not path.exists():
        log.warning("repo_settings_file_missing", path=str(path))
        return {}
    try:
        parsed = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError:
        log.warning("repo_settings_parse_error", path=str(path))
        return {}
    if not isinstance(parsed, dict):
        log.warning("repo_settings_not_mapping", path=str(path))
        return {}
    return parsed


def _merge_settings(base: dict, overlay: dict) -> dict:
    """Deep-merge two settings dicts. Overlay values replace base values."""
    merged = dict(base)
    for key, value in overlay.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _merge_settings(merged[key], value)
        else:
            merged[key] = value
    return merged
