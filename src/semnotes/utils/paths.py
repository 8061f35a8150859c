"""Project path helpers for SemNotes."""

from __future__ import annotations

from pathlib import Path


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from start directory to find project root.

    Project root is identified by the presence of a .semnotes/ directory.
    """
    current = (start or Path.cwd()).resolve()
    for directory in [current, *current.parents]:
        if (directory / ".semnotes").is_dir():
            return directory
    return None


def get_snapshot_path(project_root: Path) -> Path:
    """Path to the saved embeddings snapshot."""
    return project_root / ".semnotes" / "embeddings.json"


def get_user_settings_path() -> Path:
    """Get user-level settings.json path."""
    return Path.home() / ".semnotes" / "settings.json"


def get_project_settings_path(project_root: Path) -> Path:
    """Get project-level settings.json path."""
    return project_root / ".semnotes" / "settings.json"
