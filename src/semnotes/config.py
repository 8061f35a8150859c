"""SemNotes configuration management.

Loads and merges settings from project and user-level settings.json files.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from semnotes.utils.paths import (
    get_project_settings_path,
    get_user_settings_path,
)
from semnotes.vault.embedding import DEFAULT_EMBEDDING_MODEL, MODEL_DIMENSIONS


DEFAULT_LLM_MODEL = "openrouter/google/gemini-2.0-flash-exp:free"

MIN_CONTEXT_LENGTH = 1
MAX_CONTEXT_LENGTH = 10


@dataclass
class SemNotesSettings:
    """Merged SemNotes settings."""

    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    llm_model: str = DEFAULT_LLM_MODEL
    api_key: str | None = None
    context_length: int = 5
    use_reranking: bool = True
    use_persistent_storage: bool = True
    max_chunk_size: int = 1000
    chunk_overlap: int = 200
    autosave_interval: float = 600.0
    embedding_concurrency: int = 4
    embedding_retries: int = 1

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


DEFAULT_SETTINGS: dict[str, Any] = SemNotesSettings().to_dict()


def load_json_file(path: Path) -> dict[str, Any]:
    """Load a JSON file, returning empty dict if not found or invalid."""
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge override into base, returning new dict.

    - Dicts are recursively merged
    - Lists are replaced (not appended)
    - Scalars are replaced
    """
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def settings_from_dict(data: dict[str, Any]) -> SemNotesSettings:
    """Build settings from a dict, ignoring unknown keys."""
    known = {f.name for f in fields(SemNotesSettings)}
    return SemNotesSettings(**{k: v for k, v in data.items() if k in known})


def load_settings(project_root: Path | None = None) -> SemNotesSettings:
    """Load and merge settings from user + project levels.

    Precedence: project settings override user settings override defaults.
    """
    merged = dict(DEFAULT_SETTINGS)

    # User-level settings (lower precedence)
    user_settings = load_json_file(get_user_settings_path())
    if user_settings:
        merged = deep_merge(merged, user_settings)

    # Project-level settings (higher precedence)
    if project_root is not None:
        project_settings = load_json_file(get_project_settings_path(project_root))
        if project_settings:
            merged = deep_merge(merged, project_settings)

    return settings_from_dict(merged)


def save_settings(settings: SemNotesSettings, path: Path) -> None:
    """Save settings to a JSON file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(settings.to_dict(), indent=2) + "\n",
        encoding="utf-8",
    )


def validate_settings(settings: SemNotesSettings) -> list[str]:
    """Validate settings, returning list of error messages (empty if valid)."""
    errors = []

    if settings.embedding_model not in MODEL_DIMENSIONS:
        errors.append(
            f"embedding_model must be one of: {', '.join(sorted(MODEL_DIMENSIONS))}"
        )

    if not isinstance(settings.llm_model, str) or not settings.llm_model:
        errors.append("llm_model must be a non-empty string")

    if (
        not isinstance(settings.context_length, int)
        or isinstance(settings.context_length, bool)
        or not (MIN_CONTEXT_LENGTH <= settings.context_length <= MAX_CONTEXT_LENGTH)
    ):
        errors.append(
            f"context_length must be an integer between {MIN_CONTEXT_LENGTH} and {MAX_CONTEXT_LENGTH}"
        )

    for name in ("use_reranking", "use_persistent_storage"):
        if not isinstance(getattr(settings, name), bool):
            errors.append(f"{name} must be a boolean")

    if not isinstance(settings.max_chunk_size, int) or settings.max_chunk_size < 1:
        errors.append("max_chunk_size must be a positive integer")

    if not isinstance(settings.chunk_overlap, int) or settings.chunk_overlap < 0:
        errors.append("chunk_overlap must be a non-negative integer")
    elif isinstance(settings.max_chunk_size, int) and settings.chunk_overlap >= settings.max_chunk_size:
        errors.append("chunk_overlap must be smaller than max_chunk_size")

    if not isinstance(settings.autosave_interval, (int, float)) or settings.autosave_interval <= 0:
        errors.append("autosave_interval must be a positive number of seconds")

    if not isinstance(settings.embedding_concurrency, int) or settings.embedding_concurrency < 1:
        errors.append("embedding_concurrency must be a positive integer")

    if not isinstance(settings.embedding_retries, int) or settings.embedding_retries < 0:
        errors.append("embedding_retries must be a non-negative integer")

    return errors
