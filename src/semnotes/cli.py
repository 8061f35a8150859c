"""SemNotes CLI: main entry point.

Commands:
  init      Initialize a new SemNotes project
  index     Index the notes under the project root
  search    Semantic search over the indexed notes
  ask       Ask a question answered from the notes
  config    View and update project settings
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

BOOL_CONFIG_KEYS = {"use_reranking", "use_persistent_storage"}
INT_CONFIG_KEYS = {
    "context_length",
    "max_chunk_size",
    "chunk_overlap",
    "embedding_concurrency",
    "embedding_retries",
}
FLOAT_CONFIG_KEYS = {"autosave_interval"}
STR_CONFIG_KEYS = {"embedding_model", "llm_model", "api_key"}
ALLOWED_CONFIG_KEYS = BOOL_CONFIG_KEYS | INT_CONFIG_KEYS | FLOAT_CONFIG_KEYS | STR_CONFIG_KEYS


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="semnotes",
        description="SemNotes: semantic search and Q&A over markdown notes",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Increase log verbosity (-v, -vv)"
    )
    subparsers = parser.add_subparsers(dest="command")

    # init
    init_parser = subparsers.add_parser("init", help="Initialize a new SemNotes project")
    init_parser.add_argument("path", nargs="?", default=".", help="Notes directory")

    # index
    index_parser = subparsers.add_parser("index", help="Index the notes")
    index_parser.add_argument("--incremental", action="store_true", help="Only re-index changed notes")

    # search
    search_parser = subparsers.add_parser("search", help="Semantic search over the notes")
    search_parser.add_argument("query", help="Search query")
    search_parser.add_argument("--limit", type=int, default=None, help="Maximum results")
    search_parser.add_argument("--no-rerank", action="store_true", help="Disable reranking")

    # ask
    ask_parser = subparsers.add_parser("ask", help="Ask a question answered from the notes")
    ask_parser.add_argument("question", help="Question to answer")

    # config
    config_parser = subparsers.add_parser("config", help="View and update project settings")
    config_parser.add_argument(
        "action", choices=["show", "get", "set"], help="Action to perform"
    )
    config_parser.add_argument("key", nargs="?", help="Setting key (for get/set)")
    config_parser.add_argument("value", nargs="?", help="Setting value (for set)")

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        if args.command == "init":
            return cmd_init(args)
        elif args.command == "index":
            return cmd_index(args)
        elif args.command == "search":
            return cmd_search(args)
        elif args.command == "ask":
            return cmd_ask(args)
        elif args.command == "config":
            return cmd_config(args)
        else:
            parser.print_help()
            return 1
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _require_project() -> Path | None:
    from semnotes.utils.paths import find_project_root

    project_root = find_project_root()
    if project_root is None:
        print("No SemNotes project found. Run 'semnotes init' first.", file=sys.stderr)
    return project_root


def _open_index(project_root: Path):
    """Load settings, build the notes index and restore the saved snapshot."""
    from semnotes.config import load_settings, validate_settings
    from semnotes.core.notes_index import NotesIndex
    from semnotes.core.providers import create_embedding_provider
    from semnotes.utils.paths import get_snapshot_path

    settings = load_settings(project_root)
    errors = validate_settings(settings)
    if errors:
        raise ValueError("; ".join(errors))

    index = NotesIndex(settings, create_embedding_provider(settings))
    loaded = False
    if settings.use_persistent_storage:
        loaded = index.load_snapshot(get_snapshot_path(project_root))
    return settings, index, loaded


def _save_index(project_root: Path, index) -> None:
    from semnotes.utils.paths import get_snapshot_path
    from semnotes.vault.persistence import SnapshotWriter

    if index.settings.use_persistent_storage:
        index.save_snapshot(SnapshotWriter(get_snapshot_path(project_root)))


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize a new SemNotes project."""
    from semnotes.config import SemNotesSettings, save_settings

    project_dir = Path(args.path).resolve()
    project_dir.mkdir(parents=True, exist_ok=True)

    semnotes_dir = project_dir / ".semnotes"
    semnotes_dir.mkdir(exist_ok=True)

    settings_path = semnotes_dir / "settings.json"
    if not settings_path.exists():
        save_settings(SemNotesSettings(), settings_path)

    print(f"Initialized SemNotes project at {project_dir}")
    return 0


def cmd_index(args: argparse.Namespace) -> int:
    """Index the notes."""
    from semnotes.vault.indexer import index_directory

    project_root = _require_project()
    if project_root is None:
        return 1

    settings, index, loaded = _open_index(project_root)
    # Incremental only applies on top of a loaded snapshot.
    incremental = getattr(args, "incremental", False) and loaded
    print(f"Indexing notes {'(incremental)' if incremental else '(full)'}...")
    result = asyncio.run(index_directory(index, project_root, incremental=incremental))

    if result.get("success"):
        _save_index(project_root, index)
        print(
            f"Indexed {result['files_indexed']} notes, "
            f"{result['chunks_created']} chunks created, "
            f"{result['files_deleted']} removed"
        )
        if result.get("files_failed"):
            print(f"Skipped {result['files_failed']} unreadable notes", file=sys.stderr)
        return 0
    else:
        print(f"Index failed: {result.get('error', 'unknown')}", file=sys.stderr)
        return 1


def _ensure_indexed(project_root: Path, index, loaded: bool) -> None:
    from semnotes.vault.indexer import index_directory

    if not loaded:
        asyncio.run(index_directory(index, project_root))
        _save_index(project_root, index)


def cmd_search(args: argparse.Namespace) -> int:
    """Semantic search over the notes."""
    project_root = _require_project()
    if project_root is None:
        return 1

    settings, index, loaded = _open_index(project_root)
    _ensure_indexed(project_root, index, loaded)

    use_reranking = False if args.no_rerank else None
    results = asyncio.run(index.search(args.query, limit=args.limit, use_reranking=use_reranking))
    if not results:
        print("No results.")
        return 0

    for i, result in enumerate(results, start=1):
        preview = " ".join(result.text.split())[:160]
        print(f"{i}. {result.title} ({result.path})  score={result.score:.4f}")
        print(f"   {preview}")
    return 0


def cmd_ask(args: argparse.Namespace) -> int:
    """Ask a question answered from the notes."""
    from semnotes.core.providers import create_completion_provider
    from semnotes.core.rag import RAGService

    project_root = _require_project()
    if project_root is None:
        return 1

    settings, index, loaded = _open_index(project_root)
    _ensure_indexed(project_root, index, loaded)

    service = RAGService(settings, index, create_completion_provider(settings))
    result = asyncio.run(service.answer_question(args.question))
    print(result.answer)

    if result.show_sources:
        print("\nSources:")
        for i, source in enumerate(result.sources, start=1):
            print(f"  [{i}] {source.title} ({source.path})")
    return 0 if result.success else 1


def _parse_config_value(key: str, raw: str) -> str | int | float | bool | None:
    """Convert a CLI string into the setting's type. Raises ValueError."""
    if key in BOOL_CONFIG_KEYS:
        lowered = raw.lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"{key} must be true or false")
    if key in INT_CONFIG_KEYS:
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f"{key} must be an integer")
    if key in FLOAT_CONFIG_KEYS:
        try:
            return float(raw)
        except ValueError:
            raise ValueError(f"{key} must be a number")
    if key == "api_key" and raw == "":
        return None
    return raw


def cmd_config(args: argparse.Namespace) -> int:
    """View and update project settings."""
    from semnotes.config import load_json_file, load_settings, validate_settings
    from semnotes.utils.paths import get_project_settings_path

    project_root = _require_project()
    if project_root is None:
        return 1

    action = args.action

    if action == "show":
        settings = load_settings(project_root)
        print(json.dumps(settings.to_dict(), indent=2))
        return 0

    if action == "get":
        if not args.key:
            print("Usage: semnotes config get <key>", file=sys.stderr)
            return 1
        if args.key not in ALLOWED_CONFIG_KEYS:
            print(
                f"Unknown key: {args.key}. "
                f"Allowed keys: {', '.join(sorted(ALLOWED_CONFIG_KEYS))}",
                file=sys.stderr,
            )
            return 1
        settings = load_settings(project_root)
        value = getattr(settings, args.key)
        print(value if value is not None else "")
        return 0

    if action == "set":
        if not args.key or args.value is None:
            print("Usage: semnotes config set <key> <value>", file=sys.stderr)
            return 1
        if args.key not in ALLOWED_CONFIG_KEYS:
            print(
                f"Unknown key: {args.key}. "
                f"Allowed keys: {', '.join(sorted(ALLOWED_CONFIG_KEYS))}",
                file=sys.stderr,
            )
            return 1

        try:
            value = _parse_config_value(args.key, args.value)
        except ValueError as e:
            print(str(e), file=sys.stderr)
            return 1

        # Validate by building a settings object from merged data
        test_settings = load_settings(project_root)
        setattr(test_settings, args.key, value)
        errors = validate_settings(test_settings)
        if errors:
            for err in errors:
                print(f"Validation error: {err}", file=sys.stderr)
            return 1

        settings_path = get_project_settings_path(project_root)
        data = load_json_file(settings_path)
        data[args.key] = value
        settings_path.parent.mkdir(parents=True, exist_ok=True)
        settings_path.write_text(
            json.dumps(data, indent=2) + "\n", encoding="utf-8"
        )
        print(f"{args.key} = {value}")
        if args.key == "embedding_model":
            print("Embedding model changed. Run 'semnotes index' to rebuild the index.")
        return 0

    return 1


if __name__ == "__main__":
    sys.exit(main())
