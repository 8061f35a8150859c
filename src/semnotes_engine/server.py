"""Uvicorn startup for SemNotes Engine."""

from __future__ import annotations

import argparse
import os
import sys


def main() -> None:
    """Start the SemNotes Engine server."""
    parser = argparse.ArgumentParser(description="SemNotes Engine Server")
    parser.add_argument("--host", default="127.0.0.1", help="Bind host (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8742, help="Bind port (default: 8742)")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    parser.add_argument(
        "--project-root",
        default=None,
        help="Notes directory (default: enclosing SemNotes project of the working directory)",
    )
    args = parser.parse_args()

    try:
        import uvicorn
    except ImportError:
        print("uvicorn not installed. Run: pip install uvicorn[standard]", file=sys.stderr)
        sys.exit(1)

    # Store config in environment for the factory
    if args.project_root:
        os.environ["SEMNOTES_PROJECT_ROOT"] = args.project_root

    uvicorn.run(
        "semnotes_engine.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
