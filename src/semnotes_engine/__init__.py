"""SemNotes Engine: HTTP service around the notes index."""

from semnotes import __version__

__all__ = ["__version__"]
