"""SemNotes: semantic search and question answering over markdown notes."""

__version__ = "0.1.0"
