"""SQLite storage, scoring and helpers for a group-chat growing game bot."""

__version__ = "0.1.0"