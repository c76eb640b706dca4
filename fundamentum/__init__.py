"""SQLite-backed storage for a community chat moderation and engagement bot."""

__version__ = "0.1.0"