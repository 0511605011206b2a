"""Snaplink - URL shortener with link previews and click counts."""

__version__ = "0.1.0"
