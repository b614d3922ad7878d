"""Payment advice PDF service."""

__version__ = "1.0.0"
