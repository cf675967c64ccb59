"""Domain layer definitions."""

from .sessions import Preview, SessionRecord

__all__ = [
    "Preview",
    "SessionRecord",
]
