"""Presentation helpers."""

from .view import build_view, join_keywords

__all__ = ["build_view", "join_keywords"]
