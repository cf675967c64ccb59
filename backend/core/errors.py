"""Error types shared across the metadata generation path."""
from __future__ import annotations


class MicrostockError(Exception):
    """Base class for errors raised by the tagger."""


class EncodingError(MicrostockError):
    """Raised when a selected image cannot be read for transport."""


class ConfigurationError(MicrostockError):
    """Raised at start-up when required settings are missing or invalid."""


class GenerationError(MicrostockError):
    """Raised when the AI service call fails or returns unusable metadata."""


__all__ = ["MicrostockError", "EncodingError", "ConfigurationError", "GenerationError"]
