"""Infrastructure layer exports."""

from .gemini import GeminiMetadataClient
from .metadata import MetadataClient
from .previews import InMemoryPreviewStore
from .sessions import InMemorySessionRepository, SessionRepository

__all__ = [
    "GeminiMetadataClient",
    "InMemoryPreviewStore",
    "InMemorySessionRepository",
    "MetadataClient",
    "SessionRepository",
]
