"""Contract for metadata generation integrations.

The workflow depends on this protocol only, so tests can hand
``create_app`` a deterministic fake in place of the Gemini client.
"""
from __future__ import annotations

from typing import Protocol

from backend.core.encoding import EncodedImage
from backend.core.schema import StockMetadata


class MetadataClient(Protocol):
    """Contract for AI metadata providers."""

    model: str

    def generate_metadata(self, image: EncodedImage) -> StockMetadata:
        """Return metadata for ``image`` or raise ``GenerationError``."""

    def close(self) -> None:
        """Release any network resources held by the client."""
