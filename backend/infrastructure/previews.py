"""In-memory store for image preview handles."""
from __future__ import annotations

import uuid

from backend.domain import Preview


class InMemoryPreviewStore:
    """Holds preview bytes until their handle is released."""

    def __init__(self) -> None:
        self._previews: dict[str, Preview] = {}

    def create(self, content: bytes, mime_type: str) -> Preview:
        preview = Preview(preview_id=uuid.uuid4().hex, mime_type=mime_type, content=content)
        self._previews[preview.preview_id] = preview
        return preview

    def get(self, preview_id: str) -> Preview | None:
        return self._previews.get(preview_id)

    def release(self, preview_id: str | None) -> bool:
        """Drop a preview; returns ``False`` when it was already gone."""

        if preview_id is None:
            return False
        return self._previews.pop(preview_id, None) is not None

    def __len__(self) -> int:
        return len(self._previews)
