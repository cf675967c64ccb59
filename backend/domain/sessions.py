"""Domain entities for browser tab sessions."""
from __future__ import annotations

from dataclasses import dataclass, field

from backend.core.state import WorkflowState


@dataclass(slots=True)
class Preview:
    """A revocable handle used to display a selected image before upload."""

    preview_id: str
    mime_type: str
    content: bytes


@dataclass(slots=True)
class SessionRecord:
    """Workflow state owned by one browser tab."""

    session_id: str
    state: WorkflowState = field(default_factory=WorkflowState)
    last_seen: float = 0.0
