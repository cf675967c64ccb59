"""View model rendered by the browser page.

The page script holds no logic of its own: it draws whatever
:func:`build_view` returns and writes the ``clipboard`` strings verbatim.
"""
from __future__ import annotations

from typing import Any, Iterable

from backend.core.schema import StockMetadata
from backend.core.state import WorkflowState, WorkflowStatus, can_generate

KEYWORD_DELIMITER = ", "

GENERATE_LABELS: dict[WorkflowStatus, str] = {
    WorkflowStatus.IDLE: "Generate Metadata",
    WorkflowStatus.ERROR: "Generate Metadata",
    WorkflowStatus.ANALYZING: "Analyzing...",
    WorkflowStatus.SUCCESS: "Analysis complete (generate again)",
}


def join_keywords(keywords: Iterable[str]) -> str:
    """Keywords as one clipboard string, e.g. ``"cat, dog"``."""

    return KEYWORD_DELIMITER.join(keywords)


def _result_view(metadata: StockMetadata) -> dict[str, Any]:
    keywords = list(metadata.keywords)
    return {
        "title": metadata.title,
        "description": metadata.description,
        "category": metadata.category,
        "keywords": keywords,
        "keyword_count": len(keywords),
        "clipboard": {
            "title": metadata.title,
            "description": metadata.description,
            "category": metadata.category,
            "keywords": join_keywords(keywords),
            "keyword_items": keywords,
        },
    }


def build_view(state: WorkflowState, *, session_id: str | None = None, preview_url: str | None = None) -> dict[str, Any]:
    analyzing = state.status is WorkflowStatus.ANALYZING
    selected = state.selected_file
    file_info = None
    if selected is not None:
        file_info = {"filename": selected.filename, "mime_type": selected.mime_type, "size": selected.size}

    return {
        "session_id": session_id,
        "status": state.status.value,
        "show_upload": selected is None,
        "show_preview": selected is not None,
        "file": file_info,
        "preview_url": preview_url if selected is not None else None,
        "generate_enabled": can_generate(state),
        "reset_enabled": selected is not None and not analyzing,
        "select_enabled": not analyzing,
        "generate_label": GENERATE_LABELS[state.status],
        "regenerate_hint": state.status is WorkflowStatus.SUCCESS,
        "error_message": state.error_message if state.status is WorkflowStatus.ERROR else None,
        "result": _result_view(state.result) if state.status is WorkflowStatus.SUCCESS and state.result else None,
    }


__all__ = ["GENERATE_LABELS", "KEYWORD_DELIMITER", "build_view", "join_keywords"]
