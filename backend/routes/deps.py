from __future__ import annotations

from fastapi import HTTPException, Request

from backend.application import SessionNotFoundError, WorkflowService
from backend.core.state import WorkflowState
from backend.presentation import build_view


def get_workflow_service(request: Request) -> WorkflowService:
    """Return the workflow service constructed by ``create_app``."""

    return request.app.state.workflow


def load_state(service: WorkflowService, session_id: str) -> WorkflowState:
    try:
        return service.get_state(session_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail="session not found") from exc


def render(session_id: str, state: WorkflowState) -> dict:
    preview_url = None
    if state.preview_id:
        preview_url = f"/api/sessions/{session_id}/preview/{state.preview_id}"
    return build_view(state, session_id=session_id, preview_url=preview_url)
