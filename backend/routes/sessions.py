from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile
from fastapi.responses import JSONResponse

from backend.application import SessionNotFoundError, WorkflowService
from backend.core.errors import EncodingError
from backend.routes.deps import get_workflow_service, load_state, render

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("")
async def open_session(service: WorkflowService = Depends(get_workflow_service)) -> dict:
    session_id = service.open_session()
    return render(session_id, service.get_state(session_id))


@router.get("/{session_id}")
async def get_session(session_id: str, service: WorkflowService = Depends(get_workflow_service)) -> dict:
    state = load_state(service, session_id)
    return render(session_id, state)


@router.delete("/{session_id}", status_code=204)
async def close_session(session_id: str, service: WorkflowService = Depends(get_workflow_service)) -> Response:
    try:
        service.close_session(session_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail="session not found") from exc
    return Response(status_code=204)


@router.post("/{session_id}/file")
async def select_file(
    session_id: str,
    file: UploadFile = File(...),
    service: WorkflowService = Depends(get_workflow_service),
) -> dict:
    """Replace the session's image; the workflow returns to idle."""
    load_state(service, session_id)
    try:
        content_type = file.content_type or ""
        if not content_type.startswith("image/"):
            raise HTTPException(status_code=400, detail="Uploaded file must be an image")

        filename = Path(file.filename or "image").name
        try:
            state = await service.select_file(
                session_id,
                filename=filename,
                mime_type=content_type,
                source=file.file,
            )
        except EncodingError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except SessionNotFoundError as exc:
            raise HTTPException(status_code=404, detail="session not found") from exc
    finally:
        await file.close()

    return render(session_id, state)


@router.post("/{session_id}/generate")
async def generate(session_id: str, service: WorkflowService = Depends(get_workflow_service)):
    """Generate metadata for the selected image.

    Returns 409 with the unchanged view when no image is selected or a
    request is already in flight for this session.
    """
    load_state(service, session_id)
    state, accepted = await service.generate(session_id)
    view = render(session_id, state)
    if not accepted:
        return JSONResponse(status_code=409, content=view)
    return view


@router.post("/{session_id}/reset")
async def reset(session_id: str, service: WorkflowService = Depends(get_workflow_service)) -> dict:
    load_state(service, session_id)
    state = service.reset(session_id)
    return render(session_id, state)


@router.get("/{session_id}/preview/{preview_id}")
async def get_preview(
    session_id: str,
    preview_id: str,
    service: WorkflowService = Depends(get_workflow_service),
) -> Response:
    load_state(service, session_id)
    preview = service.get_preview(session_id, preview_id)
    if preview is None:
        raise HTTPException(status_code=404, detail="preview not available")
    return Response(
        content=preview.content,
        media_type=preview.mime_type,
        headers={"Cache-Control": "no-store"},
    )
