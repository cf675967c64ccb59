from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from backend.application import WorkflowService
from backend.routes.deps import get_workflow_service

STATIC_DIR = Path(__file__).resolve().parents[1] / "static"

router = APIRouter(tags=["pages"])


@router.get("/", include_in_schema=False)
async def index() -> FileResponse:
    """Serve the single-page upload and results UI."""
    return FileResponse(STATIC_DIR / "index.html", media_type="text/html")


@router.get("/health")
async def health(service: WorkflowService = Depends(get_workflow_service)) -> dict:
    return {"status": "ok", "model": service.model, "sessions": service.session_count()}
