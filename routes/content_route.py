"""FastAPI routes for content upload and summary polling."""

from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

from controllers.content_controller import get_content, list_content, upload_content
from models.session_models import Session
from routes.dependencies import require_session

router = APIRouter(prefix="/api/content", tags=["content"])


@router.post("/upload", status_code=201, summary="Upload a PDF or video for summarization")
async def upload_route(
    request: Request,
    file: Optional[UploadFile] = File(None),
    session: Session = Depends(require_session),
):
    """Store the upload and return its record immediately.

    Processing continues in the background; poll `GET /api/content/{id}`
    until the status is `complete` or `failed`.
    """
    try:
        return await upload_content(request, session, file)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail="Failed to upload content") from exc


@router.get("")
async def list_content_route(request: Request, session: Session = Depends(require_session)):
    try:
        return await list_content(request, session)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail="Failed to fetch content") from exc


@router.get("/{content_id}")
async def get_content_route(request: Request, content_id: int, session: Session = Depends(require_session)):
    try:
        return await get_content(request, session, content_id)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail="Failed to fetch content") from exc
