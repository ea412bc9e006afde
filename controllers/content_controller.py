"""Content upload and status polling."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import HTTPException, Request, UploadFile

from dal.content_dal import ContentDAL
from models.session_models import Session
from services.ingestion_pipeline import IngestionPipeline
from utils.errors import AppError, NotFoundError

LOGGER = logging.getLogger(__name__)


async def upload_content(request: Request, session: Session, file: UploadFile | None) -> Dict[str, Any]:
    """Accept an uploaded artifact and return its record before processing finishes.

    Args:
        request: FastAPI Request (used to access the shared pipeline).
        session: Session of the uploading user.
        file: The multipart `file` field.

    Returns:
        The created content record, with status `processing`.

    Raises:
        HTTPException: 400 when no file was sent or it is empty, 413 when it
            exceeds the size ceiling, 415 for unsupported types.
    """
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    pipeline: IngestionPipeline = request.app.state.ingestion_pipeline
    try:
        record = await pipeline.accept(session.user_id, file.filename, file.content_type, file)
    except AppError as exc:
        LOGGER.info("Rejected upload %s from user %s: %s", file.filename, session.user_id, exc.detail)
        raise exc.to_http() from exc
    finally:
        await file.close()
    return record.public_dict()


async def list_content(request: Request, session: Session) -> List[Dict[str, Any]]:
    records = await ContentDAL(request.app.state.db_initializer).list_for_owner(session.user_id)
    return [r.public_dict() for r in records]


async def get_content(request: Request, session: Session, content_id: int) -> Dict[str, Any]:
    """Return one of the user's content records (used to poll processing status)."""
    record = await ContentDAL(request.app.state.db_initializer).get_content(content_id)
    if record is None or record.owner_id != session.user_id:
        raise NotFoundError(f"Content {content_id} not found").to_http()
    return record.public_dict()
