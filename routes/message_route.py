"""FastAPI routes for direct messages."""

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from controllers.message_controller import get_conversation, list_messages, send_message
from models.session_models import Session
from routes.dependencies import require_session

router = APIRouter(prefix="/api/messages")


class MessagePayload(BaseModel):
    recipient_id: int = Field(gt=0)
    content: str = Field(min_length=1, max_length=5000)


@router.get("")
async def list_messages_route(request: Request, session: Session = Depends(require_session)):
    try:
        return await list_messages(request, session)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail="Failed to fetch messages") from exc


@router.get("/{user_id}")
async def conversation_route(request: Request, user_id: int, session: Session = Depends(require_session)):
    """Return the conversation with `user_id` and mark their messages as read."""
    try:
        return await get_conversation(request, session, user_id)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail="Failed to fetch conversation") from exc


@router.post("", status_code=201)
async def send_message_route(request: Request, payload: MessagePayload, session: Session = Depends(require_session)):
    try:
        return await send_message(request, session, payload.recipient_id, payload.content)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail="Failed to send message") from exc
