"""Direct message helpers backed by the conversation index."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import Request

from dal.message_dal import MessageDAL
from dal.user_dal import UserDAL
from models.session_models import Session
from utils.errors import NotFoundError, ValidationError


async def send_message(request: Request, session: Session, recipient_id: int, content: str) -> Dict[str, Any]:
    """Persist a message from the current user to `recipient_id`."""
    text = content.strip()
    if not text:
        raise ValidationError("Message content is required.").to_http()
    if await UserDAL(request.app.state.db_initializer).get_user_by_id(recipient_id) is None:
        raise NotFoundError(f"User {recipient_id} not found").to_http()

    message = await MessageDAL(request.app.state.db_initializer).append(session.user_id, recipient_id, text)
    return message.to_dict()


async def list_messages(request: Request, session: Session) -> Dict[str, Any]:
    """Return the user's recent messages and their unread count."""
    message_dal = MessageDAL(request.app.state.db_initializer)
    messages = await message_dal.list_for_user(session.user_id)
    return {
        "messages": [m.to_dict() for m in messages],
        "unread": await message_dal.unread_count(session.user_id),
    }


async def get_conversation(request: Request, session: Session, counterpart_id: int) -> List[Dict[str, Any]]:
    """Return the conversation with `counterpart_id`, then mark their messages as read.

    The returned list reflects read state as it was before this call.
    """
    message_dal = MessageDAL(request.app.state.db_initializer)
    conversation = await message_dal.fetch(session.user_id, counterpart_id)
    await message_dal.mark_read(session.user_id, counterpart_id)
    return [m.to_dict() for m in conversation]
