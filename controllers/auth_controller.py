"""Registration, login, and profile helpers."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from fastapi import HTTPException, Request

from dal.user_dal import UserDAL
from models.session_models import Session
from models.user_record import UserRecord
from services.session_store import SessionRegistry
from utils.errors import AppError, NotFoundError, ValidationError

LOGGER = logging.getLogger(__name__)
PWD = PasswordHasher()


def _login_response(user: UserRecord, token: str) -> Dict[str, Any]:
    return {"user": {"id": user.id, "username": user.username}, "sessionId": token}


async def register_user(
    request: Request,
    username: str,
    password: str,
    display_name: Optional[str] = None,
) -> Dict[str, Any]:
    """Create a user, open a session for them, and return both."""
    registry: SessionRegistry = request.app.state.session_registry
    user_dal = UserDAL(request.app.state.db_initializer)
    try:
        if await user_dal.get_user_by_username(username) is not None:
            raise ValidationError("Username already exists")
        user = await user_dal.create_user(
            UserRecord(id=None, username=username, password_hash=PWD.hash(password), display_name=display_name)
        )
    except AppError as exc:
        raise exc.to_http() from exc

    LOGGER.info("Registered user %s (id=%s)", user.username, user.id)
    return _login_response(user, registry.create(user.id, user.username))


async def login_user(request: Request, username: str, password: str) -> Dict[str, Any]:
    """Verify credentials and open a new session."""
    registry: SessionRegistry = request.app.state.session_registry
    user = await UserDAL(request.app.state.db_initializer).get_user_by_username(username)

    valid = False
    if user is not None:
        try:
            valid = PWD.verify(user.password_hash, password)
        except (VerificationError, InvalidHashError):
            valid = False
    if not valid:
        LOGGER.info("Rejected login for %s", username)
        raise HTTPException(status_code=401, detail="Invalid username or password")

    return _login_response(user, registry.create(user.id, user.username))


async def get_current_user(request: Request, session: Session) -> Dict[str, Any]:
    user = await UserDAL(request.app.state.db_initializer).get_user_by_id(session.user_id)
    if user is None:
        raise NotFoundError("User not found").to_http()
    return user.public_dict()


async def update_current_user(
    request: Request,
    session: Session,
    display_name: Optional[str],
    bio: Optional[str],
) -> Dict[str, Any]:
    user = await UserDAL(request.app.state.db_initializer).update_profile(
        session.user_id, display_name=display_name, bio=bio
    )
    if user is None:
        raise NotFoundError("User not found").to_http()
    return user.public_dict()
