"""FastAPI routes for registration, login, and the current user."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from controllers.auth_controller import get_current_user, login_user, register_user, update_current_user
from models.session_models import Session
from routes.dependencies import require_session

router = APIRouter(prefix="/api")


class RegisterPayload(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6, max_length=200)
    display_name: Optional[str] = Field(default=None, max_length=100)


class LoginPayload(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ProfilePayload(BaseModel):
    display_name: Optional[str] = Field(default=None, max_length=100)
    bio: Optional[str] = Field(default=None, max_length=2000)


@router.post("/auth/register", status_code=201)
async def register_route(request: Request, payload: RegisterPayload):
    try:
        return await register_user(request, payload.username, payload.password, payload.display_name)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail="Failed to register user") from exc


@router.post("/auth/login")
async def login_route(request: Request, payload: LoginPayload):
    try:
        return await login_user(request, payload.username, payload.password)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail="Failed to log in") from exc


@router.get("/users/current")
async def current_user_route(request: Request, session: Session = Depends(require_session)):
    try:
        return await get_current_user(request, session)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail="Failed to fetch user data") from exc


@router.patch("/users/current")
async def update_current_user_route(
    request: Request,
    payload: ProfilePayload,
    session: Session = Depends(require_session),
):
    try:
        return await update_current_user(request, session, payload.display_name, payload.bio)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail="Failed to update user") from exc
