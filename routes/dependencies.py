"""Request-scoped helpers shared by the API routers."""

from typing import Optional

from fastapi import HTTPException, Request

from dal.user_dal import UserDAL
from models.session_models import Session
from services.session_store import SessionRegistry


def _token_from_header(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    value = value.strip()
    if value.lower().startswith("bearer "):
        value = value[7:].strip()
    return value or None


def get_session_registry(request: Request) -> SessionRegistry:
    """Retrieve the shared session registry from the app state."""
    registry = getattr(request.app.state, "session_registry", None)
    if registry is None:
        raise HTTPException(status_code=500, detail="Session registry not initialized.")
    return registry


async def require_session(request: Request) -> Session:
    """Resolve the `Authorization` header to a session or fail with 401.

    With the development auto-login flag enabled, a request that carries no
    token at all is bound to the first stored user instead.
    """
    registry = get_session_registry(request)
    token = _token_from_header(request.headers.get("authorization"))
    if token is None:
        token = await registry.ensure_default(UserDAL(request.app.state.db_initializer))
    session = registry.resolve(token)
    if session is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return session
