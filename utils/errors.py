"""Error taxonomy shared by controllers, services, and the realtime layer."""

from fastapi import HTTPException


class AppError(Exception):
    """Base class for errors that map onto an HTTP status code."""

    status_code = 500

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code

    def to_http(self) -> HTTPException:
        """Return the equivalent FastAPI HTTPException."""
        return HTTPException(status_code=self.status_code, detail=self.detail)


class ValidationError(AppError):
    """Malformed request payload or rejected upload."""

    status_code = 400


class NotFoundError(AppError):
    """Referenced entity does not exist (or is not visible to the caller)."""

    status_code = 404


class AuthError(AppError):
    """Missing, unknown, or invalid credentials."""

    status_code = 401


class ProcessingError(AppError):
    """Background work failed; recorded on the entity, never sent to a caller."""


class TransportError(AppError):
    """A realtime connection could not be written to."""
