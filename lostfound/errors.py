"""
Error taxonomy for the report engine and its translation to HTTP responses.

Service code raises these; routers let them propagate and the handlers
installed by `install_error_handlers` turn them into JSON bodies.
"""

from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class LostFoundError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message}


class ValidationError(LostFoundError):
    """A submitted field is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        return {"detail": self.message, "field": self.field}


class InvalidTransition(LostFoundError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, current: str, requested: str, message: Optional[str] = None):
        super().__init__(message or f"Cannot move report from '{current}' to '{requested}'.")
        self.current = current
        self.requested = requested

    def to_dict(self) -> dict:
        return {"detail": self.message, "current": self.current, "requested": self.requested}


class Forbidden(LostFoundError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(LostFoundError):
    status_code = status.HTTP_404_NOT_FOUND


class RepositoryError(LostFoundError):
    """Opaque failure from the persistence collaborator. Never retried here."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class DecodeError(RepositoryError):
    """A stored document could not be decoded into a Report."""

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(message or f"Stored report has a missing or malformed '{field}' field.")
        self.field = field


class PreconditionFailed(RepositoryError):
    """A conditional update found the record in a different status than expected."""

    def __init__(self, current: str):
        super().__init__(f"Report status changed concurrently (now '{current}').")
        self.current = current


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(LostFoundError)
    async def lostfound_exc_handler(request: Request, exc: LostFoundError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
