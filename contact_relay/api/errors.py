"""Error taxonomy for the contact API.

Every error that can reach a client carries an HTTP status code and a short
public message. Internal details stay in the server log.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ContactRelayError(Exception):
    """Base class for errors with a client-facing representation.

    Attributes:
        status_code: HTTP status returned to the client
        message: Public message placed in the ``error`` field
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(ContactRelayError):
    """A submitted field failed its constraint."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class InvalidName(ValidationError):
    message = "Invalid name"


class InvalidEmail(ValidationError):
    message = "Invalid email"


class InvalidMessage(ValidationError):
    message = "Invalid message"


class InvalidJSON(ValidationError):
    message = "Invalid JSON"


class PayloadTooLarge(ContactRelayError):
    status_code = 413
    message = "Payload too large"


class StorageError(ContactRelayError):
    """The datastore is unreachable or rejected the statement.

    The public message is always generic; the underlying cause is chained
    via ``raise ... from`` and logged where it is caught.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Database error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__()
        self.detail = detail


class BroadcastWriteError(ContactRelayError):
    """Writing to a single stream subscriber failed. Never sent to clients."""


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers that render every failure as ``{"error": ...}``.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(ContactRelayError)
    async def contact_relay_error_handler(
        request: Request, exc: ContactRelayError
    ) -> JSONResponse:
        if isinstance(exc, StorageError):
            logger.error(
                "Storage failure",
                extra={"path": request.url.path, "detail": exc.detail},
                exc_info=exc.__cause__ or exc,
            )
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unexpected error",
            extra={"path": request.url.path},
            exc_info=exc,
        )
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, ContactRelayError.message
        )
