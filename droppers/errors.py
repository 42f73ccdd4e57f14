"""Error taxonomy and the handlers that turn it into the response envelope.

Services raise the typed errors below; only the exception handlers registered
by :func:`register_exception_handlers` catch them.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .settings import settings

logger = logging.getLogger(__name__)


class DroppersError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DroppersError):
    status_code = 400
    default_message = "Validation failed"


class AuthenticationError(DroppersError):
    status_code = 401
    default_message = "Authentication required"


class AuthorizationError(DroppersError):
    status_code = 403
    default_message = "Insufficient permissions"


class NotFoundError(DroppersError):
    status_code = 404
    default_message = "Not found"


class InvalidTransition(DroppersError):
    status_code = 400
    default_message = "Invalid status transition"


class OrderAlreadyTaken(DroppersError):
    status_code = 409
    default_message = "Order already accepted by another delivery partner"


class InternalError(DroppersError):
    status_code = 500


def envelope(success: bool, message: str, data=None, error: str | None = None) -> dict:
    body = {"success": success, "message": message}
    if data is not None:
        body["data"] = data
    if error is not None:
        body["error"] = error
    return body


def _format_validation_error(err: dict) -> str:
    loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
    msg = err.get("msg", "Invalid value")
    # pydantic prefixes messages raised from validators
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return f"{loc}: {msg}" if loc else msg


async def droppers_error_handler(request: Request, exc: DroppersError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        if settings.is_production:
            return JSONResponse(status_code=exc.status_code, content=envelope(False, InternalError.default_message))
        return JSONResponse(
            status_code=exc.status_code,
            content=envelope(False, InternalError.default_message, error=exc.message),
        )
    return JSONResponse(status_code=exc.status_code, content=envelope(False, exc.message))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    messages = [_format_validation_error(e) for e in exc.errors()]
    return JSONResponse(
        status_code=400,
        content=envelope(False, messages[0] if messages else "Validation failed", error="; ".join(messages)),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 404 and message == "Not Found":
        message = f"Route {request.url.path} not found"
    return JSONResponse(status_code=exc.status_code, content=envelope(False, message), headers=exc.headers)


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=envelope(False, "Internal server error", error=None if settings.is_production else str(exc)),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DroppersError, droppers_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
