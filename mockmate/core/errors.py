from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class MockMateError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequestError(MockMateError):
    status_code = status.HTTP_400_BAD_REQUEST


class SessionNotFoundError(InvalidRequestError):
    def __init__(self, message: str = "Invalid sessionId"):
        super().__init__(message)


class AIUnavailableError(MockMateError):
    """The model provider is missing, unreachable or kept failing."""


class NoWorkingModelError(AIUnavailableError):
    pass


class ModelOutputError(MockMateError):
    """The model answered, but not with the JSON shape the route needs."""


def error_payload(message: str) -> dict[str, str]:
    return {"error": message}


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part not in {"body", "query", "path"}]
    message = str(first.get("msg") or "Invalid value")
    if location:
        return f"{'.'.join(location)}: {message}"
    return message


async def _mockmate_error_handler(request: Request, exc: MockMateError) -> JSONResponse:
    _ = request
    return JSONResponse(status_code=exc.status_code, content=error_payload(exc.message))


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    _ = request
    return JSONResponse(
        status_code=exc.status_code,
        content=error_payload(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    _ = request
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_payload(_validation_message(exc)),
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error path=%s", request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_payload("Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MockMateError, _mockmate_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
