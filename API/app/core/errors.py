from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NeoLearnError(Exception):
    """Base class for errors raised by the quiz and content pipeline."""


class GenerationFailure(NeoLearnError):
    """Question or content generation failed: provider unreachable, non-2xx, timeout or unparseable body."""


class EvaluationFailure(NeoLearnError):
    """Answer evaluation could not be parsed. Always converted into the fallback evaluation."""


class InvalidTransition(NeoLearnError):
    """A quiz session operation was invoked in a state that does not allow it."""


@dataclass(frozen=True)
class PersistenceWarning:
    operation: str
    message: str


@dataclass(frozen=True)
class PersistenceResult(Generic[T]):
    """Outcome of a stored-procedure call: either a value or a warning, never an exception."""

    value: T | None = None
    warning: PersistenceWarning | None = None

    @property
    def ok(self) -> bool:
        return self.warning is None

    @classmethod
    def success(cls, value: T | None = None) -> "PersistenceResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, operation: str, message: str) -> "PersistenceResult[T]":
        return cls(warning=PersistenceWarning(operation=operation, message=message))


def get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def error_response(
    request: Request,
    *,
    code: str,
    message: str,
    status_code: int,
    details: Any = None,
) -> JSONResponse:
    payload = {
        "success": False,
        "error": message,
        "code": code,
        "request_id": get_request_id(request),
    }
    if details is not None:
        payload["details"] = details
    return JSONResponse(status_code=status_code, content=payload)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(
        request,
        code="http_error",
        message=str(exc.detail),
        status_code=exc.status_code,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(
        request,
        code="validation_error",
        message="Request validation failed",
        status_code=422,
        details=jsonable_errors(exc.errors()),
    )


async def generation_failure_handler(request: Request, exc: GenerationFailure):
    logger.warning("Generation failed | request_id=%s | %s", get_request_id(request), exc)
    return error_response(
        request,
        code="generation_failure",
        message=str(exc) or "Generation failed",
        status_code=502,
    )


async def invalid_transition_handler(request: Request, exc: InvalidTransition):
    return error_response(
        request,
        code="invalid_transition",
        message=str(exc),
        status_code=409,
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception | request_id=%s", get_request_id(request), exc_info=exc)
    return error_response(
        request,
        code="internal_error",
        message="Internal server error",
        status_code=500,
    )


def jsonable_errors(errors) -> list[dict]:
    # pydantic v2 puts the raw exception under ctx["error"]; it is not JSON serialisable.
    cleaned = []
    for err in errors or []:
        item = dict(err)
        ctx = item.get("ctx")
        if isinstance(ctx, dict):
            item["ctx"] = {key: str(value) for key, value in ctx.items()}
        item.pop("url", None)
        cleaned.append(item)
    return cleaned


async def request_id_middleware(request: Request, call_next):
    incoming = request.headers.get("x-request-id")
    request.state.request_id = incoming or str(uuid.uuid4())
    response = await call_next(request)
    response.headers["x-request-id"] = request.state.request_id
    return response
