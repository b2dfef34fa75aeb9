import logging
import os
from typing import Any, List, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from telehealth.middleware.tracing import TRACE_ID_CTX_VAR

logger = logging.getLogger("telehealth")


def status_to_code(status_code: int) -> str:
    mapping = {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        422: "UNPROCESSABLE_ENTITY",
        429: "TOO_MANY_REQUESTS",
        500: "INTERNAL_SERVER_ERROR",
    }
    return mapping.get(status_code, f"HTTP_{status_code}")


# ---- Domain errors ----

class AppError(Exception):
    """Base class for errors the request boundary maps onto an HTTP status."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: Optional[str] = None

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(AppError):
    # Duplicate unique fields are reported as a plain 400, with their own code
    status_code = status.HTTP_400_BAD_REQUEST
    code = "CONFLICT"


def field_error(field: str, message: str) -> ValidationError:
    return ValidationError(message, details=[{"field": field, "message": message}])


# ---- Envelope ----

def is_production() -> bool:
    return (os.getenv("APP_ENV", "development") or "").strip().lower() == "production"


def error_body(status_code: int, message: str, details: Any = None, code: Optional[str] = None) -> dict:
    body = {
        "code": code or status_to_code(status_code),
        "message": message,
        "trace_id": TRACE_ID_CTX_VAR.get(),
    }
    if details is not None:
        body["details"] = details
    return body


def _field_messages(errors: List[dict]) -> List[dict]:
    out = []
    for err in errors:
        # Drop the leading "body"/"query"/"path" segment
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        out.append({"field": ".".join(loc) or "body", "message": err.get("msg", "Invalid value")})
    return out


async def handle_app_error(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, exc.message, exc.details, exc.code),
    )


async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    detail: Any = exc.detail
    message = detail if isinstance(detail, str) else "HTTP error"
    body = error_body(exc.status_code, message, None if isinstance(detail, str) else detail)
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


async def handle_request_validation(request: Request, exc: RequestValidationError):
    details = _field_messages(exc.errors())
    message = "; ".join(f"{d['field']}: {d['message']}" for d in details) or "Validation failed"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(status.HTTP_400_BAD_REQUEST, message, details),
    )


async def handle_integrity_error(request: Request, exc: IntegrityError):
    text = str(getattr(exc, "orig", exc)).lower()
    field = "email" if "email" in text else None
    message = f"{field} already exists" if field else "Duplicate value"
    logger.info({"function": "handle_integrity_error", "field": field or "unknown"})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(status.HTTP_400_BAD_REQUEST, message, code="CONFLICT"),
    )


async def handle_unhandled_exception(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    body = error_body(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Something went wrong" if is_production() else str(exc) or exc.__class__.__name__,
    )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)


def register_exception_handlers(app) -> None:
    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(IntegrityError, handle_integrity_error)
    app.add_exception_handler(Exception, handle_unhandled_exception)
