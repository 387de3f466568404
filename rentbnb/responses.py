import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from .exceptions import RentBnBError

logger = logging.getLogger("rentbnb")


def build_response(
    status_code: int,
    success: bool,
    data: Any = None,
    error: str | None = None,
    details: list[dict] | None = None,
    headers: dict | None = None,
) -> JSONResponse:
    """
    Wraps a payload in the { success, data?, error? } envelope.
    Keys whose value is None are left out.
    """
    content: dict[str, Any] = {"success": success}

    if data is not None:
        if isinstance(data, BaseModel):
            content["data"] = data.model_dump(mode="json")
        elif isinstance(data, list) and all(isinstance(item, BaseModel) for item in data):
            content["data"] = [item.model_dump(mode="json") for item in data]
        else:
            content["data"] = jsonable_encoder(data)

    if error is not None:
        content["error"] = error

    if details:
        content["details"] = details

    return JSONResponse(content=content, status_code=status_code, headers=headers)


def success_response(data: Any = None, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return build_response(status_code, True, data=data)


def created_response(data: Any = None) -> JSONResponse:
    return build_response(status.HTTP_201_CREATED, True, data=data)


def error_response(status_code: int, error: str, details: list[dict] | None = None, headers: dict | None = None):
    return build_response(status_code, False, error=error, details=details, headers=headers)


# --- Exception handlers ---

async def rentbnb_error_handler(request: Request, exc: RentBnBError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return error_response(exc.status_code, exc.message, details=exc.details)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return error_response(422, "Validation failed", details=details)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RentBnBError, rentbnb_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
