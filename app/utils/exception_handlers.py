from typing import cast

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, Response
from loguru import logger

from app.core.errors import LinkedInAuthError
from app.schemas.common import APIResponse
from app.utils.html import render_error_fragment


def linkedin_auth_exception_handler(request: Request, exc: Exception) -> Response:
    exc = cast(LinkedInAuthError, exc)
    logger.warning(f"LinkedIn auth rejected on {request.url.path}: {exc.kind} ({exc.status_code})")
    if request.url.path.startswith("/api/"):
        response = APIResponse(status="error", message=exc.message, code=str(exc.kind))
        return JSONResponse(status_code=exc.status_code, content=response.model_dump())
    return HTMLResponse(render_error_fragment(exc.message), status_code=exc.status_code)


def http_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    exc = cast(HTTPException, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content=APIResponse(status="error", message=exc.detail).model_dump(),
        headers=exc.headers,
    )


def validation_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    exc = cast(RequestValidationError, exc)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=APIResponse(
            status="error",
            message="Validation error",
            data=[
                {"loc": err["loc"], "msg": err["msg"], "type": err["type"]} for err in exc.errors()
            ],
        ).model_dump(),
    )


def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(f"Unhandled error on {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=APIResponse(status="error", message="Internal server error").model_dump(),
    )
