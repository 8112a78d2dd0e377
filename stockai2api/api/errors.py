"""Exception handlers rendering the gateway's uniform error envelope."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..core.exceptions import ProxyError
from ..middleware import CORS_HEADERS

logger = logging.getLogger("stockai2api")


def internal_error_response(message: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse(
        {"error": {"message": message, "type": "internal_error"}},
        status_code=status_code,
        headers=CORS_HEADERS,
    )


async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
    """Invalid input and upstream failures both surface as 500s."""
    logger.error(f"[Server Error] {exc.message}")
    return internal_error_response(exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code in (404, 405):
        return JSONResponse({"error": "Not Found"}, status_code=404, headers=CORS_HEADERS)
    return internal_error_response(str(exc.detail), status_code=exc.status_code)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    message = str(exc) or exc.__class__.__name__
    logger.exception(f"[Server Error] {message}")
    return internal_error_response(message)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProxyError, proxy_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
