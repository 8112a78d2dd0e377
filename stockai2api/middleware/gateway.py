"""HTTP middleware: CORS preflight, master-key check and CORS response headers."""

import logging
from typing import Awaitable, Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse

logger = logging.getLogger("stockai2api")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def unauthorized_response() -> JSONResponse:
    return JSONResponse(
        {"error": {"message": "Unauthorized", "code": 401}},
        status_code=401,
        headers=CORS_HEADERS,
    )


async def gateway_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Runs before routing, so unknown paths are also behind the key check."""
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=CORS_HEADERS)

    validator = request.app.state.auth
    if not validator.is_authorized(request.headers.get("Authorization")):
        logger.warning(
            "Request rejected: invalid or missing API key (%s %s)",
            request.method,
            request.url.path,
        )
        return unauthorized_response()

    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response
