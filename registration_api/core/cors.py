"""Fixed CORS policy for the public registration endpoints.

The registration page is served from a different origin, so these endpoints
answer every preflight with ``200`` and the same fixed headers, whatever
the state of the backend, and attach those headers to every response
(errors included).
"""

from __future__ import annotations

from fastapi import Request, Response

from registration_api.core.config import settings

CORS_PATHS = frozenset({"/register", "/registrations", "/send-confirmation"})

ALLOWED_METHODS = "POST,OPTIONS"
ALLOWED_HEADERS = (
    "X-CSRF-Token, X-Requested-With, Accept, Accept-Version, Content-Length, "
    "Content-MD5, Content-Type, Date, X-Api-Version"
)


def is_cors_path(path: str) -> bool:
    return path.rstrip("/") in CORS_PATHS


def cors_headers() -> dict[str, str]:
    return {
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Origin": settings.app.cors_allow_origin,
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
    }


async def cors_middleware(request: Request, call_next) -> Response:
    """Answer preflights directly and decorate responses with CORS headers.

    ``OPTIONS`` on a registration endpoint never reaches the router or any
    dependency, so it succeeds even when the backend is misconfigured.
    """

    if not is_cors_path(request.url.path):
        return await call_next(request)

    if request.method == "OPTIONS":
        return Response(status_code=200, headers=cors_headers())

    response: Response = await call_next(request)
    for name, value in cors_headers().items():
        response.headers[name] = value
    return response
