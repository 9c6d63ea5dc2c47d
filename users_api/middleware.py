"""Request interceptors wrapped around every call to the users API.

Each interceptor implements ``dispatch(request, call_next)`` and either
answers the request itself or delegates to ``call_next``. The chain built by
:func:`build_middleware_chain` is, from the outside in:

1. :class:`ErrorContainmentMiddleware`
2. :class:`BearerAuthMiddleware`
3. :class:`RequestLoggingMiddleware`
"""

from __future__ import annotations

import logging
import time
from typing import Iterable, List, Sequence, Tuple

from fastapi import status
from fastapi.responses import JSONResponse
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from .security import TokenAllowList, mask_token, parse_bearer_header

error_logger = logging.getLogger("users_api.errors")
auth_logger = logging.getLogger("users_api.auth")
request_logger = logging.getLogger("users_api.requests")

CALLER_TOKEN_ATTRIBUTE = "caller_token"


def _error_response(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def _path_with_query(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


class ErrorContainmentMiddleware(BaseHTTPMiddleware):
    """Turn exceptions escaping the inner chain into a generic 500 response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception:
            error_logger.exception("Unhandled exception caught by middleware")
            return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error.")


class BearerAuthMiddleware(BaseHTTPMiddleware):
    """Require a listed bearer token on every request.

    In development mode requests whose path starts with one of
    ``exempt_prefixes`` are let through without credentials.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        tokens: TokenAllowList,
        development: bool = False,
        exempt_prefixes: Iterable[str] = (),
    ) -> None:
        super().__init__(app)
        self._tokens = tokens
        self._development = development
        self._exempt_prefixes: Tuple[str, ...] = tuple(exempt_prefixes)

    def is_exempt(self, path: str) -> bool:
        return self._development and any(path.startswith(prefix) for prefix in self._exempt_prefixes)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if self.is_exempt(request.url.path):
            return await call_next(request)

        token = parse_bearer_header(request.headers.get("authorization"))
        if token is None or token not in self._tokens:
            auth_logger.warning(
                "Rejected %s %s caller=%s",
                request.method,
                _path_with_query(request),
                mask_token(token),
            )
            return _error_response(
                status.HTTP_401_UNAUTHORIZED,
                "Unauthorized",
                headers={"WWW-Authenticate": "Bearer"},
            )

        setattr(request.state, CALLER_TOKEN_ATTRIBUTE, token)
        return await call_next(request)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status, timing and the masked caller of each request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        method = request.method
        path = _path_with_query(request)
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            elapsed_ms = int((time.perf_counter() - started) * 1000)
            caller = getattr(request.state, CALLER_TOKEN_ATTRIBUTE, None)
            request_logger.info(
                "%s %s responded %s in %sms caller=%s",
                method,
                path,
                status_code,
                elapsed_ms,
                mask_token(caller),
            )


def build_middleware_chain(
    tokens: TokenAllowList,
    *,
    development: bool = False,
    exempt_prefixes: Sequence[str] = (),
) -> List[Middleware]:
    """Return the interceptors in order, outermost first."""

    return [
        Middleware(ErrorContainmentMiddleware),
        Middleware(
            BearerAuthMiddleware,
            tokens=tokens,
            development=development,
            exempt_prefixes=exempt_prefixes,
        ),
        Middleware(RequestLoggingMiddleware),
    ]


__all__ = [
    "BearerAuthMiddleware",
    "CALLER_TOKEN_ATTRIBUTE",
    "ErrorContainmentMiddleware",
    "RequestLoggingMiddleware",
    "build_middleware_chain",
]
