"""
Cross-origin headers applied to every response
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from config.settings import ALLOWED_ORIGINS, ALLOWED_METHODS, ALLOWED_HEADERS

CORS_HEADERS = {
    "Access-Control-Allow-Origin": ", ".join(ALLOWED_ORIGINS),
    "Access-Control-Allow-Methods": ", ".join(ALLOWED_METHODS),
    "Access-Control-Allow-Headers": ", ".join(ALLOWED_HEADERS),
}


class CORSHeadersMiddleware(BaseHTTPMiddleware):
    """
    Attach permissive CORS headers to all responses

    Starlette's CORSMiddleware only decorates requests that carry an Origin
    header; this keeps the headers on every response, including same-origin
    and non-browser clients. Preflight requests are still answered by
    CORSMiddleware. Responses for unhandled exceptions are built outside
    the middleware stack and set CORS_HEADERS themselves.
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response
