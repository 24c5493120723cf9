"""Render unexpected exceptions as the generic 500 body.

Sits inside the CORS and security-header middleware, so those headers apply
to the 500 response too.
"""
import logging

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.errors import ApiError

logger = logging.getLogger(__name__)


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            err = ApiError()
            return JSONResponse(status_code=err.status_code, content=err.payload())
