import logging

from fastapi import Request
from fastapi.responses import RedirectResponse
from jose import JWTError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.core.auth.security import decode_session_token

logger = logging.getLogger(__name__)


class SessionGateMiddleware(BaseHTTPMiddleware):
    """Redirect to ``/`` unless the request carries a valid session cookie.

    The root path and everything under the API prefix pass through; API routes
    check the session themselves.
    """

    def __init__(self, app: ASGIApp, cookie_name: str, api_prefix: str):
        super().__init__(app)
        self.cookie_name = cookie_name
        self.api_prefix = api_prefix.rstrip("/") + "/"

    def is_public(self, path: str) -> bool:
        return path == "/" or path.startswith(self.api_prefix)

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if self.is_public(path):
            return await call_next(request)

        token = request.cookies.get(self.cookie_name)
        if not token:
            return RedirectResponse("/", status_code=307)
        try:
            decode_session_token(token)
        except JWTError:
            logger.warning("Session token rejected on %s", path)
            return RedirectResponse("/", status_code=307)
        return await call_next(request)
