import uuid
from typing import Annotated, AsyncGenerator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth.models import AdminUser
from app.core.auth.security import decode_session_token
from app.core.auth.service import get_admin
from app.core.companies.hooks import LifecycleHooks
from app.core.errors import AuthenticationError
from app.db.session import AsyncSessionLocal
from app.settings import get_settings

settings = get_settings()

bearer = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    # Writers commit inside the request; whatever is left uncommitted rolls back on close
    async with AsyncSessionLocal() as session:
        yield session


async def get_current_admin(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer)],
    db: AsyncSession = Depends(get_db),
) -> AdminUser:
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token and credentials:
        token = credentials.credentials
    if not token:
        raise AuthenticationError("Not authenticated")
    try:
        payload = decode_session_token(token)
        admin_id = uuid.UUID(payload["sub"])
    except (JWTError, KeyError, ValueError):
        raise AuthenticationError("Invalid token")

    admin = await get_admin(db, admin_id)
    if not admin or admin.status != "active":
        raise AuthenticationError("Admin not found or inactive")
    return admin


def get_lifecycle_hooks(request: Request) -> LifecycleHooks:
    return request.app.state.lifecycle_hooks
