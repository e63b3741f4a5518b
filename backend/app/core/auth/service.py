import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth.models import AdminUser
from app.core.auth.security import create_session_token, verify_password
from app.core.errors import AuthenticationError, ValidationError

logger = logging.getLogger(__name__)


class SessionResult:
    def __init__(self, admin: AdminUser, token: str):
        self.admin = admin
        self.token = token


async def get_admin_by_email(db: AsyncSession, email: str) -> AdminUser | None:
    result = await db.execute(
        select(AdminUser).where(AdminUser.email == email.strip().lower(), AdminUser.is_deleted == False)
    )
    return result.scalar_one_or_none()


async def get_admin(db: AsyncSession, admin_id: uuid.UUID) -> AdminUser | None:
    result = await db.execute(select(AdminUser).where(AdminUser.id == admin_id, AdminUser.is_deleted == False))
    return result.scalar_one_or_none()


async def sign_in(db: AsyncSession, email: str | None, password: str | None) -> SessionResult:
    if not email or not password:
        raise ValidationError("Email and password are required")

    admin = await get_admin_by_email(db, email)
    if not admin or admin.status != "active" or not verify_password(password, admin.hashed_password):
        logger.warning("Rejected sign-in for %s", email)
        raise AuthenticationError("Invalid credentials")

    token = create_session_token(admin.id, admin.email, admin.role)
    logger.info("Admin %s signed in", admin.email)
    return SessionResult(admin=admin, token=token)
