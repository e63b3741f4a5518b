import uuid
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from app.settings import get_settings

settings = get_settings()


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def create_session_token(admin_id: uuid.UUID, email: str, role: str) -> str:
    now = datetime.now(timezone.utc)
    expires = now + timedelta(hours=settings.SESSION_EXPIRE_HOURS)
    payload = {"sub": str(admin_id), "email": email, "role": role, "type": "session", "iat": now, "exp": expires}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_session_token(token: str) -> dict:
    payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    if payload.get("type") != "session":
        raise JWTError("Wrong token type")
    return payload
