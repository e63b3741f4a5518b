from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import service as auth_service
from app.core.auth.schemas import AdminRead, SessionUser, SignInRequest, SignInResponse, SignOutResponse
from app.core.auth.models import AdminUser
from app.dependencies import get_current_admin, get_db
from app.settings import get_settings

settings = get_settings()

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signin", response_model=SignInResponse)
async def signin(body: SignInRequest, response: Response, db: AsyncSession = Depends(get_db)):
    result = await auth_service.sign_in(db, body.email, body.password)
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        result.token,
        max_age=settings.SESSION_EXPIRE_HOURS * 60 * 60,
        path="/",
        httponly=True,
        secure=settings.APP_ENV == "production",
        samesite="strict",
    )
    admin = result.admin
    return SignInResponse(user=SessionUser(email=admin.email, role=admin.role, name=admin.full_name or admin.email))


@router.post("/signout", response_model=SignOutResponse)
async def signout(response: Response):
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return SignOutResponse()


@router.get("/me", response_model=AdminRead)
async def me(admin: AdminUser = Depends(get_current_admin)):
    return admin
