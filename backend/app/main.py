import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.auth.gate import SessionGateMiddleware
from app.core.auth.router import router as auth_router
from app.core.companies.hooks import LifecycleHooks, LoggingLifecycleHooks
from app.core.companies.router import router as companies_router
from app.core.errors import register_error_handlers
from app.settings import get_settings

settings = get_settings()


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(lifecycle_hooks: LifecycleHooks | None = None) -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="Avenping Admin API",
        version="0.1.0",
        docs_url="/docs" if settings.APP_DEBUG else None,
        redoc_url="/redoc" if settings.APP_DEBUG else None,
    )
    app.state.lifecycle_hooks = lifecycle_hooks or LoggingLifecycleHooks()

    app.add_middleware(
        SessionGateMiddleware,
        cookie_name=settings.SESSION_COOKIE_NAME,
        api_prefix=settings.API_PREFIX,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_DEBUG else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    app.include_router(auth_router, prefix=settings.API_PREFIX)
    app.include_router(companies_router, prefix=settings.API_PREFIX)

    @app.get("/")
    async def root():
        return {"status": "ok"}

    return app


app = create_app()
