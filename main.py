import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from auth_utils import make_password_context
from config import Settings, load_settings
from database import init_db, make_engine, make_session_factory
from errors import register_error_handlers
from logging_setup import setup_logging
from token_service import TokenService

# Routers
from routers.auth import router as auth_router
from routers.tasks import router as tasks_router

logger = logging.getLogger(__name__)


# Custom Middleware for Security Headers
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["Content-Security-Policy"] = "default-src 'self'"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        return response


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level, settings.log_file)
        if settings.uses_default_secret:
            logger.warning("JWT_SECRET is not set, using the development default. Do not run like this in production!")
        init_db(app.state.engine)
        logger.info("Task Tracker API started")
        yield
        app.state.engine.dispose()

    app = FastAPI(title="Task Tracker API", lifespan=lifespan)

    # Einmal beim Start gebaut, danach nur über app.state verwendet
    app.state.settings = settings
    app.state.engine = make_engine(settings.database_url)
    app.state.session_factory = make_session_factory(app.state.engine)
    app.state.pwd_context = make_password_context(settings.bcrypt_rounds)
    app.state.token_service = TokenService(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        ttl=timedelta(days=settings.token_ttl_days),
    )

    register_error_handlers(app)

    app.add_middleware(SecurityHeadersMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_middleware(
        TrustedHostMiddleware,
        # Strict Host Header Validation
        allowed_hosts=settings.allowed_hosts
    )

    # Include Routers
    app.include_router(auth_router)
    app.include_router(tasks_router)

    @app.get("/")
    def root():
        return {"message": "Task Tracker API is running"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=app.state.settings.port, reload=True)
