import logging
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, get_settings
from .credentials import CredentialStore, build_password_context
from .database import Database
from .errors import ConfigurationError, InternalFailure, ReminderHubError
from .policy import AccessPolicy
from .routes import auth as auth_routes
from .routes import groups as groups_routes
from .routes import reminders as reminders_routes
from .tokens import TokenService

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _check_secret(settings: Settings) -> None:
    if not settings.uses_dev_secret:
        return
    if settings.require_explicit_secret:
        raise ConfigurationError(
            "JWT_SECRET is unset; refusing to start with the development signing secret."
        )
    logger.warning("JWT_SECRET is unset; tokens are signed with the insecure development secret.")


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = ".".join(str(p) for p in error["loc"] if p != "body")
        parts.append(f"{loc}: {error['msg']}" if loc else error["msg"])
    return "; ".join(parts)


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    _check_secret(settings)

    app = FastAPI(title=settings.app_name)
    app.state.settings = settings
    app.state.db = database or Database.from_url(settings.database_url, echo=settings.database_echo)
    app.state.credentials = CredentialStore(build_password_context(settings.bcrypt_rounds))
    app.state.tokens = TokenService(
        settings.jwt_secret,
        ttl=timedelta(days=settings.token_ttl_days),
        algorithm=settings.jwt_algorithm,
    )
    app.state.policy = AccessPolicy(enforce_ownership=settings.enforce_ownership)
    if settings.enforce_ownership:
        logger.info("Ownership enforcement enabled: only creators may delete or modify entities.")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "Content-Type", "Authorization"],
        expose_headers=["Content-Length"],
    )

    @app.on_event("startup")
    def on_startup() -> None:
        app.state.db.create_schema()
        logger.info("Database schema ready")

    @app.on_event("shutdown")
    def on_shutdown() -> None:
        app.state.db.dispose()

    @app.exception_handler(ReminderHubError)
    async def domain_error_handler(request: Request, exc: ReminderHubError):
        if isinstance(exc, InternalFailure):
            logger.error(
                "Internal failure on %s %s: %s",
                request.method,
                request.url.path,
                exc,
                exc_info=exc.__cause__ or exc,
            )
            return JSONResponse({"error": InternalFailure.detail}, status_code=exc.status_code)
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            {"error": _format_validation_errors(exc)},
            status_code=400,
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Database error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse({"error": InternalFailure.detail}, status_code=500)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled application error", exc_info=exc)
        return JSONResponse({"error": InternalFailure.detail}, status_code=500)

    @app.get("/health", tags=["health"])
    def health():
        return {"status": "healthy"}

    app.include_router(auth_routes.router)
    app.include_router(groups_routes.router)
    app.include_router(reminders_routes.router)
    return app


app = create_app()
