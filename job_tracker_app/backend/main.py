from dotenv import load_dotenv

load_dotenv()

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.sessions import SessionMiddleware

from .api import application, auth, health
from .config.settings import Settings, get_settings
from .models.db.database import Base, build_engine, build_session_factory
from .models.db import user as user_model  # noqa: F401  registers the users table
from .models.db import application as application_model  # noqa: F401  registers the applications table
from .security import TokenService
from .services.oauth import GoogleOAuthClient
from .utils.api_helpers import register_exception_handlers
from .utils.logging_config import setup_logging, get_logger

logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API with every component constructed from one settings object."""
    settings = settings or get_settings()

    setup_logging(settings)

    # Validate configuration on startup
    missing_settings = settings.validate_required_settings()
    if missing_settings:
        for setting in missing_settings:
            logger.error("Configuration error: %s", setting)
        if settings.is_production():
            raise RuntimeError("Invalid configuration for production environment")

    engine = build_engine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting %s...", settings.app_name)
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            Base.metadata.create_all(bind=engine)
        except SQLAlchemyError as e:
            logger.critical("Cannot reach the application store: %s", e)
            raise
        logger.info("Database tables initialized successfully")
        yield
        logger.info("Shutting down...")
        engine.dispose()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url="/docs" if settings.api_docs_enabled else None,
        redoc_url="/redoc" if settings.api_docs_enabled else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.token_service = TokenService(settings)
    app.state.oauth_client = GoogleOAuthClient(settings)

    # Carries the OAuth state value between /google and /google/callback
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret_key,
        session_cookie="job_tracker_session",
        max_age=settings.session_max_age_seconds,
        same_site=settings.cookie_samesite,
        https_only=settings.cookie_secure(),
    )

    if settings.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app, settings)

    # Routers
    app.include_router(health.router, prefix="/api", tags=["Health Check"])
    app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
    app.include_router(application.router, prefix="/api/applications", tags=["Application Tracker"])

    @app.get("/")
    def read_root():
        return {"message": f"{settings.app_name} API is running"}

    return app


app = create_app()
