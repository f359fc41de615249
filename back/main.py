# Standard library imports
from contextlib import asynccontextmanager

# Third-party imports
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from fastapi.staticfiles import StaticFiles
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sqlalchemy.ext.asyncio import AsyncSession

# Local application imports
from civicdesk.api import router as api_router
from civicdesk.api.internal.utils.exceptions import register_exception_handlers
from civicdesk.core.db import async_engine, run_with_new_session
from civicdesk.core.monitoring.logging import get_logger
from civicdesk.core.openapi.openapi import setup_openapi
from civicdesk.db_selectors.users import get_user_by_email
from civicdesk.models import Base
from civicdesk.models.auth.user import User, UserRole
from civicdesk.settings import settings

# Set up the main application logger
logger = get_logger("civicdesk")


if settings.ENVIRONMENT == "production" and settings.SENTRY_DSN:
    logger.info(f"Initializing Sentry in {settings.ENVIRONMENT} environment")
    # The logging integration may already be set up by core/monitoring/sentry.py
    sentry_client = sentry_sdk.get_client()
    if not sentry_client.is_active():
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            integrations=[FastApiIntegration()],
            environment="production",
            traces_sample_rate=1.0,
        )
    else:
        current_options = sentry_client.options
        integrations = list(current_options.get("integrations", []))
        if not any(isinstance(integration, FastApiIntegration) for integration in integrations):
            logger.info("Adding FastAPI integration to existing Sentry configuration")
            integrations.append(FastApiIntegration())
            sentry_sdk.init(
                dsn=current_options.get("dsn"),
                integrations=integrations,
                environment=current_options.get("environment", "production"),
                traces_sample_rate=current_options.get("traces_sample_rate", 1.0),
            )


async def create_default_admin_user(db: AsyncSession) -> User | None:
    """Seed the configured staff account so a fresh deployment can triage issues."""
    if not settings.ADMIN_EMAIL:
        return None

    existing = await get_user_by_email(db, settings.ADMIN_EMAIL)
    if existing:
        if existing.role != UserRole.ADMIN:
            logger.warning(f"Seed account {settings.ADMIN_EMAIL} exists with role {existing.role.value}")
        return existing

    admin = User(email=settings.ADMIN_EMAIL, name=settings.ADMIN_NAME, role=UserRole.ADMIN)
    db.add(admin)
    await db.commit()
    await db.refresh(admin)
    logger.info(f"Default admin user created: {admin.email}")
    return admin


def custom_generate_unique_id(route: APIRoute) -> str:
    if route.tags and len(route.tags) > 0:
        return f"{route.tags[0]}-{route.name}"
    else:
        return route.name or "unnamed_route"


@asynccontextmanager
async def lifespan(_: FastAPI):
    logger.info("Starting up Civic Desk API")

    # Production schema is managed by scripts/create_tables.py
    if settings.ENVIRONMENT != "production":
        async with async_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ensured")

    await run_with_new_session(create_default_admin_user)

    yield

    await async_engine.dispose()
    logger.info("Shutting down Civic Desk API")


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="Civic issue reporting and triage API",
        openapi_url=f"{settings.API_V1_STR}/openapi.json" if settings.ENVIRONMENT != "production" else None,
        docs_url=f"{settings.API_V1_STR}/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url=None,
        generate_unique_id_function=custom_generate_unique_id,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.all_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    setup_openapi(app)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "version": "1.0.0"}

    app.include_router(api_router)

    # Evidence files stored by the local backend
    if settings.MEDIA_STORAGE_BACKEND == "local":
        settings.MEDIA_ROOT.mkdir(parents=True, exist_ok=True)
        app.mount(settings.MEDIA_URL_PREFIX, StaticFiles(directory=settings.MEDIA_ROOT), name="uploads")

    return app


# Create the app instance
app = create_app()
