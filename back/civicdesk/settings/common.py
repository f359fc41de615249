# Standard library imports
from pathlib import Path
import secrets
from typing import Annotated, Any, Literal

# Third-party imports
from pydantic import AnyUrl, BeforeValidator, computed_field
from pydantic_core import MultiHostUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR: Path = Path(__file__).resolve().parent.parent


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",")]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class CommonSettings(BaseSettings):
    model_config = SettingsConfigDict(
        # Use top level .env file (one level above ./back/)
        env_file="../.env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # General settings
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str = secrets.token_urlsafe(32)
    ENVIRONMENT: Literal["dev", "staging", "production"] = "dev"
    DEBUG_MODE: bool = False
    SQL_ECHO: bool = False
    PROJECT_NAME: str = "Civic Desk"
    BACKEND_BASE_URL: str = "http://localhost:8000"

    # Database settings
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "civicdesk"

    # Full async URL override, e.g. sqlite+aiosqlite:///./civicdesk.db for local runs
    DATABASE_URL: str | None = None

    @computed_field  # type: ignore[prop-decorator, misc]
    @property
    def SQLALCHEMY_ASYNC_DATABASE_URI(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return str(
            MultiHostUrl.build(
                scheme="postgresql+asyncpg",  # async driver for async queries
                username=self.POSTGRES_USER,
                password=self.POSTGRES_PASSWORD,
                host=self.POSTGRES_SERVER,
                port=self.POSTGRES_PORT,
                path=self.POSTGRES_DB,
            )
        )

    # CORS settings
    BACKEND_CORS_ORIGINS: Annotated[list[AnyUrl] | str, BeforeValidator(parse_cors)] = [
        AnyUrl("http://localhost:3000/"),
        AnyUrl("http://localhost:5173/"),
        AnyUrl("http://127.0.0.1:5173/"),
    ]

    @computed_field  # type: ignore[prop-decorator, misc]
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    # Optional settings
    SENTRY_DSN: str | None = None

    # Staff account seeded at start-up when set; other accounts come from the account service
    ADMIN_EMAIL: str | None = None
    ADMIN_NAME: str = "Administrator"

    # JWT settings
    JWT_ALGORITHM: str = "HS256"
    JWT_SECRET_KEY: str = secrets.token_urlsafe(32)
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 1

    # Media storage settings
    MEDIA_STORAGE_BACKEND: Literal["local", "s3"] = "local"
    MEDIA_ROOT: Path = BASE_DIR.parent / "uploads"
    MEDIA_URL_PREFIX: str = "/uploads"

    # S3 settings (only read when MEDIA_STORAGE_BACKEND == "s3")
    S3_URL: str | None = None
    S3_ACCESS_KEY_ID: str | None = None
    S3_SECRET_ACCESS_KEY: str | None = None
    S3_SECURE: bool = False
    S3_PUBLIC_BUCKET_NAME: str = "civicdesk-public"

    # Accepted evidence formats
    ALLOWED_IMAGE_TYPES: list[str] = [
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
    ]
    ALLOWED_VIDEO_TYPES: list[str] = [
        "video/mp4",
        "video/webm",
        "video/quicktime",
        "video/x-msvideo",
        "video/x-ms-wmv",
    ]
    MAX_IMAGE_SIZE: int = 10 * 1024 * 1024  # 10 MB
    MAX_VIDEO_SIZE: int = 50 * 1024 * 1024  # 50 MB
    MAX_MEDIA_FILES: int = 10

    # Map settings
    DEFAULT_PROXIMITY_RADIUS_M: int = 10_000
