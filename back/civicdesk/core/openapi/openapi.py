# Standard library imports
from typing import Any

# Third-party imports
from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

# Local application imports
from civicdesk.settings import settings

# API paths that don't require authentication
PUBLIC_PATHS = {
    f"{settings.API_V1_STR}/issues/map",
    "/health",
}


def is_path_public(path: str) -> bool:
    """
    Check if a path should be public (no authentication required)
    """
    if path in PUBLIC_PATHS:
        return True

    # Wildcard entries end with *
    for public_path in PUBLIC_PATHS:
        if public_path.endswith("*") and path.startswith(public_path[:-1]):
            return True

    return False


def custom_openapi(app: FastAPI) -> dict[str, Any]:
    """
    Add bearer security to every operation except the public ones
    """
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description=f"{settings.PROJECT_NAME} API Documentation",
        routes=app.routes,
    )

    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "bearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }

    for path, path_item in openapi_schema.get("paths", {}).items():
        for method, operation in path_item.items():
            # Skip non-operation keys like 'parameters'
            if method not in ["get", "post", "put", "delete", "patch"]:
                continue
            if not is_path_public(path):
                operation["security"] = [{"bearerAuth": []}]

    app.openapi_schema = openapi_schema
    return app.openapi_schema


def setup_openapi(app: FastAPI) -> None:
    app.openapi = lambda: custom_openapi(app)  # type: ignore
