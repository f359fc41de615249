# Third-party imports
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import sentry_sdk

# Local application imports
from civicdesk.core.exceptions import CivicDeskError
from civicdesk.core.monitoring.logging import get_logger
from civicdesk.schemas.common import BaseResponse

logger = get_logger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    # Map specific HTTP status codes to custom error codes
    error_map = {
        400: "bad_request",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        413: "payload_too_large",
        415: "unsupported_media",
        422: "unprocessable_entity",
        429: "too_many_requests",
        500: "internal_server_error",
    }

    @app.exception_handler(CivicDeskError)
    async def civicdesk_exception_handler(
        request: Request,  # noqa
        exc: CivicDeskError,
    ) -> JSONResponse:
        response = BaseResponse.failure(code=exc.code, message=exc.message, details=exc.details)
        headers = {"WWW-Authenticate": "Bearer"} if exc.code == "unauthenticated" else None
        return JSONResponse(status_code=exc.status_code, content=response.model_dump(), headers=headers)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request,  # noqa
        exc: HTTPException,
    ) -> JSONResponse:
        error_code = error_map.get(exc.status_code, "error")
        detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        response = BaseResponse.failure(code=error_code, message=detail)
        return JSONResponse(status_code=exc.status_code, content=response.model_dump(), headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,  # noqa
        exc: RequestValidationError,
    ) -> JSONResponse:
        details: dict[str, str] = {}
        for error in exc.errors():
            message = error.get("msg", "")

            # Remove the "Value error, " prefix pydantic adds to custom validators
            val_error_prefix = "Value error, "
            if message.startswith(val_error_prefix):
                message = message[len(val_error_prefix) :]

            # ("query", "lat") -> "lat"
            location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "form")]
            details.setdefault(".".join(location) or "request", message)

        response = BaseResponse.failure(
            code="validation_failed",
            message="Invalid request data",
            details=details or None,
        )
        return JSONResponse(status_code=400, content=response.model_dump())

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc!r}")
        sentry_sdk.capture_exception(exc)
        response = BaseResponse.failure(
            code="internal_server_error",
            message="An unexpected error occurred. Please try again later.",
        )
        return JSONResponse(status_code=500, content=response.model_dump())
