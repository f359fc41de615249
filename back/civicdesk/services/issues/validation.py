# Standard library imports
from collections.abc import Mapping
from typing import Any, TypeVar

# Third-party imports
from pydantic import BaseModel, ValidationError

# Local application imports
from civicdesk.core.exceptions import ValidationFailed

ModelT = TypeVar("ModelT", bound=BaseModel)


def validation_details(exc: ValidationError) -> dict[str, str]:
    """Flatten pydantic errors into ``{field: reason}``, first error per field."""
    details: dict[str, str] = {}
    for error in exc.errors():
        message = error.get("msg", "")
        val_error_prefix = "Value error, "
        if message.startswith(val_error_prefix):
            message = message[len(val_error_prefix) :]

        field = ".".join(str(part) for part in error.get("loc", ())) or "request"
        details.setdefault(field, message)
    return details


def parse_or_fail(model: type[ModelT], data: Mapping[str, Any]) -> ModelT:
    try:
        return model.model_validate(dict(data))
    except ValidationError as exc:
        raise ValidationFailed(details=validation_details(exc)) from exc
