# Standard library imports
from uuid import UUID

# Third-party imports
from pydantic import BaseModel, ConfigDict

# Local application imports
from civicdesk.models.auth.user import User, UserRole


class Caller(BaseModel):
    """Authenticated identity handed explicitly to every issue operation."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    role: UserRole
    name: str | None = None

    @classmethod
    def from_user(cls, user: User) -> "Caller":
        return cls(id=user.id, role=user.role, name=user.name)
