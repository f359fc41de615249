# Standard library imports
import enum

# Third-party imports
from sqlalchemy import Enum as SQLEnum, String
from sqlalchemy.orm import Mapped, mapped_column

# Local application imports
from civicdesk.models.base import Base
from civicdesk.models.mixins.uuid_timestamp import UUIDTimeStampMixin


class UserRole(str, enum.Enum):
    CITIZEN = "citizen"
    OFFICIAL = "official"
    ADMIN = "admin"


class User(UUIDTimeStampMixin, Base):
    """Identity record referenced by issues.

    Registration, passwords and profile management belong to the separate
    account service; this table only carries what issue handling needs.
    """

    __tablename__ = "user"

    email: Mapped[str] = mapped_column(
        String,
        index=True,
        unique=True,
        nullable=False,
        comment="User's email (acts as username)",
    )
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole), default=UserRole.CITIZEN, nullable=False, index=True
    )

    @property
    def is_staff(self) -> bool:
        return self.role in (UserRole.OFFICIAL, UserRole.ADMIN)

    def __str__(self) -> str:
        return f"User: {self.name} - {self.email} ({self.role.value})"
