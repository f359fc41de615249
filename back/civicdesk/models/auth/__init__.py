# Local application imports
from civicdesk.models.auth.user import User, UserRole

__all__ = ["User", "UserRole"]
