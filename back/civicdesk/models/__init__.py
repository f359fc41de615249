"""
Database models package.

This package contains all SQLAlchemy models for the application.
"""

# Local application imports
from civicdesk.models.auth import User, UserRole
from civicdesk.models.base import Base
from civicdesk.models.issues import Issue, IssueAttachment, IssueComment

__all__ = [
    "Base",
    # Identity
    "User",
    "UserRole",
    # Issue store
    "Issue",
    "IssueAttachment",
    "IssueComment",
]
