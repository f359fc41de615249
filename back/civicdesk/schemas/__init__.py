"""
Pydantic schemas package.

This package contains all Pydantic schemas for request/response
validation and serialization.
"""

# Local application imports
from civicdesk.schemas.common import BaseResponse
from civicdesk.schemas.issues import (
    CommentCreate,
    IssueCreate,
    IssueMapItem,
    IssueResponse,
    IssueStats,
    IssueUpdate,
)

__all__ = [
    "BaseResponse",
    # Issue schemas
    "CommentCreate",
    "IssueCreate",
    "IssueMapItem",
    "IssueResponse",
    "IssueStats",
    "IssueUpdate",
]
