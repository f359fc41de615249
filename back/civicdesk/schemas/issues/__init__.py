from .issue_schemas import (
    AssigneeSummary,
    AttachmentResponse,
    CommentAuthor,
    CommentCreate,
    CommentResponse,
    Coordinates,
    IssueCreate,
    IssueMapItem,
    IssueResponse,
    IssueStats,
    IssueUpdate,
    UserSummary,
)

__all__ = [
    "AssigneeSummary",
    "AttachmentResponse",
    "CommentAuthor",
    "CommentCreate",
    "CommentResponse",
    "Coordinates",
    "IssueCreate",
    "IssueMapItem",
    "IssueResponse",
    "IssueStats",
    "IssueUpdate",
    "UserSummary",
]
