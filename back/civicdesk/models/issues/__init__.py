# Local application imports
from civicdesk.models.issues.issue import (
    AttachmentKind,
    Issue,
    IssueAttachment,
    IssueCategory,
    IssueComment,
    IssuePriority,
    IssueStatus,
)

__all__ = [
    "AttachmentKind",
    "Issue",
    "IssueAttachment",
    "IssueCategory",
    "IssueComment",
    "IssuePriority",
    "IssueStatus",
]
