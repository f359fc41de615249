"""
Single source of truth for who may see and change an issue.

``evaluate`` is a pure function of the caller and the issue's ownership and
lifecycle state. Every read, update, delete and listing path goes through it
(listings through ``listing_scope``) instead of re-deriving role rules inline.
"""

# Standard library imports
from dataclasses import dataclass
import enum
from typing import Protocol
from uuid import UUID

# Local application imports
from civicdesk.models.auth.user import UserRole
from civicdesk.models.issues.issue import IssueStatus
from civicdesk.schemas.auth.caller_schemas import Caller


class IssueField(str, enum.Enum):
    TITLE = "title"
    DESCRIPTION = "description"
    CATEGORY = "category"
    PRIORITY = "priority"
    COORDINATES = "coordinates"
    LOCATION_DESCRIPTION = "location_description"
    ATTACHMENTS = "attachments"
    STATUS = "status"
    ASSIGNEE = "assignee"


CITIZEN_FIELDS = frozenset(
    {
        IssueField.TITLE,
        IssueField.DESCRIPTION,
        IssueField.CATEGORY,
        IssueField.PRIORITY,
        IssueField.COORDINATES,
        IssueField.LOCATION_DESCRIPTION,
        IssueField.ATTACHMENTS,
    }
)
STAFF_FIELDS = CITIZEN_FIELDS | {IssueField.STATUS, IssueField.ASSIGNEE}

# Read-only for non-admins once an issue is resolved
RESOLVED_LOCKED_FIELDS = frozenset({IssueField.CATEGORY, IssueField.PRIORITY})

NOTHING: frozenset[IssueField] = frozenset()


class IssueLike(Protocol):
    reporter_id: UUID
    status: IssueStatus


@dataclass(frozen=True)
class AccessDecision:
    visible: bool
    # Fields the caller may change right now
    mutable_fields: frozenset[IssueField]
    # Fields the caller's role could change but the lifecycle currently forbids
    locked_fields: frozenset[IssueField]
    can_delete: bool
    can_comment: bool


DENIED = AccessDecision(
    visible=False,
    mutable_fields=NOTHING,
    locked_fields=NOTHING,
    can_delete=False,
    can_comment=False,
)


@dataclass(frozen=True)
class VisibilityScope:
    """Listing restriction: ``reporter_id=None`` means every issue is visible."""

    reporter_id: UUID | None = None

    def allows(self, issue: IssueLike) -> bool:
        return self.reporter_id is None or issue.reporter_id == self.reporter_id


def evaluate(caller: Caller, issue: IssueLike) -> AccessDecision:
    is_reporter = issue.reporter_id == caller.id
    resolved = issue.status == IssueStatus.RESOLVED

    if caller.role == UserRole.CITIZEN:
        if not is_reporter:
            return DENIED
        return AccessDecision(
            visible=True,
            mutable_fields=NOTHING if resolved else CITIZEN_FIELDS,
            locked_fields=CITIZEN_FIELDS if resolved else NOTHING,
            can_delete=issue.status == IssueStatus.PENDING,
            can_comment=True,
        )

    # Officials and admins see everything; coordinates stay with the reporter
    role_fields = STAFF_FIELDS if is_reporter else STAFF_FIELDS - {IssueField.COORDINATES}
    locked: frozenset[IssueField] = NOTHING
    if resolved:
        locked = RESOLVED_LOCKED_FIELDS if caller.role == UserRole.OFFICIAL else NOTHING
        if is_reporter:
            locked = locked | {IssueField.COORDINATES}

    return AccessDecision(
        visible=True,
        mutable_fields=role_fields - locked,
        locked_fields=locked & role_fields,
        can_delete=caller.role == UserRole.ADMIN or (is_reporter and issue.status == IssueStatus.PENDING),
        can_comment=True,
    )


def listing_scope(caller: Caller) -> VisibilityScope:
    if caller.role == UserRole.CITIZEN:
        return VisibilityScope(reporter_id=caller.id)
    return VisibilityScope()
