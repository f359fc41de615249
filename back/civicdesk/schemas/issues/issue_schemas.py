# Standard library imports
from datetime import datetime
from uuid import UUID

# Third-party imports
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Local application imports
from civicdesk.models.auth.user import UserRole
from civicdesk.models.issues.issue import AttachmentKind, Issue, IssueCategory, IssuePriority, IssueStatus


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(..., ge=-180, le=180, allow_inf_nan=False)


class IssueCreate(BaseModel):
    """Text fields of a submitted report, declared in validation order."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    category: IssueCategory
    priority: IssuePriority
    latitude: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(..., ge=-180, le=180, allow_inf_nan=False)
    location_description: str | None = Field(None, max_length=500)

    @field_validator("location_description")
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        return value or None


class IssueUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, min_length=1)
    category: IssueCategory | None = None
    priority: IssuePriority | None = None
    status: IssueStatus | None = None
    assignee: UUID | None = None
    latitude: float | None = Field(None, ge=-90, le=90, allow_inf_nan=False)
    longitude: float | None = Field(None, ge=-180, le=180, allow_inf_nan=False)
    location_description: str | None = Field(None, max_length=500)

    @model_validator(mode="after")
    def coordinates_come_in_pairs(self) -> "IssueUpdate":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together")
        return self


class CommentCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    text: str = Field(..., min_length=1, max_length=2000)


class UserSummary(BaseModel):
    """Contact details shown next to an issue."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str | None
    email: str


class AssigneeSummary(UserSummary):
    department: str | None


class CommentAuthor(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str | None
    role: UserRole


class AttachmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    kind: AttachmentKind
    uri: str


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    author_id: UUID
    author: CommentAuthor
    text: str
    created_at: datetime


class IssueResponse(BaseModel):
    id: UUID
    title: str
    description: str
    category: IssueCategory
    priority: IssuePriority
    status: IssueStatus
    coordinates: Coordinates
    location_description: str | None
    attachments: list[AttachmentResponse]
    reporter_id: UUID
    reporter: UserSummary
    assignee_id: UUID | None
    assignee: AssigneeSummary | None
    comments: list[CommentResponse]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_issue(cls, issue: Issue) -> "IssueResponse":
        return cls(
            id=issue.id,
            title=issue.title,
            description=issue.description,
            category=issue.category,
            priority=issue.priority,
            status=issue.status,
            coordinates=Coordinates(latitude=issue.latitude, longitude=issue.longitude),
            location_description=issue.location_description,
            attachments=[AttachmentResponse.model_validate(a) for a in issue.attachments],
            reporter_id=issue.reporter_id,
            reporter=UserSummary.model_validate(issue.reporter),
            assignee_id=issue.assignee_id,
            assignee=AssigneeSummary.model_validate(issue.assignee) if issue.assignee else None,
            comments=[CommentResponse.model_validate(c) for c in issue.comments],
            created_at=issue.created_at,
            updated_at=issue.updated_at,
        )


class IssueMapItem(BaseModel):
    """Public projection served to the map view."""

    id: UUID
    title: str
    location_description: str | None
    coordinates: Coordinates
    category: IssueCategory
    priority: IssuePriority
    status: IssueStatus
    distance_m: float


class IssueStats(BaseModel):
    total: int
    by_status: dict[IssueStatus, int]
    by_category: dict[IssueCategory, int]
    by_priority: dict[IssuePriority, int]
