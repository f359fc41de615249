# Standard library imports
import enum

# Third-party imports
from sqlalchemy import (
    Column,
    Enum as SQLEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship

# Local application imports
from civicdesk.models.base import Base
from civicdesk.models.mixins.uuid_timestamp import UUIDTimeStampMixin


class IssueStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    ACTIVE = "active"


class IssuePriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EMERGENCY = "emergency"


class IssueCategory(str, enum.Enum):
    INFRASTRUCTURE = "infrastructure"
    WATER = "water"
    SANITATION = "sanitation"
    ELECTRICITY = "electricity"
    ROADS = "roads"
    DISASTER = "disaster"
    OTHER = "other"


class AttachmentKind(str, enum.Enum):
    PHOTO = "photo"
    VIDEO = "video"


class Issue(Base, UUIDTimeStampMixin):
    __tablename__ = "issues"
    # Bounding-box prefilter for proximity queries
    __table_args__ = (Index("ix_issues_latitude_longitude", "latitude", "longitude"),)

    # Issue details
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(SQLEnum(IssueCategory), nullable=False, index=True)
    priority = Column(SQLEnum(IssuePriority), nullable=False, default=IssuePriority.MEDIUM, index=True)
    status = Column(SQLEnum(IssueStatus), nullable=False, default=IssueStatus.PENDING, index=True)

    # Location information
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    location_description = Column(Text, nullable=True)

    # People
    reporter_id = Column(Uuid(as_uuid=True), ForeignKey("user.id"), nullable=False, index=True)
    assignee_id = Column(Uuid(as_uuid=True), ForeignKey("user.id"), nullable=True, index=True)
    reporter = relationship("User", foreign_keys=[reporter_id], lazy="selectin")
    assignee = relationship("User", foreign_keys=[assignee_id], lazy="selectin")

    attachments = relationship(
        "IssueAttachment",
        back_populates="issue",
        cascade="all, delete-orphan",
        order_by="IssueAttachment.position",
        lazy="selectin",
    )
    comments = relationship(
        "IssueComment",
        back_populates="issue",
        cascade="all, delete-orphan",
        order_by="IssueComment.created_at",
        lazy="selectin",
    )


class IssueAttachment(Base, UUIDTimeStampMixin):
    __tablename__ = "issue_attachments"

    issue_id = Column(Uuid(as_uuid=True), ForeignKey("issues.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    kind = Column(SQLEnum(AttachmentKind), nullable=False)
    uri = Column(String(500), nullable=False)
    # Storage backend key; internal only, never serialised
    storage_key = Column(String(300), nullable=False)
    content_type = Column(String(100), nullable=False)
    size = Column(Integer, nullable=False)

    issue = relationship("Issue", back_populates="attachments")


class IssueComment(Base, UUIDTimeStampMixin):
    __tablename__ = "issue_comments"

    issue_id = Column(Uuid(as_uuid=True), ForeignKey("issues.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Uuid(as_uuid=True), ForeignKey("user.id"), nullable=False)
    text = Column(Text, nullable=False)

    author = relationship("User", lazy="selectin")

    issue = relationship("Issue", back_populates="comments")
