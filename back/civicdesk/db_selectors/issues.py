"""
IssueStore reads.

Only fully committed issues are ever visible to these queries, since
creation writes the row and its attachments in a single transaction.
"""

# Standard library imports
from collections.abc import Sequence
from typing import Any
from uuid import UUID

# Third-party imports
from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import raiseload, selectinload

# Local application imports
from civicdesk.models.issues.issue import Issue, IssueComment
from civicdesk.utils.geo_utils import bounding_boxes, haversine_m


async def get_issue_by_id(db: AsyncSession, issue_id: UUID, *, refresh: bool = False) -> Issue | None:
    """Load an issue with its people, attachments and comments.

    ``refresh=True`` reloads an instance already in the session, so
    relationships changed by a write come back populated.
    """
    query = (
        select(Issue)
        .options(
            selectinload(Issue.reporter),
            selectinload(Issue.assignee),
            selectinload(Issue.attachments),
            selectinload(Issue.comments).selectinload(IssueComment.author),
        )
        .where(Issue.id == issue_id)
    )
    if refresh:
        query = query.execution_options(populate_existing=True)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def list_issues(
    db: AsyncSession,
    filters: Sequence[Any] = (),
    limit: int | None = None,
    offset: int = 0,
) -> list[Issue]:
    query = select(Issue)
    if filters:
        query = query.where(and_(*filters))
    query = query.order_by(Issue.created_at.desc(), Issue.id).offset(offset)
    if limit is not None:
        query = query.limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())


async def count_issues_by(db: AsyncSession, column: Any, filters: Sequence[Any] = ()) -> dict[Any, int]:
    query = select(column, func.count(Issue.id)).group_by(column)
    if filters:
        query = query.where(and_(*filters))

    result = await db.execute(query)
    return {value: count for value, count in result.all()}


class IssueSpatialIndex:
    """
    Radius search over the composite (latitude, longitude) index.

    The indexed bounding-box query narrows candidates; exact great-circle
    distance then filters and orders them. Any engine offering "points within
    radius, nearest first" can stand in for this class.
    """

    async def within_radius(
        self,
        db: AsyncSession,
        latitude: float,
        longitude: float,
        radius_m: float,
        filters: Sequence[Any] = (),
    ) -> list[tuple[Issue, float]]:
        boxes = bounding_boxes(latitude, longitude, radius_m)
        box_clauses = [
            and_(
                Issue.latitude.between(box.min_lat, box.max_lat),
                Issue.longitude.between(box.min_lng, box.max_lng),
            )
            for box in boxes
        ]

        # Map projections never touch attachments or comments
        query = select(Issue).options(raiseload("*")).where(or_(*box_clauses))
        if filters:
            query = query.where(and_(*filters))
        result = await db.execute(query)

        matches = []
        for issue in result.scalars().all():
            distance = haversine_m(latitude, longitude, issue.latitude, issue.longitude)
            if distance <= radius_m:
                matches.append((issue, distance))

        matches.sort(key=lambda match: (match[1], str(match[0].id)))
        return matches


spatial_index = IssueSpatialIndex()
