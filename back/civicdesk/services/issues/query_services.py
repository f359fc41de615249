# Standard library imports
from collections.abc import Mapping
from typing import Any

# Third-party imports
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

# Local application imports
from civicdesk.core.monitoring.logging import get_contextual_logger
from civicdesk.db_selectors import issues as issue_store
from civicdesk.db_selectors.issues import IssueSpatialIndex, spatial_index
from civicdesk.models.issues.issue import Issue, IssueCategory, IssuePriority, IssueStatus
from civicdesk.schemas.auth.caller_schemas import Caller
from civicdesk.schemas.issues.issue_schemas import Coordinates, IssueMapItem, IssueStats
from civicdesk.services.issues.access_policy import VisibilityScope, listing_scope
from civicdesk.services.issues.validation import parse_or_fail
from civicdesk.settings import settings


class IssueFilters(BaseModel):
    status: IssueStatus | None = None
    category: IssueCategory | None = None
    priority: IssuePriority | None = None
    limit: int | None = Field(None, ge=1, le=500)
    offset: int = Field(0, ge=0)


class ProximityQuery(BaseModel):
    lat: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    lng: float = Field(..., ge=-180, le=180, allow_inf_nan=False)
    radius: float = Field(default_factory=lambda: float(settings.DEFAULT_PROXIMITY_RADIUS_M), ge=0, allow_inf_nan=False)


def _scope_filters(scope: VisibilityScope) -> list[Any]:
    if scope.reporter_id is None:
        return []
    return [Issue.reporter_id == scope.reporter_id]


async def list_issues(db: AsyncSession, caller: Caller, params: Mapping[str, Any]) -> list[Issue]:
    """Filtered listing, newest first, restricted to what the caller may see."""
    query = parse_or_fail(IssueFilters, params)

    filters = _scope_filters(listing_scope(caller))
    if query.status:
        filters.append(Issue.status == query.status)
    if query.category:
        filters.append(Issue.category == query.category)
    if query.priority:
        filters.append(Issue.priority == query.priority)

    return await issue_store.list_issues(db, filters, limit=query.limit, offset=query.offset)


async def issues_near(
    db: AsyncSession,
    params: Mapping[str, Any],
    index: IssueSpatialIndex = spatial_index,
) -> list[IssueMapItem]:
    """
    Issues within ``radius`` metres of (lat, lng), nearest first.

    Returns the public map projection only, so no caller scoping applies.
    """
    query = parse_or_fail(ProximityQuery, params)
    matches = await index.within_radius(db, query.lat, query.lng, query.radius)

    return [
        IssueMapItem(
            id=issue.id,
            title=issue.title,
            location_description=issue.location_description,
            coordinates=Coordinates(latitude=issue.latitude, longitude=issue.longitude),
            category=issue.category,
            priority=issue.priority,
            status=issue.status,
            distance_m=round(distance, 2),
        )
        for issue, distance in matches
    ]


async def issue_stats(db: AsyncSession, caller: Caller) -> IssueStats:
    """Counts by status, category and priority over the caller-visible set."""
    filters = _scope_filters(listing_scope(caller))

    by_status = await issue_store.count_issues_by(db, Issue.status, filters)
    by_category = await issue_store.count_issues_by(db, Issue.category, filters)
    by_priority = await issue_store.count_issues_by(db, Issue.priority, filters)

    stats = IssueStats(
        total=sum(by_status.values()),
        by_status={status: by_status.get(status, 0) for status in IssueStatus},
        by_category={category: by_category.get(category, 0) for category in IssueCategory},
        by_priority={priority: by_priority.get(priority, 0) for priority in IssuePriority},
    )
    get_contextual_logger(__name__, caller_role=caller.role.value, caller_id=caller.id).debug(
        f"Stats computed over {stats.total} issues"
    )
    return stats
