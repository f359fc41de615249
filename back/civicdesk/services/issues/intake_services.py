# Standard library imports
from collections.abc import Mapping
from typing import Any

# Third-party imports
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

# Local application imports
from civicdesk.core.exceptions import StorageFailure, Unauthenticated, ValidationFailed
from civicdesk.core.monitoring.logging import get_contextual_logger
from civicdesk.db_selectors.issues import get_issue_by_id
from civicdesk.models.issues.issue import Issue, IssueStatus
from civicdesk.schemas.auth.caller_schemas import Caller
from civicdesk.schemas.issues.issue_schemas import IssueCreate
from civicdesk.services.issues.media_services import IncomingMedia, discard_media, persist_media, validate_media
from civicdesk.services.issues.validation import parse_or_fail
from civicdesk.services.storage.base import MediaStorage


async def create_issue(
    db: AsyncSession,
    storage: MediaStorage,
    caller: Caller | None,
    form: Mapping[str, Any],
    files: list[IncomingMedia],
) -> Issue:
    """
    Validate a submitted report and persist it together with its media.

    Validation runs text fields, then enums, then coordinates, then media.
    Media is stored before the issue row is written; if storing any file or
    writing the row fails, everything stored for this request is removed and
    no issue exists afterwards.
    """
    if caller is None:
        raise Unauthenticated()

    log = get_contextual_logger(__name__, caller_role=caller.role.value, caller_id=caller.id)

    try:
        data = parse_or_fail(IssueCreate, form)
        kinds = validate_media(files)
    except ValidationFailed as exc:
        log.info(f"Issue intake rejected ({exc.code}): fields={sorted(exc.details or {})}")
        raise

    stored = await persist_media(storage, files, kinds, log)

    issue = Issue(
        title=data.title,
        description=data.description,
        category=data.category,
        priority=data.priority,
        status=IssueStatus.PENDING,
        latitude=data.latitude,
        longitude=data.longitude,
        location_description=data.location_description,
        reporter_id=caller.id,
        assignee_id=None,
    )
    issue.attachments = [media.to_attachment(position) for position, media in enumerate(stored)]
    issue.comments = []

    db.add(issue)
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        log.error(f"Issue insert failed, discarding {len(stored)} stored files: {exc!r}")
        await discard_media(storage, stored, log)
        raise StorageFailure() from exc

    log.info(f"Issue created with {len(stored)} attachments [issue_id={issue.id}]")
    return await get_issue_by_id(db, issue.id, refresh=True)
