# Standard library imports
from collections.abc import Mapping
from typing import Any
from uuid import UUID

# Third-party imports
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

# Local application imports
from civicdesk.core.exceptions import NotFound, StorageFailure, Unauthorized, ValidationFailed
from civicdesk.core.monitoring.logging import LoggerAdapter, get_contextual_logger
from civicdesk.db_selectors.issues import get_issue_by_id
from civicdesk.db_selectors.users import get_user_by_id
from civicdesk.models.issues.issue import Issue, IssueComment, IssueStatus
from civicdesk.models.mixins.uuid_timestamp import utcnow
from civicdesk.schemas.auth.caller_schemas import Caller
from civicdesk.schemas.issues.issue_schemas import CommentCreate, IssueUpdate
from civicdesk.services.issues.access_policy import AccessDecision, IssueField, evaluate
from civicdesk.services.issues.media_services import (
    IncomingMedia,
    StoredMedia,
    discard_media,
    persist_media,
    validate_media,
)
from civicdesk.services.issues.validation import parse_or_fail
from civicdesk.services.storage.base import MediaStorage

# IssueUpdate attribute -> policy field
UPDATE_FIELDS = {
    "title": IssueField.TITLE,
    "description": IssueField.DESCRIPTION,
    "category": IssueField.CATEGORY,
    "priority": IssueField.PRIORITY,
    "status": IssueField.STATUS,
    "assignee": IssueField.ASSIGNEE,
    "latitude": IssueField.COORDINATES,
    "longitude": IssueField.COORDINATES,
    "location_description": IssueField.LOCATION_DESCRIPTION,
}


def _logger(caller: Caller, issue_id: UUID) -> LoggerAdapter:
    return get_contextual_logger(__name__, caller_role=caller.role.value, caller_id=caller.id, issue_id=issue_id)


async def _load_issue(db: AsyncSession, caller: Caller, issue_id: UUID, log: LoggerAdapter) -> tuple[Issue, AccessDecision]:
    issue = await get_issue_by_id(db, issue_id)
    if issue is None:
        raise NotFound()

    decision = evaluate(caller, issue)
    if not decision.visible:
        log.warning("Access to issue denied")
        raise Unauthorized("Not authorized to access this issue")
    return issue, decision


async def get_issue(db: AsyncSession, caller: Caller, issue_id: UUID) -> Issue:
    issue, _ = await _load_issue(db, caller, issue_id, _logger(caller, issue_id))
    return issue


async def _commit_or_rollback(
    db: AsyncSession,
    storage: MediaStorage,
    stored: list[StoredMedia],
    log: LoggerAdapter,
) -> None:
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        log.error(f"Issue write failed: {exc!r}")
        await discard_media(storage, stored, log)
        raise StorageFailure() from exc


async def update_issue(
    db: AsyncSession,
    storage: MediaStorage,
    caller: Caller,
    issue_id: UUID,
    form: Mapping[str, Any],
    files: list[IncomingMedia],
) -> Issue:
    """
    Apply a partial update under the caller's access decision.

    Fields the caller's role never controls are ignored. Fields the role
    controls but the lifecycle has locked (a resolved issue) fail the whole
    update with ``Unauthorized``. Assigning a pending issue moves it to
    in-progress in the same write. Concurrent edits are last-write-wins.
    """
    log = _logger(caller, issue_id)
    issue, decision = await _load_issue(db, caller, issue_id, log)

    # Values for fields the role never controls are not validated either
    role_fields = decision.mutable_fields | decision.locked_fields
    ignored = {name for name in form if name in UPDATE_FIELDS and UPDATE_FIELDS[name] not in role_fields}
    if ignored:
        log.debug(f"Ignoring fields outside caller's role: {sorted(ignored)}")
    changes = parse_or_fail(
        IssueUpdate, {name: value for name, value in form.items() if name not in ignored}
    ).model_dump(exclude_unset=True)
    requested = {UPDATE_FIELDS[name] for name in changes}
    if files:
        requested.add(IssueField.ATTACHMENTS)

    locked = requested & decision.locked_fields
    if locked:
        names = sorted(field.value for field in locked)
        log.warning(f"Rejected update of read-only fields {names} on {issue.status.value} issue")
        raise Unauthorized(
            f"Issue is {issue.status.value}; these fields are read-only",
            details={name: "read-only" for name in names},
        )

    allowed = requested & decision.mutable_fields

    new_assignee = changes.get("assignee") if IssueField.ASSIGNEE in allowed else None
    if new_assignee is not None:
        assignee = await get_user_by_id(db, new_assignee)
        if assignee is None or not assignee.is_staff:
            raise ValidationFailed(details={"assignee": "must reference an official or admin"})

    stored: list[StoredMedia] = []
    if IssueField.ATTACHMENTS in allowed:
        kinds = validate_media(files)
        stored = await persist_media(storage, files, kinds, log)

    for name, value in changes.items():
        field = UPDATE_FIELDS[name]
        if field not in allowed or field in (IssueField.STATUS, IssueField.ASSIGNEE):
            continue
        setattr(issue, name, value)

    if IssueField.STATUS in allowed:
        issue.status = changes["status"]

    if new_assignee is not None:
        issue.assignee_id = new_assignee
        if issue.status == IssueStatus.PENDING:
            issue.status = IssueStatus.IN_PROGRESS

    start = len(issue.attachments)
    for offset, media in enumerate(stored):
        issue.attachments.append(media.to_attachment(start + offset))

    if allowed:
        issue.updated_at = utcnow()
        await _commit_or_rollback(db, storage, stored, log)
        log.info(f"Issue updated: {sorted(field.value for field in allowed)}")
        issue = await get_issue_by_id(db, issue_id, refresh=True)
    return issue


async def delete_issue(db: AsyncSession, storage: MediaStorage, caller: Caller, issue_id: UUID) -> None:
    log = _logger(caller, issue_id)
    issue, decision = await _load_issue(db, caller, issue_id, log)

    if not decision.can_delete:
        log.warning(f"Delete denied for {issue.status.value} issue")
        raise Unauthorized("Not authorized to delete this issue")

    storage_keys = [attachment.storage_key for attachment in issue.attachments]
    await db.delete(issue)
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        log.error(f"Issue delete failed: {exc!r}")
        raise StorageFailure("Could not delete the issue, please retry") from exc

    # The record is gone; a media delete failure only leaves an orphaned file
    for storage_key in storage_keys:
        try:
            await storage.delete(storage_key)
        except Exception as exc:
            log.error(f"Could not delete media of removed issue: {exc!r}")

    log.info(f"Issue deleted with {len(storage_keys)} attachments")


async def add_comment(db: AsyncSession, caller: Caller, issue_id: UUID, payload: Mapping[str, Any]) -> list[IssueComment]:
    log = _logger(caller, issue_id)
    issue, decision = await _load_issue(db, caller, issue_id, log)

    if not decision.can_comment:
        raise Unauthorized("Not authorized to comment on this issue")

    data = parse_or_fail(CommentCreate, payload)
    issue.comments.append(IssueComment(author_id=caller.id, text=data.text))
    issue.updated_at = utcnow()

    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        log.error(f"Comment insert failed: {exc!r}")
        raise StorageFailure("Could not save the comment, please retry") from exc

    log.info("Comment added")
    issue = await get_issue_by_id(db, issue_id, refresh=True)
    return list(issue.comments)
