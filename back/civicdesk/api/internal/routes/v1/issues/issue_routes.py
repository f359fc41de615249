# Standard library imports
from typing import Any
from uuid import UUID

# Third-party imports
from fastapi import APIRouter, Body, Depends, File, Form, Query, Response, UploadFile, status as http_status
from sqlalchemy.ext.asyncio import AsyncSession

# Local application imports
from civicdesk.core.db import get_async_session
from civicdesk.dependancies.common import get_current_caller
from civicdesk.schemas.auth.caller_schemas import Caller
from civicdesk.schemas.issues.issue_schemas import CommentResponse, IssueMapItem, IssueResponse, IssueStats
from civicdesk.services import issues as issue_services
from civicdesk.services.issues.media_services import IncomingMedia
from civicdesk.services.storage import MediaStorage, get_media_storage
from civicdesk.settings import settings

router = APIRouter(prefix="/issues", tags=["Issues"])


async def _read_uploads(*groups: list[UploadFile] | None) -> list[IncomingMedia]:
    """Read uploaded parts, never buffering more than the largest allowed file plus one byte."""
    read_limit = max(settings.MAX_IMAGE_SIZE, settings.MAX_VIDEO_SIZE) + 1
    media = []
    for group in groups:
        for upload in group or []:
            if not upload.filename and upload.size == 0:
                continue
            data = await upload.read(read_limit)
            media.append(IncomingMedia(file_name=upload.filename, content_type=upload.content_type, data=data))
    return media


def _present(**fields: str | None) -> dict[str, str]:
    """Keep only the form fields the client actually filled in."""
    return {name: value for name, value in fields.items() if value is not None and value != ""}


@router.post("", response_model=IssueResponse, status_code=http_status.HTTP_201_CREATED)
async def create_issue(
    title: str | None = Form(None),
    description: str | None = Form(None),
    category: str | None = Form(None),
    priority: str | None = Form(None),
    latitude: str | None = Form(None),
    longitude: str | None = Form(None),
    location_description: str | None = Form(None, alias="locationDescription"),
    images: list[UploadFile] | None = File(None),
    videos: list[UploadFile] | None = File(None),
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_async_session),
    storage: MediaStorage = Depends(get_media_storage),
):
    """Create a new issue report with optional photo/video evidence"""
    form = _present(
        title=title,
        description=description,
        category=category,
        priority=priority,
        latitude=latitude,
        longitude=longitude,
        location_description=location_description,
    )
    files = await _read_uploads(images, videos)
    issue = await issue_services.create_issue(db, storage, caller, form, files)
    return IssueResponse.from_issue(issue)


@router.get("", response_model=list[IssueResponse])
async def list_issues(
    status: str | None = None,
    category: str | None = None,
    priority: str | None = None,
    limit: int | None = Query(None),
    offset: int = Query(0),
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_async_session),
):
    """List issues visible to the caller, newest first"""
    params = _present(status=status, category=category, priority=priority)
    params.update({"limit": limit, "offset": offset})
    issues = await issue_services.list_issues(db, caller, params)
    return [IssueResponse.from_issue(issue) for issue in issues]


@router.get("/map", response_model=list[IssueMapItem])
async def get_issues_by_location(
    lat: str | None = None,
    lng: str | None = None,
    radius: str | None = None,
    db: AsyncSession = Depends(get_async_session),
):
    """Issues within `radius` metres of a point, nearest first (public)"""
    return await issue_services.issues_near(db, _present(lat=lat, lng=lng, radius=radius))


@router.get("/stats", response_model=IssueStats)
async def get_issue_stats(
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_async_session),
):
    """Issue counts by status, category and priority over the caller-visible set"""
    return await issue_services.issue_stats(db, caller)


@router.get("/{issue_id}", response_model=IssueResponse)
async def get_issue(
    issue_id: UUID,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_async_session),
):
    """Get issue details"""
    issue = await issue_services.get_issue(db, caller, issue_id)
    return IssueResponse.from_issue(issue)


@router.put("/{issue_id}", response_model=IssueResponse)
async def update_issue(
    issue_id: UUID,
    title: str | None = Form(None),
    description: str | None = Form(None),
    category: str | None = Form(None),
    priority: str | None = Form(None),
    status: str | None = Form(None),
    assignee: str | None = Form(None),
    latitude: str | None = Form(None),
    longitude: str | None = Form(None),
    location_description: str | None = Form(None, alias="locationDescription"),
    images: list[UploadFile] | None = File(None),
    videos: list[UploadFile] | None = File(None),
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_async_session),
    storage: MediaStorage = Depends(get_media_storage),
):
    """Update an issue; fields outside the caller's editable set are ignored"""
    form = _present(
        title=title,
        description=description,
        category=category,
        priority=priority,
        status=status,
        assignee=assignee,
        latitude=latitude,
        longitude=longitude,
        location_description=location_description,
    )
    files = await _read_uploads(images, videos)
    issue = await issue_services.update_issue(db, storage, caller, issue_id, form, files)
    return IssueResponse.from_issue(issue)


@router.delete("/{issue_id}", status_code=http_status.HTTP_204_NO_CONTENT)
async def delete_issue(
    issue_id: UUID,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_async_session),
    storage: MediaStorage = Depends(get_media_storage),
):
    """Delete an issue and its media (admin, or the reporter while pending)"""
    await issue_services.delete_issue(db, storage, caller, issue_id)
    return Response(status_code=http_status.HTTP_204_NO_CONTENT)


@router.post("/{issue_id}/comments", response_model=list[CommentResponse], status_code=http_status.HTTP_201_CREATED)
async def add_comment(
    issue_id: UUID,
    payload: dict[str, Any] = Body(...),
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_async_session),
):
    """Append a comment and return the full comment list"""
    comments = await issue_services.add_comment(db, caller, issue_id, payload)
    return [CommentResponse.model_validate(comment) for comment in comments]
