# Standard library imports
from pathlib import PurePath

# Local application imports
from civicdesk.core.exceptions import PayloadTooLarge, UnsupportedMedia, ValidationFailed
from civicdesk.models.issues.issue import AttachmentKind
from civicdesk.settings import settings

IMAGE_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".webp"}
VIDEO_EXTENSIONS = {".mp4", ".webm", ".mov", ".avi", ".wmv"}


def normalize_file_name(value: str | None) -> str | None:
    """
    Strip directories and spaces from an uploaded file name.
    """
    if value is None:
        return None

    return PurePath(value.replace("\\", "/")).name.replace(" ", "_").lower()


def file_extension(file_name: str | None) -> str:
    normalized = normalize_file_name(file_name) or ""
    return PurePath(normalized).suffix


def media_kind_for(content_type: str | None, file_name: str | None) -> AttachmentKind:
    """
    Classify an upload as photo or video.

    Both the declared MIME type and the file extension must agree with one of
    the configured families; anything else is ``UnsupportedMedia``.
    """
    field = normalize_file_name(file_name) or "file"
    content_type = (content_type or "").lower()
    extension = file_extension(file_name)

    if content_type in settings.ALLOWED_IMAGE_TYPES and extension in IMAGE_EXTENSIONS:
        return AttachmentKind.PHOTO
    if content_type in settings.ALLOWED_VIDEO_TYPES and extension in VIDEO_EXTENSIONS:
        return AttachmentKind.VIDEO

    raise UnsupportedMedia(details={field: f"unsupported media type {content_type or 'unknown'}"})


def max_size_for(kind: AttachmentKind) -> int:
    return settings.MAX_IMAGE_SIZE if kind == AttachmentKind.PHOTO else settings.MAX_VIDEO_SIZE


def validate_media_size(kind: AttachmentKind, size: int, file_name: str | None) -> None:
    field = normalize_file_name(file_name) or "file"
    if size == 0:
        raise ValidationFailed(details={field: f"{kind.value} is empty"})

    limit = max_size_for(kind)
    if size > limit:
        raise PayloadTooLarge(details={field: f"{kind.value} exceeds {limit // (1024 * 1024)} MB"})
