"""
All-or-nothing media persistence shared by issue creation and update.
"""

# Standard library imports
from dataclasses import dataclass
from uuid import uuid4

# Local application imports
from civicdesk.core.exceptions import StorageFailure, ValidationFailed
from civicdesk.core.monitoring.logging import LoggerAdapter
from civicdesk.models.issues.issue import AttachmentKind, IssueAttachment
from civicdesk.services.storage.base import MediaStorage
from civicdesk.settings import settings
from civicdesk.utils.validators.file_validator import file_extension, media_kind_for, validate_media_size


@dataclass(frozen=True)
class IncomingMedia:
    file_name: str | None
    content_type: str | None
    data: bytes


@dataclass(frozen=True)
class StoredMedia:
    kind: AttachmentKind
    uri: str
    storage_key: str
    content_type: str
    size: int

    def to_attachment(self, position: int) -> IssueAttachment:
        return IssueAttachment(
            position=position,
            kind=self.kind,
            uri=self.uri,
            storage_key=self.storage_key,
            content_type=self.content_type,
            size=self.size,
        )


def validate_media(files: list[IncomingMedia]) -> list[AttachmentKind]:
    """Check count, type and size of every file before anything is stored."""
    if len(files) > settings.MAX_MEDIA_FILES:
        raise ValidationFailed(details={"media": f"at most {settings.MAX_MEDIA_FILES} files per request"})

    kinds = []
    for media in files:
        kind = media_kind_for(media.content_type, media.file_name)
        validate_media_size(kind, len(media.data), media.file_name)
        kinds.append(kind)
    return kinds


def build_storage_key(media: IncomingMedia) -> str:
    return f"issues/{uuid4().hex}{file_extension(media.file_name)}"


async def discard_media(storage: MediaStorage, stored: list[StoredMedia], log: LoggerAdapter) -> None:
    """Compensating cleanup; a failed delete is logged and the rest still run."""
    for media in stored:
        try:
            await storage.delete(media.storage_key)
        except Exception as exc:
            log.error(f"Could not discard stored media during rollback: {exc!r}")


async def persist_media(
    storage: MediaStorage,
    files: list[IncomingMedia],
    kinds: list[AttachmentKind],
    log: LoggerAdapter,
) -> list[StoredMedia]:
    """
    Store every file or none of them.

    If any save fails, files already stored for this request are deleted
    before ``StorageFailure`` is raised, so a retry never finds leftovers.
    """
    stored: list[StoredMedia] = []
    for media, kind in zip(files, kinds, strict=True):
        storage_key = build_storage_key(media)
        try:
            uri = await storage.save(storage_key, media.data, media.content_type)
        except Exception as exc:
            log.error(f"Media upload failed after {len(stored)} of {len(files)} files: {exc!r}")
            await discard_media(storage, stored, log)
            raise StorageFailure() from exc

        stored.append(
            StoredMedia(
                kind=kind,
                uri=uri,
                storage_key=storage_key,
                content_type=media.content_type or "application/octet-stream",
                size=len(media.data),
            )
        )
    return stored
