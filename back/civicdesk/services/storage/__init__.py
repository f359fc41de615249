# Standard library imports
from functools import lru_cache

# Local application imports
from civicdesk.services.storage.base import MediaStorage
from civicdesk.services.storage.local_storage import LocalMediaStorage
from civicdesk.settings import settings


@lru_cache
def get_media_storage() -> MediaStorage:
    """FastAPI dependency returning the configured storage backend."""
    if settings.MEDIA_STORAGE_BACKEND == "s3":
        # Local application imports
        from civicdesk.services.storage.s3_service import S3Service

        return S3Service()
    return LocalMediaStorage(settings.MEDIA_ROOT, settings.MEDIA_URL_PREFIX)


__all__ = ["LocalMediaStorage", "MediaStorage", "get_media_storage"]
