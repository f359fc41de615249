# Standard library imports
import asyncio
from io import BytesIO

# Third-party imports
from minio import Minio
from minio.error import S3Error

# Local application imports
from civicdesk.services.storage.base import MediaStorage
from civicdesk.settings import settings


class S3Service(MediaStorage):
    def __init__(self):
        if not settings.S3_URL:
            raise RuntimeError("S3_URL must be set when MEDIA_STORAGE_BACKEND is 's3'")
        self.client = Minio(
            settings.S3_URL.replace("http://", "").replace("https://", ""),
            access_key=settings.S3_ACCESS_KEY_ID,
            secret_key=settings.S3_SECRET_ACCESS_KEY,
            secure=settings.S3_SECURE,
        )
        self.bucket_name = settings.S3_PUBLIC_BUCKET_NAME
        self._ensure_bucket_exists()

    def _ensure_bucket_exists(self):
        """Ensure the bucket exists, create if not"""
        if not self.client.bucket_exists(self.bucket_name):
            self.client.make_bucket(self.bucket_name)

    async def save(self, file_key: str, file_data: bytes, content_type: str | None = None) -> str:
        """Upload file to S3 and return public URL"""
        await asyncio.to_thread(
            self.client.put_object,
            self.bucket_name,
            file_key,
            BytesIO(file_data),
            len(file_data),
            content_type=content_type or "application/octet-stream",
        )

        return f"{settings.S3_URL}/{self.bucket_name}/{file_key}"

    async def delete(self, file_key: str) -> None:
        """Delete file from S3"""
        try:
            await asyncio.to_thread(self.client.remove_object, self.bucket_name, file_key)
        except S3Error as exc:
            if exc.code != "NoSuchKey":
                raise
