# Standard library imports
from abc import ABC, abstractmethod


class MediaStorage(ABC):
    """Durable home for uploaded evidence files."""

    @abstractmethod
    async def save(self, file_key: str, file_data: bytes, content_type: str | None = None) -> str:
        """Store the bytes under ``file_key`` and return the public URI."""

    @abstractmethod
    async def delete(self, file_key: str) -> None:
        """Remove a stored file. Missing keys are not an error."""
