# Standard library imports
import asyncio
from pathlib import Path

# Local application imports
from civicdesk.services.storage.base import MediaStorage


class LocalMediaStorage(MediaStorage):
    """Stores media on the local disk; files are served by the app under ``url_prefix``."""

    def __init__(self, root: Path, url_prefix: str = "/uploads"):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def _path_for(self, file_key: str) -> Path:
        path = (self.root / file_key).resolve()
        if not path.is_relative_to(self.root.resolve()):
            raise ValueError("file key escapes the media root")
        return path

    async def save(self, file_key: str, file_data: bytes, content_type: str | None = None) -> str:
        path = self._path_for(file_key)
        await asyncio.to_thread(self._write, path, file_data)
        return f"{self.url_prefix}/{file_key}"

    async def delete(self, file_key: str) -> None:
        await asyncio.to_thread(self._path_for(file_key).unlink, missing_ok=True)

    @staticmethod
    def _write(path: Path, file_data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(file_data)
