# Standard library imports
import os
from pathlib import Path
import tempfile

_TEST_ROOT = Path(tempfile.mkdtemp(prefix="civicdesk-tests-"))

# Settings are read once at import time, so configure them before the app loads
os.environ["ENVIRONMENT"] = "dev"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT / 'civicdesk.db'}"
os.environ["MEDIA_STORAGE_BACKEND"] = "local"
os.environ["MEDIA_ROOT"] = str(_TEST_ROOT / "uploads")
os.environ["JWT_SECRET_KEY"] = "civicdesk-test-secret"

# Third-party imports
import httpx  # noqa: E402
import pytest  # noqa: E402

# Local application imports
from civicdesk.core.db import AsyncSessionLocal, async_engine  # noqa: E402
from civicdesk.models import Base, User, UserRole  # noqa: E402
from civicdesk.services.storage import LocalMediaStorage, get_media_storage  # noqa: E402
from civicdesk.utils.token_utils import create_access_token  # noqa: E402
from main import app  # noqa: E402

API = "/api/v1"

# Uploads are checked by declared type, extension and size, never by content
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64
MP4_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 64


class RecordingStorage(LocalMediaStorage):
    """Local storage that remembers what it saved and deleted, and can fail on demand."""

    def __init__(self, root: Path, fail_on_save: int | None = None):
        super().__init__(root, "/uploads")
        self.fail_on_save = fail_on_save
        self.saved: list[str] = []
        self.deleted: list[str] = []

    async def save(self, file_key: str, file_data: bytes, content_type: str | None = None) -> str:
        if self.fail_on_save is not None and len(self.saved) + 1 == self.fail_on_save:
            raise OSError("disk full")
        uri = await super().save(file_key, file_data, content_type)
        self.saved.append(file_key)
        return uri

    async def delete(self, file_key: str) -> None:
        await super().delete(file_key)
        self.deleted.append(file_key)

    def live_keys(self) -> set[str]:
        return set(self.saved) - set(self.deleted)


@pytest.fixture
async def database():
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def db(database):
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
async def users(database) -> dict[str, User]:
    created = {
        "citizen": User(email="asha@example.com", name="Asha", role=UserRole.CITIZEN),
        "neighbour": User(email="ravi@example.com", name="Ravi", role=UserRole.CITIZEN),
        "official": User(email="works@city.gov", name="Public Works", department="roads", role=UserRole.OFFICIAL),
        "admin": User(email="admin@city.gov", name="Admin", role=UserRole.ADMIN),
    }
    async with AsyncSessionLocal() as session:
        session.add_all(created.values())
        await session.commit()
    return created


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def storage(tmp_path) -> RecordingStorage:
    media_storage = RecordingStorage(tmp_path / "media")
    app.dependency_overrides[get_media_storage] = lambda: media_storage
    yield media_storage
    app.dependency_overrides.pop(get_media_storage, None)


@pytest.fixture
async def client(database):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client
    app.dependency_overrides.clear()


def report_form(**overrides: str) -> dict[str, str]:
    form = {
        "title": "Pothole on Main St",
        "description": "Deep pothole in the left lane",
        "category": "roads",
        "priority": "high",
        "latitude": "40.7128",
        "longitude": "-74.0060",
        "locationDescription": "Main St & 3rd Ave",
    }
    form.update(overrides)
    return {name: value for name, value in form.items() if value is not None}


async def submit_report(
    client: httpx.AsyncClient,
    user: User,
    files: list | None = None,
    **overrides: str,
) -> httpx.Response:
    return await client.post(
        f"{API}/issues",
        data=report_form(**overrides),
        files=files or None,
        headers=auth_headers(user),
    )
