# Standard library imports
from collections.abc import Iterable, Mapping
from typing import Any
from uuid import UUID

# Third-party imports
import httpx

# Local application imports
from civicdesk.client.capture import MediaArtifact, MediaKind
from civicdesk.client.errors import ApiError
from civicdesk.core.monitoring.logging import get_logger

logger = get_logger(__name__)

# Multipart part name per media kind
MEDIA_PARTS = {
    MediaKind.PHOTO: "images",
    MediaKind.VIDEO: "videos",
}


def media_parts(artifacts: Iterable[MediaArtifact]) -> list[tuple[str, tuple[str, bytes, str]]]:
    return [
        (MEDIA_PARTS[artifact.kind], (artifact.file_name, artifact.data, artifact.content_type))
        for artifact in artifacts
    ]


class IssueClient:
    """Async HTTP client for the issue API."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        *,
        api_prefix: str = "/api/v1",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.token = token
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + api_prefix,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "IssueClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        response = await self._client.request(method, url, headers=self._headers(), **kwargs)
        if response.is_success:
            return response

        try:
            body = response.json()
        except ValueError:
            body = None
        error = (body.get("error") if isinstance(body, dict) else None) or {}
        logger.info(f"{method} {url} failed with {response.status_code}: {error.get('code')}")
        raise ApiError(
            status_code=response.status_code,
            code=error.get("code", "error"),
            message=error.get("message", response.reason_phrase),
            details=error.get("details"),
        )

    async def create_issue(
        self,
        fields: Mapping[str, str],
        media: Iterable[MediaArtifact] = (),
    ) -> dict[str, Any]:
        files = media_parts(media)
        response = await self._request("POST", "/issues", data=dict(fields), files=files)
        return response.json()

    async def list_issues(self, **filters: Any) -> list[dict[str, Any]]:
        params = {name: value for name, value in filters.items() if value is not None}
        response = await self._request("GET", "/issues", params=params)
        return response.json()

    async def get_issue(self, issue_id: UUID | str) -> dict[str, Any]:
        response = await self._request("GET", f"/issues/{issue_id}")
        return response.json()

    async def update_issue(
        self,
        issue_id: UUID | str,
        fields: Mapping[str, str],
        media: Iterable[MediaArtifact] = (),
    ) -> dict[str, Any]:
        files = media_parts(media)
        response = await self._request("PUT", f"/issues/{issue_id}", data=dict(fields), files=files)
        return response.json()

    async def delete_issue(self, issue_id: UUID | str) -> None:
        await self._request("DELETE", f"/issues/{issue_id}")

    async def add_comment(self, issue_id: UUID | str, text: str) -> list[dict[str, Any]]:
        response = await self._request("POST", f"/issues/{issue_id}/comments", json={"text": text})
        return response.json()

    async def issues_near(self, lat: float, lng: float, radius: float | None = None) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"lat": lat, "lng": lng}
        if radius is not None:
            params["radius"] = radius
        response = await self._request("GET", "/issues/map", params=params)
        return response.json()

    async def stats(self) -> dict[str, Any]:
        response = await self._request("GET", "/issues/stats")
        return response.json()
