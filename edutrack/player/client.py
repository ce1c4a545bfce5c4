"""HTTP client for the progress API, used by the player library."""

from types import TracebackType
from typing import Any
from uuid import UUID

import httpx
import structlog

from .sync import ProgressSample


logger = structlog.get_logger(__name__)


class ProgressApiError(Exception):
    """Progress API call failed."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ProgressApiClient:
    """Bearer-authenticated client for the progress and bookmark endpoints."""

    def __init__(
        self,
        base_url: str,
        access_token: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ProgressApiClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> Any:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise ProgressApiError("Progress API timeout") from e
        except httpx.RequestError as e:
            raise ProgressApiError(f"Progress API request error: {e}") from e

        if response.status_code != httpx.codes.OK:
            logger.debug(
                "progress_api_request_failed",
                method=method,
                url=url,
                status_code=response.status_code,
                response_text=response.text[:500],
            )
            raise ProgressApiError(
                f"Progress API error: {response.status_code}",
                status_code=response.status_code,
            )

        return response.json()

    # ==========================================================================
    # Progress
    # ==========================================================================

    async def write_progress(self, sample: ProgressSample) -> None:
        """Upsert the progress record of the sample's video."""
        await self._request("PUT", "/v1/progress/video", json=sample.to_payload())

    async def get_progress(self, video_id: UUID) -> dict[str, Any]:
        return await self._request("GET", f"/v1/progress/video/{video_id}")

    async def mark_complete(self, video_id: UUID) -> dict[str, Any]:
        return await self._request("POST", f"/v1/progress/video/{video_id}/complete")

    async def mark_incomplete(self, video_id: UUID) -> dict[str, Any]:
        return await self._request("POST", f"/v1/progress/video/{video_id}/incomplete")

    async def get_watch_stats(self) -> dict[str, Any]:
        return await self._request("GET", "/v1/progress/watch-stats")

    async def get_folder_progress(self, folder_id: UUID) -> dict[str, Any]:
        return await self._request("GET", f"/v1/progress/folders/{folder_id}")

    # ==========================================================================
    # Bookmarks
    # ==========================================================================

    async def set_bookmark(self, video_id: UUID, bookmarked: bool) -> dict[str, Any]:
        """Set the bookmark flag; never sent together with progress."""
        return await self._request(
            "PUT",
            "/v1/bookmarks",
            json={"video_id": str(video_id), "bookmarked": bookmarked},
        )
