"""Video watch progress API endpoints.

Provides routes for:
- Progress samples from the player (upsert with completion guard)
- Manual completion toggle
- Folder statistics, account watch time, continue watching
"""

from uuid import UUID

from fastapi import APIRouter, Query

from edutrack.auth.dependencies import CurrentUser
from edutrack.catalog.dependencies import handle_catalog_error
from edutrack.catalog.service import CatalogError
from edutrack.core.context import set_video_id

from .aggregator import CONTINUE_WATCHING_LIMIT
from .dependencies import (
    ProgressAggregatorDep,
    ProgressServiceDep,
    handle_progress_error,
)
from .schemas import (
    FolderProgressResponse,
    ProgressRecordResponse,
    ProgressSampleRequest,
    VideoProgressItem,
    WatchStatsResponse,
)
from .service import ProgressError


router = APIRouter(prefix="/v1/progress", tags=["progress"])


# ==============================================================================
# Video Progress Endpoints
# ==============================================================================


@router.put(
    "/video",
    response_model=ProgressRecordResponse,
    summary="Store progress sample",
)
async def update_video_progress(
    data: ProgressSampleRequest,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> ProgressRecordResponse:
    """Store a progress sample.

    Called by the player every 30 seconds while playing, on the end event and
    when the player closes. A completed video is never un-completed here.
    """
    set_video_id(data.video_id)
    try:
        record = await progress_service.record_sample(
            user_id=user.id,
            video_id=data.video_id,
            watched_percentage=data.watched_percentage,
            watched_seconds=data.watched_seconds,
            completed=data.completed,
        )
        return ProgressRecordResponse.from_entity(record)
    except CatalogError as e:
        raise handle_catalog_error(e) from e
    except ProgressError as e:
        raise handle_progress_error(e) from e


@router.get(
    "/video/{video_id}",
    response_model=ProgressRecordResponse,
    summary="Get video progress",
)
async def get_video_progress(
    video_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> ProgressRecordResponse:
    """Get progress of one video (zeros if never watched)."""
    record = await progress_service.get_progress(user.id, video_id)
    if record is None:
        return ProgressRecordResponse.empty(video_id)
    return ProgressRecordResponse.from_entity(record)


# ==============================================================================
# Completion Toggle Endpoints
# ==============================================================================


@router.post(
    "/video/{video_id}/complete",
    response_model=ProgressRecordResponse,
    summary="Mark video complete",
)
async def mark_video_complete(
    video_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> ProgressRecordResponse:
    """Mark a video as watched (100%). Calling it again changes nothing."""
    set_video_id(video_id)
    try:
        record = await progress_service.mark_complete(user.id, video_id)
        return ProgressRecordResponse.from_entity(record)
    except CatalogError as e:
        raise handle_catalog_error(e) from e


@router.post(
    "/video/{video_id}/incomplete",
    response_model=ProgressRecordResponse,
    summary="Mark video incomplete",
)
async def mark_video_incomplete(
    video_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> ProgressRecordResponse:
    """Reset a video to unwatched; partial progress is discarded."""
    set_video_id(video_id)
    try:
        record = await progress_service.mark_incomplete(user.id, video_id)
        return ProgressRecordResponse.from_entity(record)
    except CatalogError as e:
        raise handle_catalog_error(e) from e


# ==============================================================================
# Aggregate Endpoints
# ==============================================================================


@router.get(
    "/folders",
    response_model=list[FolderProgressResponse],
    summary="List folders with progress",
)
async def list_folder_progress(
    aggregator: ProgressAggregatorDep,
    user: CurrentUser,
    subject: str | None = Query(default=None, description="Filter by subject"),
) -> list[FolderProgressResponse]:
    """Public folders with the user's completion statistics."""
    results = await aggregator.list_folder_progress(user.id, subject=subject)
    return [
        FolderProgressResponse.from_stats(folder, stats, items)
        for folder, stats, items in results
    ]


@router.get(
    "/folders/{folder_id}",
    response_model=FolderProgressResponse,
    summary="Get folder progress",
)
async def get_folder_progress(
    folder_id: UUID,
    aggregator: ProgressAggregatorDep,
    user: CurrentUser,
) -> FolderProgressResponse:
    """One folder with statistics and per-video progress."""
    try:
        folder, stats, items = await aggregator.folder_progress(user.id, folder_id)
        return FolderProgressResponse.from_stats(folder, stats, items)
    except CatalogError as e:
        raise handle_catalog_error(e) from e


@router.get(
    "/watch-stats",
    response_model=WatchStatsResponse,
    summary="Get account watch time",
)
async def get_watch_stats(
    aggregator: ProgressAggregatorDep,
    user: CurrentUser,
) -> WatchStatsResponse:
    """Total watch time across every video that still exists."""
    stats = await aggregator.account_stats(user.id)
    return WatchStatsResponse.from_stats(stats)


@router.get(
    "/continue-watching",
    response_model=list[VideoProgressItem],
    summary="Continue watching",
)
async def continue_watching(
    aggregator: ProgressAggregatorDep,
    user: CurrentUser,
    limit: int = Query(default=CONTINUE_WATCHING_LIMIT, ge=1, le=50),
) -> list[VideoProgressItem]:
    """Started, unfinished videos, most recently watched first."""
    items = await aggregator.continue_watching(user.id, limit=limit)
    return [VideoProgressItem.from_item(item) for item in items]


@router.get(
    "/bookmarked",
    response_model=list[VideoProgressItem],
    summary="Bookmarked videos with progress",
)
async def bookmarked_videos(
    aggregator: ProgressAggregatorDep,
    user: CurrentUser,
) -> list[VideoProgressItem]:
    """Bookmarked videos joined with catalog data and progress."""
    items = await aggregator.bookmarked_videos(user.id)
    return [VideoProgressItem.from_item(item) for item in items]
