"""Video catalog API endpoints.

Provides routes for:
- Public folder listing and folder details
- Video details with view counter
- Folder and video registration (teachers only)
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from edutrack.auth.dependencies import CurrentUser, TeacherUser

from .dependencies import CatalogServiceDep, handle_catalog_error
from .schemas import (
    CreateFolderRequest,
    CreateVideoRequest,
    FolderResponse,
    VideoResponse,
)
from .service import CatalogError, FolderNotFoundError, VideoNotFoundError


router = APIRouter(prefix="/v1/catalog", tags=["catalog"])


async def _folder_response(
    catalog_service: CatalogServiceDep,
    folder_id: UUID,
) -> FolderResponse:
    folder = await catalog_service.get_folder(folder_id)
    if folder is None:
        raise FolderNotFoundError
    videos = await catalog_service.get_folder_videos(folder_id)
    views = await catalog_service.get_view_counts(v.video_id for v in videos)
    return FolderResponse.from_entity(
        folder,
        [VideoResponse.from_entity(v, views.get(v.video_id, 0)) for v in videos],
    )


@router.get(
    "/folders",
    response_model=list[FolderResponse],
    summary="List video folders",
)
async def list_folders(
    catalog_service: CatalogServiceDep,
    _user: CurrentUser,
    subject: str | None = Query(default=None, description="Filter by subject"),
) -> list[FolderResponse]:
    """List public folders, newest first (videos not included)."""
    folders = await catalog_service.list_folders(subject=subject)
    return [FolderResponse.from_entity(folder) for folder in folders]


@router.get(
    "/folders/{folder_id}",
    response_model=FolderResponse,
    summary="Get folder with videos",
)
async def get_folder(
    folder_id: UUID,
    catalog_service: CatalogServiceDep,
    _user: CurrentUser,
) -> FolderResponse:
    """Get a folder and its videos with view counts."""
    try:
        return await _folder_response(catalog_service, folder_id)
    except CatalogError as e:
        raise handle_catalog_error(e) from e


@router.get(
    "/videos/{video_id}",
    response_model=VideoResponse,
    summary="Get video",
)
async def get_video(
    video_id: UUID,
    catalog_service: CatalogServiceDep,
    _user: CurrentUser,
) -> VideoResponse:
    """Get a single video with its view count."""
    video = await catalog_service.get_video(video_id)
    if video is None:
        raise handle_catalog_error(VideoNotFoundError())
    views = await catalog_service.get_view_counts([video_id])
    return VideoResponse.from_entity(video, views.get(video_id, 0))


@router.post(
    "/folders",
    response_model=FolderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create folder",
)
async def create_folder(
    data: CreateFolderRequest,
    catalog_service: CatalogServiceDep,
    user: TeacherUser,
) -> FolderResponse:
    """Create a video folder. Requires TEACHER or ADMIN role."""
    folder = await catalog_service.create_folder(
        data,
        teacher_id=user.id,
        teacher_name=user.name or user.email.split("@")[0],
    )
    return FolderResponse.from_entity(folder)


@router.post(
    "/folders/{folder_id}/videos",
    response_model=VideoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register video",
)
async def create_video(
    folder_id: UUID,
    data: CreateVideoRequest,
    catalog_service: CatalogServiceDep,
    _user: TeacherUser,
) -> VideoResponse:
    """Register an uploaded video in a folder. Requires TEACHER or ADMIN role."""
    try:
        video = await catalog_service.create_video(folder_id, data)
        return VideoResponse.from_entity(video)
    except CatalogError as e:
        raise handle_catalog_error(e) from e
