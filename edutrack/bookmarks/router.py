"""Video bookmark API endpoints.

Bookmarks are a separate flag per (user, video); they are never combined with
progress payloads.
"""

from fastapi import APIRouter

from edutrack.auth.dependencies import CurrentUser
from edutrack.catalog.dependencies import handle_catalog_error
from edutrack.catalog.service import CatalogError

from .dependencies import BookmarkServiceDep
from .schemas import BookmarkResponse, SetBookmarkRequest


router = APIRouter(prefix="/v1/bookmarks", tags=["bookmarks"])


@router.put(
    "",
    response_model=BookmarkResponse,
    summary="Set bookmark",
)
async def set_bookmark(
    data: SetBookmarkRequest,
    bookmark_service: BookmarkServiceDep,
    user: CurrentUser,
) -> BookmarkResponse:
    """Set or clear the bookmark of a video."""
    try:
        bookmark = await bookmark_service.set_bookmark(
            user_id=user.id,
            video_id=data.video_id,
            bookmarked=data.bookmarked,
        )
        return BookmarkResponse.from_entity(bookmark)
    except CatalogError as e:
        raise handle_catalog_error(e) from e


@router.get(
    "",
    response_model=list[BookmarkResponse],
    summary="List bookmarks",
)
async def list_bookmarks(
    bookmark_service: BookmarkServiceDep,
    user: CurrentUser,
) -> list[BookmarkResponse]:
    """Bookmarked videos of the current user, most recent first."""
    bookmarks = await bookmark_service.list_bookmarks(user.id)
    return [BookmarkResponse.from_entity(b) for b in bookmarks]
