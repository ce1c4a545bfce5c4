"""FastAPI dependencies for video bookmarks."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import BookmarkService


async def get_bookmark_service(request: Request) -> BookmarkService:
    """Get bookmark service from app state."""
    app_state = request.app.state
    if not hasattr(app_state, "bookmark_service") or not app_state.bookmark_service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Servico de favoritos nao disponivel",
        )
    return app_state.bookmark_service


# Type alias for dependency injection
BookmarkServiceDep = Annotated[BookmarkService, Depends(get_bookmark_service)]
