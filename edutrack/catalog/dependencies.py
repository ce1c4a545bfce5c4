"""FastAPI dependencies for the video catalog."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import CatalogError, CatalogService


async def get_catalog_service(request: Request) -> CatalogService:
    """Get catalog service from app state."""
    app_state = request.app.state
    if not hasattr(app_state, "catalog_service") or not app_state.catalog_service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Servico de catalogo nao disponivel",
        )
    return app_state.catalog_service


# Type alias for dependency injection
CatalogServiceDep = Annotated[CatalogService, Depends(get_catalog_service)]


def handle_catalog_error(error: CatalogError) -> HTTPException:
    """Convert catalog errors to HTTP exceptions."""
    status_map = {
        "folder_not_found": status.HTTP_404_NOT_FOUND,
        "video_not_found": status.HTTP_404_NOT_FOUND,
    }

    status_code = status_map.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    return HTTPException(
        status_code=status_code,
        detail=error.message,
    )
