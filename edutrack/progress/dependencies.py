"""FastAPI dependencies for progress tracking.

Provides dependency injection for:
- Progress service
- Progress aggregator
- Error handlers
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .aggregator import ProgressAggregator
from .service import (
    ProgressError,
    ProgressService,
)


async def get_progress_service(request: Request) -> ProgressService:
    """Get progress service from app state."""
    app_state = request.app.state
    if not hasattr(app_state, "progress_service") or not app_state.progress_service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Servico de progresso nao disponivel",
        )
    return app_state.progress_service


async def get_progress_aggregator(request: Request) -> ProgressAggregator:
    """Get progress aggregator from app state."""
    app_state = request.app.state
    if not hasattr(app_state, "progress_aggregator") or not app_state.progress_aggregator:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Servico de progresso nao disponivel",
        )
    return app_state.progress_aggregator


# Type aliases for dependency injection
ProgressServiceDep = Annotated[ProgressService, Depends(get_progress_service)]
ProgressAggregatorDep = Annotated[ProgressAggregator, Depends(get_progress_aggregator)]


def handle_progress_error(error: ProgressError) -> HTTPException:
    """Convert progress errors to HTTP exceptions.

    Args:
        error: Progress error

    Returns:
        HTTPException with appropriate status code
    """
    status_map = {
        "rate_limit_exceeded": status.HTTP_429_TOO_MANY_REQUESTS,
        "write_conflict": status.HTTP_409_CONFLICT,
    }

    status_code = status_map.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    return HTTPException(
        status_code=status_code,
        detail=error.message,
    )
