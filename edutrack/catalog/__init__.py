"""Video catalog: folders, videos and view counters."""

from edutrack.catalog.models import CATALOG_TABLES_CQL, Video, VideoFolder
from edutrack.catalog.router import router
from edutrack.catalog.service import (
    CatalogError,
    CatalogService,
    FolderNotFoundError,
    VideoNotFoundError,
)


__all__ = [
    "CATALOG_TABLES_CQL",
    "CatalogError",
    "CatalogService",
    "FolderNotFoundError",
    "Video",
    "VideoFolder",
    "VideoNotFoundError",
    "router",
]
