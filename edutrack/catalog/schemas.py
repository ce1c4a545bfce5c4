"""Pydantic schemas for the video catalog."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from edutrack.utils.duration import parse_duration

from .models import Video, VideoFolder


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreateFolderRequest(BaseModel):
    """Request to create a video folder (teachers only)."""

    name: str = Field(..., min_length=1, max_length=200)
    subject: str = Field(default="", max_length=100)
    chapter: str = Field(default="", max_length=200)
    description: str = Field(default="", max_length=2000)
    thumbnail: str = Field(default="", max_length=1000)
    is_public: bool = True


class CreateVideoRequest(BaseModel):
    """Request to register an uploaded video in a folder.

    ``duration`` accepts seconds or the ``"MM:SS"`` / ``"HH:MM:SS"`` strings
    typed in the upload form.
    """

    title: str = Field(..., min_length=1, max_length=300)
    description: str = Field(default="", max_length=5000)
    duration: int = Field(..., ge=0, description="Duration in seconds")
    video_url: str = Field(..., min_length=1, max_length=1000)
    thumbnail: str = Field(default="", max_length=1000)

    @field_validator("duration", mode="before")
    @classmethod
    def parse_duration_string(cls, value: object) -> object:
        """Normalize textual durations to seconds."""
        if isinstance(value, str):
            return parse_duration(value)
        return value


# ==============================================================================
# Response Schemas
# ==============================================================================


class VideoResponse(BaseModel):
    """Catalog video."""

    model_config = ConfigDict(from_attributes=True)

    video_id: UUID
    folder_id: UUID
    title: str
    description: str = ""
    duration_seconds: int
    video_url: str
    thumbnail: str = ""
    uploaded_at: datetime
    views: int = 0

    @classmethod
    def from_entity(cls, entity: Video, views: int = 0) -> "VideoResponse":
        """Create response from entity."""
        return cls(
            video_id=entity.video_id,
            folder_id=entity.folder_id,
            title=entity.title,
            description=entity.description,
            duration_seconds=entity.duration_seconds,
            video_url=entity.video_url,
            thumbnail=entity.thumbnail,
            uploaded_at=entity.uploaded_at,
            views=views,
        )


class FolderResponse(BaseModel):
    """Catalog folder with its videos."""

    model_config = ConfigDict(from_attributes=True)

    folder_id: UUID
    name: str
    subject: str
    chapter: str
    description: str
    thumbnail: str
    teacher_id: UUID | None = None
    teacher_name: str = ""
    is_public: bool
    created_at: datetime
    videos: list[VideoResponse] = []

    @classmethod
    def from_entity(
        cls,
        entity: VideoFolder,
        videos: list[VideoResponse] | None = None,
    ) -> "FolderResponse":
        """Create response from entity."""
        return cls(
            folder_id=entity.folder_id,
            name=entity.name,
            subject=entity.subject,
            chapter=entity.chapter,
            description=entity.description,
            thumbnail=entity.thumbnail,
            teacher_id=entity.teacher_id,
            teacher_name=entity.teacher_name,
            is_public=entity.is_public,
            created_at=entity.created_at,
            videos=videos or [],
        )
