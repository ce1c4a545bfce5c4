"""Pydantic schemas for authentication."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class AuthenticatedUser(BaseModel):
    """Identity extracted from a validated access token."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str = ""
    role: str = "user"
    name: str = ""
