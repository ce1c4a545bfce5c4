"""Authentication: bearer token validation and role checks."""

from edutrack.auth.dependencies import CurrentUser, TeacherUser, get_current_user
from edutrack.auth.permissions import UserRole, has_permission
from edutrack.auth.schemas import AuthenticatedUser


__all__ = [
    "AuthenticatedUser",
    "CurrentUser",
    "TeacherUser",
    "UserRole",
    "get_current_user",
    "has_permission",
]
