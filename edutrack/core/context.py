"""Per-request logging context.

``RequestContextMiddleware`` sets the request and trace IDs, the auth
dependency sets the user, and progress routes set the video. Every structlog
event emitted meanwhile carries them (see ``add_context_processor``).
"""

from contextvars import ContextVar
from typing import Any
from uuid import UUID, uuid4


request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)
video_id_var: ContextVar[str | None] = ContextVar("video_id", default=None)
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)

_CONTEXT_VARS: dict[str, ContextVar[str | None]] = {
    "request_id": request_id_var,
    "user_id": user_id_var,
    "video_id": video_id_var,
    "trace_id": trace_id_var,
}


def _as_str(value: str | UUID | None) -> str | None:
    return str(value) if value is not None else None


def set_request_id(request_id: str | None = None) -> str:
    """Use the caller's request ID, or generate one. Returns the ID in use."""
    rid = request_id or str(uuid4())
    request_id_var.set(rid)
    return rid


def get_request_id() -> str | None:
    return request_id_var.get()


def set_user_id(user_id: str | UUID | None) -> None:
    user_id_var.set(_as_str(user_id))


def get_user_id() -> str | None:
    return user_id_var.get()


def set_video_id(video_id: str | UUID | None) -> None:
    """Video whose progress the current request reads or writes."""
    video_id_var.set(_as_str(video_id))


def get_video_id() -> str | None:
    return video_id_var.get()


def set_trace_id(trace_id: str | None) -> None:
    trace_id_var.set(trace_id)


def get_trace_id() -> str | None:
    return trace_id_var.get()


def get_context() -> dict[str, Any]:
    """Non-empty context values, keyed by log field name."""
    return {name: var.get() for name, var in _CONTEXT_VARS.items() if var.get()}


def clear_context() -> None:
    """Reset everything; called when a request finishes."""
    for var in _CONTEXT_VARS.values():
        var.set(None)
