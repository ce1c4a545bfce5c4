"""Health check module."""

from edutrack.health.router import router


__all__ = ["router"]
