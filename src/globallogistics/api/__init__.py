"""API package."""

from globallogistics.api.routes import router

__all__ = ["router"]
