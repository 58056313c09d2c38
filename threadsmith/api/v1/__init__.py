"""Version 1 API routers."""

from . import health, segments, suggestions

__all__ = ["health", "segments", "suggestions"]
