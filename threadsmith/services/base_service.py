"""
Base service - shared plumbing for every service.
Services are plain objects constructed once and passed by injection; no
hidden module-level state.
"""
from typing import Optional

from threadsmith.core.config import Settings, get_settings
from threadsmith.core.logging import get_logger


class BaseService:
    """
    Base service class.

    Features:
    - Logger bound to the concrete service module
    - Settings access (injectable for tests)
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.logger = get_logger(self.__class__.__module__)
        self.settings = settings or get_settings()

    def __repr__(self):
        return f"<{self.__class__.__name__}>"
