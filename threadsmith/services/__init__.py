"""
Services - the checker, the editor core and their collaborators.
"""

# Base service class
from threadsmith.services.base_service import BaseService

# Service factory
from threadsmith.services.service_factory import ServiceFactory

__all__ = [
    'BaseService',
    'ServiceFactory',
]
