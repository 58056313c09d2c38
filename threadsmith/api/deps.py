from threadsmith.core.config import Settings, get_settings
from threadsmith.services import ServiceFactory
from threadsmith.services.checker_gateway import CheckerGateway


def get_checker_gateway() -> CheckerGateway:
    """Shared checker gateway"""
    return ServiceFactory.get_checker_gateway()


def get_app_settings() -> Settings:
    """Process settings"""
    return get_settings()
