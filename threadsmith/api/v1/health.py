from typing import Any, Dict

from fastapi import APIRouter, Depends

from threadsmith.api.deps import get_app_settings, get_checker_gateway
from threadsmith.core.config import Settings
from threadsmith.core.logging import get_logger
from threadsmith.services.checker_gateway import CheckerGateway

router = APIRouter()
logger = get_logger(__name__)


@router.get("")
async def health_check(
    gateway: CheckerGateway = Depends(get_checker_gateway),
    settings: Settings = Depends(get_app_settings),
) -> Dict[str, Any]:
    """
    Health check

    The service itself is healthy whenever it answers; the checker status is
    reported as last observed, without calling the checker.
    """
    checker = gateway.get_status()
    return {
        "status": "healthy",
        "version": settings.version,
        "checker": checker,
    }


@router.get("/live")
async def liveness_check() -> Dict[str, str]:
    """
    Liveness probe

    Simple probe for container orchestrators
    """
    return {"status": "alive"}
