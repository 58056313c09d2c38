"""
Service factory - one place that wires the process-wide services.

The gateway (and with it the response cache and HTTP client), the custom
dictionary and the persistence backend are shared per process. Orchestrators
are per thread and built on top of them.
"""
from functools import lru_cache
from typing import TYPE_CHECKING, Optional

# Avoid import cycles at module load
if TYPE_CHECKING:
    from threadsmith.services.checker_gateway import CheckerGateway
    from threadsmith.services.custom_dictionary import CustomDictionary
    from threadsmith.services.persistence import SegmentPersistence
    from threadsmith.services.segment_orchestrator import SegmentOrchestrator


class ServiceFactory:
    """
    Uniform access to the shared services.

    Each getter returns the same instance for the life of the process until
    ``reset`` is called.
    """

    @staticmethod
    @lru_cache()
    def get_checker_gateway() -> 'CheckerGateway':
        """Shared checker gateway"""
        from threadsmith.services.checker_gateway import CheckerGateway
        return CheckerGateway()

    @staticmethod
    @lru_cache()
    def get_custom_dictionary() -> 'CustomDictionary':
        """Shared custom dictionary"""
        from threadsmith.services.custom_dictionary import CustomDictionary
        return CustomDictionary()

    @staticmethod
    @lru_cache()
    def get_persistence() -> 'SegmentPersistence':
        """Shared persistence backend (in-memory by default)"""
        from threadsmith.services.persistence import InMemoryPersistence
        return InMemoryPersistence()

    @staticmethod
    def create_orchestrator(
        thread_id: Optional[str] = None,
        title: Optional[str] = None,
    ) -> 'SegmentOrchestrator':
        """New orchestrator for one thread, wired to the shared services"""
        from threadsmith.services.segment_orchestrator import DEFAULT_THREAD_TITLE, SegmentOrchestrator
        return SegmentOrchestrator(
            gateway=ServiceFactory.get_checker_gateway(),
            dictionary=ServiceFactory.get_custom_dictionary(),
            persistence=ServiceFactory.get_persistence(),
            thread_id=thread_id,
            title=title or DEFAULT_THREAD_TITLE,
        )

    @staticmethod
    async def shutdown() -> None:
        """Close the shared HTTP client, if the gateway was ever created"""
        if ServiceFactory.get_checker_gateway.cache_info().currsize:
            await ServiceFactory.get_checker_gateway().aclose()

    @staticmethod
    def reset() -> None:
        """Forget every shared instance"""
        ServiceFactory.get_checker_gateway.cache_clear()
        ServiceFactory.get_custom_dictionary.cache_clear()
        ServiceFactory.get_persistence.cache_clear()
