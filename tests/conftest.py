import pytest

from threadsmith.core.config import get_settings
from threadsmith.services import ServiceFactory


@pytest.fixture(autouse=True)
def _isolate_process_state(monkeypatch):
    monkeypatch.setenv("THREADSMITH_LANGUAGETOOL_URL", "http://checker.test")
    monkeypatch.setenv("THREADSMITH_JSON_LOGS", "false")
    get_settings.cache_clear()
    ServiceFactory.reset()
    yield
    ServiceFactory.reset()
    get_settings.cache_clear()
