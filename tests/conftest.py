import pytest

from pos_client.core.config import get_settings
from pos_client.services.api import reset_api_client


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    reset_api_client()
    yield
    get_settings.cache_clear()
    reset_api_client()
