"""
Store API Client Factory

Provides a single entry point for obtaining a store API client.
The factory pattern allows the rest of the application to remain agnostic
about which implementation is being used.

Usage:
    from pos_client.services.api import get_api_client

    # Returns MockStoreApiClient or HttpStoreApiClient based on ENV_MODE
    client = get_api_client()

    menu = await client.fetch_menu()

Environment Switching:
    - ENV_MODE=development → MockStoreApiClient (no network)
    - ENV_MODE=staging → HttpStoreApiClient (test or local server)
    - ENV_MODE=production → HttpStoreApiClient (live server)

Author: Khalil_Bannouri
Version: 1.0.0
"""

import logging
from functools import lru_cache

from pos_client.core.config import get_settings
from pos_client.services.api.base import BaseStoreApiClient
from pos_client.services.api.errors import (
    ApiError,
    BadURLError,
    DecodingError,
    HttpStatusError,
    ServerError,
    UnderlyingError,
)
from pos_client.services.api.http import HttpStoreApiClient
from pos_client.services.api.mock import MockStoreApiClient

logger = logging.getLogger(__name__)


@lru_cache()
def get_api_client() -> BaseStoreApiClient:
    """
    Get the configured store API client.

    The instance is cached so the whole application shares one client
    (and one connection pool).

    Returns:
        BaseStoreApiClient: Configured client instance

    Example:
        >>> client = get_api_client()
        >>> print(client.provider_name)
        'mock'  # In development mode
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Store API: Using MockStoreApiClient (development mode)")
        return MockStoreApiClient(
            failure_rate=settings.mock_failure_rate,
            min_latency=settings.mock_min_latency,
            max_latency=settings.mock_max_latency,
        )

    missing = settings.validate_remote_config()
    if missing:
        logger.warning(f"Store API: Missing configuration {missing}")

    logger.info(
        f"Store API: Using HttpStoreApiClient "
        f"({settings.env_mode.value} mode)"
    )
    return HttpStoreApiClient()


def reset_api_client() -> None:
    """
    Clear the cached client instance.

    Useful for testing or when configuration changes at runtime.
    The caller is responsible for closing the previous instance.
    """
    get_api_client.cache_clear()
    logger.debug("Store API client cache cleared")


__all__ = [
    "get_api_client",
    "reset_api_client",
    "BaseStoreApiClient",
    "HttpStoreApiClient",
    "MockStoreApiClient",
    "ApiError",
    "BadURLError",
    "DecodingError",
    "HttpStatusError",
    "ServerError",
    "UnderlyingError",
]
