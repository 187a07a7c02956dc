"""
HTTP Store API Client Implementation

Production implementation talking to the ordering service over HTTP with
httpx. Used when ENV_MODE=production or ENV_MODE=staging.

Every endpoint goes through one generic executor, ``_request``, which:
    1. Builds the URL from the store base path and percent-encoded segments
    2. Serializes the optional body as compact JSON
    3. Sends exactly one request (no retries, default transport timeouts)
    4. Decodes a 2xx body or classifies the failure

API Layout:
    GET  /v1/stores/{store_id}/menu
    POST /v1/stores/{store_id}/orders
    GET  /v1/stores/{store_id}/orders
    GET  /v1/stores/{store_id}/orders/{order_id}
    POST /v1/stores/{store_id}/orders/{order_id}/waiting-pickup
    POST /v1/stores/{store_id}/orders/{order_id}/complete

Author: Khalil_Bannouri
Version: 1.0.0
"""

import logging
from enum import Enum
from typing import Optional, Sequence, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from pos_client.core.config import get_settings
from pos_client.schemas import (
    ErrorResponse,
    MenuItem,
    MenuResponse,
    Order,
    OrdersResponse,
)
from pos_client.services.api.base import (
    BaseStoreApiClient,
    OrderItemsInput,
    to_create_request,
)
from pos_client.services.api.errors import (
    ApiError,
    BadURLError,
    DecodingError,
    HttpStatusError,
    ServerError,
    UnderlyingError,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

JSON_CONTENT_TYPE = "application/json"


class Endpoint(str, Enum):
    """Path segments used by the store API."""
    MENU = "menu"
    ORDERS = "orders"
    WAITING_PICKUP = "waiting-pickup"
    COMPLETE = "complete"


class HttpStoreApiClient(BaseStoreApiClient):
    """
    Store API client backed by ``httpx.AsyncClient``.

    The client holds no per-call state; build it once and reuse it.

    Configuration:
        Defaults to API_BASE_URL and STORE_ID from settings.

    Example:
        >>> async with HttpStoreApiClient() as client:
        ...     orders = await client.list_orders()
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        store_id: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the HTTP client.

        Args:
            base_url: Service root, e.g. "http://localhost:8080"
            store_id: Store identifier baked into the resource path
            client: Shared httpx client; the caller keeps ownership of it
            transport: Custom transport for a client created here
        """
        settings = get_settings()

        root = (base_url if base_url is not None else settings.api_base_url).rstrip("/")
        self._store_id = store_id if store_id is not None else settings.store_id
        self._base_url = f"{root}/v1/stores/{self._store_id}"

        if client is not None:
            self._client = client
            self._owns_client = False
        else:
            self._client = httpx.AsyncClient(transport=transport)
            self._owns_client = True

        logger.info(f"HttpStoreApiClient initialized ({self._base_url})")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "http"

    @property
    def base_url(self) -> str:
        return self._base_url

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # =========================================================================
    # ENDPOINTS
    # =========================================================================

    async def fetch_menu(self) -> list[MenuItem]:
        response = await self._request("GET", [Endpoint.MENU.value], MenuResponse)
        return response.menu

    async def create_order(self, items: OrderItemsInput) -> Order:
        return await self._request(
            "POST",
            [Endpoint.ORDERS.value],
            Order,
            body=to_create_request(items),
        )

    async def list_orders(self) -> list[Order]:
        response = await self._request("GET", [Endpoint.ORDERS.value], OrdersResponse)
        return response.orders

    async def get_order(self, order_id: str) -> Order:
        return await self._request("GET", [Endpoint.ORDERS.value, order_id], Order)

    async def mark_waiting_pickup(self, order_id: str) -> Order:
        return await self._request(
            "POST",
            [Endpoint.ORDERS.value, order_id, Endpoint.WAITING_PICKUP.value],
            Order,
        )

    async def complete_order(self, order_id: str) -> Order:
        return await self._request(
            "POST",
            [Endpoint.ORDERS.value, order_id, Endpoint.COMPLETE.value],
            Order,
        )

    # =========================================================================
    # REQUEST EXECUTOR
    # =========================================================================

    def _build_url(self, path: Sequence[str]) -> httpx.URL:
        """Append each segment as a single percent-encoded path component."""
        segments = "/".join(quote(segment, safe="") for segment in path)
        raw = f"{self._base_url}/{segments}"
        try:
            return httpx.URL(raw)
        except httpx.InvalidURL as e:
            raise BadURLError(raw) from e

    def _encode_body(self, body: BaseModel) -> bytes:
        """Compact JSON; forward slashes are not escaped."""
        try:
            return body.model_dump_json(by_alias=True).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise UnderlyingError(e) from e

    async def _request(
        self,
        method: str,
        path: Sequence[str],
        response_model: Type[ModelT],
        body: Optional[BaseModel] = None,
    ) -> ModelT:
        """
        Send one request and decode or classify the response.

        Raises:
            BadURLError: URL could not be built, nothing was sent
            UnderlyingError: body encoding or transport failure
            DecodingError: 2xx with a body not matching ``response_model``
            ServerError: non-2xx with an ``{error, message}`` body
            HttpStatusError: non-2xx with any other body
        """
        url = self._build_url(path)
        headers = {"Accept": JSON_CONTENT_TYPE}
        content = None
        if body is not None:
            headers["Content-Type"] = JSON_CONTENT_TYPE
            content = self._encode_body(body)

        logger.debug(f"{method} {url}")

        try:
            request = self._client.build_request(
                method, url, headers=headers, content=content
            )
            response = await self._client.send(request)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            logger.warning(f"Bad URL for {method} {url}: {e}")
            raise BadURLError(str(url)) from e
        except httpx.HTTPError as e:
            logger.warning(f"Transport error for {method} {url}: {e!r}")
            raise UnderlyingError(e) from e

        return self._handle_response(method, url, response, response_model)

    def _handle_response(
        self,
        method: str,
        url: httpx.URL,
        response: httpx.Response,
        response_model: Type[ModelT],
    ) -> ModelT:
        status = response.status_code

        if 200 <= status <= 299:
            try:
                return response_model.model_validate_json(response.content)
            except ValidationError as e:
                logger.warning(
                    f"Could not decode {response_model.__name__} from "
                    f"{method} {url} ({status})"
                )
                raise DecodingError(e) from e

        error: ApiError
        try:
            error = ServerError(ErrorResponse.model_validate_json(response.content))
        except ValidationError:
            error = HttpStatusError(status)

        logger.warning(f"{method} {url} failed: {error.description}")
        raise error
