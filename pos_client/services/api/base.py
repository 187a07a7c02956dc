"""
Store API Client Abstract Base Class

Defines the interface contract for all store API client implementations.
Both MockStoreApiClient and HttpStoreApiClient must implement these methods,
ensuring consistent behavior regardless of which client is active.

Contract shared by every operation:
    - Each call is independent and stateless
    - Identifiers must be non-empty strings (caller precondition, not checked)
    - Failures are raised as ApiError subclasses, never recovered here

Author: Khalil_Bannouri
Version: 1.0.0
"""

from abc import ABC, abstractmethod
from typing import Sequence, Union

from pydantic import ValidationError

from pos_client.schemas import (
    CreateOrderItem,
    CreateOrderRequest,
    MenuItem,
    Order,
)
from pos_client.services.api.errors import UnderlyingError

OrderItemsInput = Union[CreateOrderRequest, Sequence[CreateOrderItem]]


def to_create_request(items: OrderItemsInput) -> CreateOrderRequest:
    """
    Normalize ``create_order`` input to a request body.

    Raises:
        UnderlyingError: the items could not be turned into a request body
    """
    if isinstance(items, CreateOrderRequest):
        return items
    try:
        return CreateOrderRequest(items=list(items))
    except (ValidationError, TypeError) as e:
        raise UnderlyingError(e) from e


class BaseStoreApiClient(ABC):
    """
    Abstract base class for store API clients.

    Example:
        >>> client = get_api_client()  # Returns Mock or HTTP client
        >>> menu = await client.fetch_menu()
        >>> order = await client.create_order(
        ...     [CreateOrderItem(id=menu[0].id, quantity=1)]
        ... )
        >>> order = await client.mark_waiting_pickup(order.id)
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the client implementation.

        Returns:
            str: Provider name (e.g., "mock", "http")
        """
        pass

    @abstractmethod
    async def fetch_menu(self) -> list[MenuItem]:
        """
        GET {base}/menu

        Returns:
            list[MenuItem]: The store's menu in server order
        """
        pass

    @abstractmethod
    async def create_order(self, items: OrderItemsInput) -> Order:
        """
        POST {base}/orders

        Args:
            items: A CreateOrderRequest or a sequence of CreateOrderItem

        Returns:
            Order: The order as created by the server
        """
        pass

    @abstractmethod
    async def list_orders(self) -> list[Order]:
        """
        GET {base}/orders

        Returns:
            list[Order]: Every order known to the store
        """
        pass

    @abstractmethod
    async def get_order(self, order_id: str) -> Order:
        """GET {base}/orders/{order_id}"""
        pass

    @abstractmethod
    async def mark_waiting_pickup(self, order_id: str) -> Order:
        """POST {base}/orders/{order_id}/waiting-pickup"""
        pass

    @abstractmethod
    async def complete_order(self, order_id: str) -> Order:
        """POST {base}/orders/{order_id}/complete"""
        pass

    async def aclose(self) -> None:
        """Release any resources held by the client."""
        return None

    async def __aenter__(self) -> "BaseStoreApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
