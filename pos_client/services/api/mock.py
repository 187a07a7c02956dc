"""
Mock Store API Client Implementation

Simulates the ordering service in memory without making HTTP calls.
Used in development mode (ENV_MODE=development) to:
    - Exercise the complete order lifecycle locally
    - Develop without a running store server
    - Reproduce error paths deterministically

Behavior:
    - Simulates configurable response times
    - Randomly fails a share of calls with a connection error
    - Enforces the server's status lifecycle:
        pending -> waiting-pickup -> completed, or pending -> completed
    - Answers bad input with the same structured errors the server uses

Author: Khalil_Bannouri
Version: 1.0.0
"""

import asyncio
import logging
import random
from datetime import datetime, timezone
from typing import Optional, Sequence

from pos_client.schemas import (
    ErrorResponse,
    MenuItem,
    Order,
    OrderItem,
    OrderStatus,
)
from pos_client.services.api.base import (
    BaseStoreApiClient,
    OrderItemsInput,
    to_create_request,
)
from pos_client.services.api.errors import ServerError, UnderlyingError

logger = logging.getLogger(__name__)


DEFAULT_MENU = [
    MenuItem(id="burger-01", name="Cheeseburger", description="Beef patty, cheddar, pickles"),
    MenuItem(id="burger-02", name="Chicken Burger", description="Crispy chicken, slaw, mayo"),
    MenuItem(id="side-01", name="French Fries", description="Salted, medium portion"),
    MenuItem(id="drink-01", name="Iced Coffee", description="Cold brew over ice"),
]

# Allowed source statuses for each transition
TRANSITIONS = {
    OrderStatus.WAITING_PICKUP: {OrderStatus.PENDING.value},
    OrderStatus.COMPLETED: {OrderStatus.PENDING.value, OrderStatus.WAITING_PICKUP.value},
}


class MockStoreApiClient(BaseStoreApiClient):
    """
    In-memory implementation of the store API.

    Attributes:
        failure_rate: Probability of a simulated connection failure (0.0-1.0)
        min_latency: Minimum simulated response time in seconds
        max_latency: Maximum simulated response time in seconds

    Example:
        >>> client = MockStoreApiClient(failure_rate=0.0)
        >>> menu = await client.fetch_menu()
        >>> order = await client.create_order([CreateOrderItem(id=menu[0].id)])
        >>> order.status
        'pending'
    """

    def __init__(
        self,
        menu: Optional[Sequence[MenuItem]] = None,
        failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.0,
        seed: Optional[int] = None,
    ):
        """
        Initialize the mock store.

        Args:
            menu: Menu served by the store (default: DEFAULT_MENU)
            failure_rate: Probability of a simulated failure (default: 0%)
            min_latency: Minimum response time in seconds
            max_latency: Maximum response time in seconds
            seed: Seed for latency and failure simulation
        """
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency

        self._menu = list(DEFAULT_MENU if menu is None else menu)
        self._orders: dict[str, Order] = {}
        self._sequence = 0
        self._random = random.Random(seed)

        logger.info(
            f"MockStoreApiClient initialized "
            f"(failure_rate={failure_rate:.0%}, "
            f"latency={min_latency}-{max_latency}s, "
            f"menu_items={len(self._menu)})"
        )

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "mock"

    # =========================================================================
    # SIMULATION HELPERS
    # =========================================================================

    async def _simulate_call(self, operation: str) -> None:
        """Sleep for a random latency, then maybe fail like a dropped connection."""
        latency = self._random.uniform(self.min_latency, self.max_latency)
        if latency > 0:
            await asyncio.sleep(latency)

        if self._random.random() < self.failure_rate:
            logger.debug(f"Mock: Simulated connection failure during {operation}")
            raise UnderlyingError(
                ConnectionError("Could not connect to the server.")
            )

    def _generate_order_id(self) -> str:
        self._sequence += 1
        return f"order-{self._sequence:04d}"

    def _lookup(self, order_id: str) -> Order:
        order = self._orders.get(order_id)
        if order is None:
            raise ServerError(ErrorResponse(error="not_found", message="order not found"))
        return order

    def _transition(self, order_id: str, target: OrderStatus) -> Order:
        order = self._lookup(order_id)
        if order.status not in TRANSITIONS[target]:
            raise ServerError(ErrorResponse(
                error="invalid_transition",
                message=f"cannot move order from {order.status} to {target.value}",
            ))

        updated = order.model_copy(update={"status": target.value})
        self._orders[order_id] = updated
        logger.info(f"Mock: Order {order_id} {order.status} -> {target.value}")
        return updated.model_copy(deep=True)

    # =========================================================================
    # ENDPOINTS
    # =========================================================================

    async def fetch_menu(self) -> list[MenuItem]:
        await self._simulate_call("fetch_menu")
        return list(self._menu)

    async def create_order(self, items: OrderItemsInput) -> Order:
        request = to_create_request(items)
        await self._simulate_call("create_order")

        if not request.items:
            raise ServerError(ErrorResponse(
                error="invalid_request",
                message="order must contain at least one item",
            ))

        menu_by_id = {item.id: item for item in self._menu}
        lines = []
        for line in request.items:
            menu_item = menu_by_id.get(line.id)
            if menu_item is None:
                raise ServerError(ErrorResponse(
                    error="invalid_request",
                    message=f"unknown menu item: {line.id}",
                ))
            lines.append(OrderItem(id=line.id, name=menu_item.name, quantity=line.quantity))

        order = Order(
            id=self._generate_order_id(),
            status=OrderStatus.PENDING.value,
            items=lines,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        self._orders[order.id] = order

        logger.info(f"Mock: Order created - {order.id} ({len(lines)} item(s))")
        return order.model_copy(deep=True)

    async def list_orders(self) -> list[Order]:
        await self._simulate_call("list_orders")
        return [order.model_copy(deep=True) for order in self._orders.values()]

    async def get_order(self, order_id: str) -> Order:
        await self._simulate_call("get_order")
        return self._lookup(order_id).model_copy(deep=True)

    async def mark_waiting_pickup(self, order_id: str) -> Order:
        await self._simulate_call("mark_waiting_pickup")
        return self._transition(order_id, OrderStatus.WAITING_PICKUP)

    async def complete_order(self, order_id: str) -> Order:
        await self._simulate_call("complete_order")
        return self._transition(order_id, OrderStatus.COMPLETED)
