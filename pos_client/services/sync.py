"""
Store Synchronization Service

Holds the latest locally known menu and order list and keeps them in step
with the store server. Presentation code reads ``SyncState`` snapshots and
calls the intent methods (load, open orders, create sample order, mark
waiting pickup, complete).

Rules:
    - Every mutation is followed by a full re-fetch of the order list;
      order statuses are never patched locally.
    - Every error is absorbed here and turned into a user-facing message.
    - All state changes happen on the owning event loop; no locks are used.
    - A menu/orders load that has been superseded by a newer one is
      discarded when it finishes.

Author: Khalil_Bannouri
Version: 1.0.0
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Optional

from pos_client.schemas import (
    CreateOrderItem,
    CreateOrderRequest,
    MenuItem,
    Order,
)
from pos_client.services.api import get_api_client
from pos_client.services.api.base import BaseStoreApiClient
from pos_client.services.api.errors import ApiError

logger = logging.getLogger(__name__)


# Fallback messages, used when an error carries no description
MENU_LOAD_FAILED = (
    "Failed to load the menu. "
    "Check that the server is running and the URL is correct."
)
ORDERS_LOAD_FAILED = "Failed to load orders."
ORDER_CREATE_FAILED = "Failed to create the order."
WAITING_PICKUP_FAILED = "Failed to mark the order as waiting for pickup."
COMPLETE_FAILED = "Failed to complete the order."
EMPTY_MENU = "The menu is empty, so no order can be placed."


@dataclass(frozen=True)
class SyncState:
    """
    Immutable snapshot of everything the presentation layer renders.

    Attributes:
        menu_items: Latest menu, in server order
        orders: Latest order list, in server order
        is_menu_loading: A menu fetch is in flight
        menu_error: Message from the last failed menu fetch
        is_orders_loading: An orders fetch is in flight
        orders_error: Message from the last failed orders operation
        is_posting: A create or status transition call is in flight
        show_orders: The orders view should be visible
    """
    menu_items: tuple[MenuItem, ...] = ()
    orders: tuple[Order, ...] = ()
    is_menu_loading: bool = False
    menu_error: Optional[str] = None
    is_orders_loading: bool = False
    orders_error: Optional[str] = None
    is_posting: bool = False
    show_orders: bool = False


StateListener = Callable[[SyncState], None]


class StoreSyncService:
    """
    Mediates between UI intents and the store API client.

    Example:
        >>> sync = StoreSyncService(MockStoreApiClient())
        >>> sync.subscribe(lambda state: print(state.is_posting))
        >>> await sync.fetch_menu()
        >>> await sync.create_sample_order()
        >>> sync.state.orders[0].status
        'pending'
    """

    def __init__(self, client: Optional[BaseStoreApiClient] = None):
        """
        Args:
            client: Store API client (default: ``get_api_client()``)
        """
        self._client = client if client is not None else get_api_client()
        self._state = SyncState()
        self._listeners: list[StateListener] = []
        self._menu_generation = 0
        self._orders_generation = 0
        self._tasks: set[asyncio.Task] = set()

    # =========================================================================
    # STATE & NOTIFICATION
    # =========================================================================

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def client(self) -> BaseStoreApiClient:
        return self._client

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a listener called with every new state snapshot.

        Returns:
            Callable that unsubscribes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _update(self, **changes) -> None:
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("State listener failed")

    def _describe(self, error: Exception, fallback: str) -> str:
        if isinstance(error, ApiError) and error.description:
            message = error.description
        else:
            message = fallback
        logger.warning(f"{fallback} ({type(error).__name__}: {message})")
        return message

    # =========================================================================
    # MENU
    # =========================================================================

    def load(self) -> asyncio.Task:
        """Schedule a menu fetch on the running loop (view appeared)."""
        loop = asyncio.get_running_loop()
        return self._spawn(loop, self.fetch_menu())

    async def fetch_menu(self) -> None:
        """Fetch the menu, replacing the snapshot on success."""
        self._menu_generation += 1
        generation = self._menu_generation

        self._update(is_menu_loading=True, menu_error=None)
        try:
            menu = await self._client.fetch_menu()
        except Exception as e:
            if generation == self._menu_generation:
                self._update(menu_error=self._describe(e, MENU_LOAD_FAILED))
        else:
            if generation == self._menu_generation:
                self._update(menu_items=tuple(menu))
            else:
                logger.debug(f"Discarding stale menu result #{generation}")
        finally:
            if generation == self._menu_generation:
                self._update(is_menu_loading=False)

    # =========================================================================
    # ORDERS
    # =========================================================================

    def open_orders(self) -> asyncio.Task:
        """Show the orders view and schedule a refresh of the list."""
        loop = asyncio.get_running_loop()
        self._update(show_orders=True)
        return self._spawn(loop, self.fetch_orders())

    def dismiss_orders(self) -> None:
        self._update(show_orders=False)

    async def fetch_orders(self) -> None:
        """Fetch the order list, replacing the snapshot on success."""
        self._orders_generation += 1
        generation = self._orders_generation

        self._update(is_orders_loading=True, orders_error=None)
        try:
            orders = await self._client.list_orders()
        except Exception as e:
            if generation == self._orders_generation:
                self._update(orders_error=self._describe(e, ORDERS_LOAD_FAILED))
        else:
            if generation == self._orders_generation:
                self._update(orders=tuple(orders))
            else:
                logger.debug(f"Discarding stale orders result #{generation}")
        finally:
            if generation == self._orders_generation:
                self._update(is_orders_loading=False)

    async def create_sample_order(self) -> None:
        """
        Order one unit of the first menu item.

        With an empty menu nothing is sent; the orders view is shown with
        an explanation instead.
        """
        if not self._state.menu_items:
            self._update(orders_error=EMPTY_MENU, show_orders=True)
            return

        first = self._state.menu_items[0]
        self._update(is_posting=True)
        try:
            request = CreateOrderRequest(items=[CreateOrderItem(id=first.id, quantity=1)])
            order = await self._client.create_order(request)
            logger.info(f"Sample order {order.id} created")
            await self.fetch_orders()
            self._update(show_orders=True)
        except Exception as e:
            self._update(
                orders_error=self._describe(e, ORDER_CREATE_FAILED),
                show_orders=True,
            )
        finally:
            self._update(is_posting=False)

    async def mark_waiting_pickup(self, order_id: str) -> None:
        await self._transition(
            self._client.mark_waiting_pickup, order_id, WAITING_PICKUP_FAILED
        )

    async def complete(self, order_id: str) -> None:
        await self._transition(self._client.complete_order, order_id, COMPLETE_FAILED)

    async def _transition(
        self,
        call: Callable[[str], Awaitable[Order]],
        order_id: str,
        fallback: str,
    ) -> None:
        self._update(is_posting=True)
        try:
            order = await call(order_id)
            logger.info(f"Order {order_id} is now {order.status}")
            await self.fetch_orders()
        except Exception as e:
            self._update(orders_error=self._describe(e, fallback))
        finally:
            self._update(is_posting=False)

    # =========================================================================
    # TASKS
    # =========================================================================

    def _spawn(
        self, loop: asyncio.AbstractEventLoop, coro: Awaitable[None]
    ) -> asyncio.Task:
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait for every task started by ``load`` / ``open_orders``."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
