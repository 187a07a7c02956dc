import asyncio

import pytest

from pos_client.schemas import (
    CreateOrderItem,
    CreateOrderRequest,
    ErrorResponse,
    MenuItem,
    Order,
)
from pos_client.services.api import (
    HttpStatusError,
    MockStoreApiClient,
    ServerError,
    UnderlyingError,
)
from pos_client.services.api.base import BaseStoreApiClient
from pos_client.services.sync import (
    COMPLETE_FAILED,
    EMPTY_MENU,
    MENU_LOAD_FAILED,
    ORDER_CREATE_FAILED,
    ORDERS_LOAD_FAILED,
    WAITING_PICKUP_FAILED,
    StoreSyncService,
    SyncState,
)

MENU = [
    MenuItem(id="a", name="Cheeseburger", description="Beef patty"),
    MenuItem(id="b", name="Fries", description="Salted"),
]


class FakeStoreClient(BaseStoreApiClient):
    """Records every call; ``errors`` maps an operation name to the exception it raises."""

    def __init__(self, menu=None, orders=None):
        self.menu = list(menu or [])
        self.orders = list(orders or [])
        self.errors = {}
        self.calls = []

    @property
    def provider_name(self):
        return "fake"

    def _record(self, name, *args):
        self.calls.append((name, *args))
        if name in self.errors:
            raise self.errors[name]

    async def fetch_menu(self):
        self._record("fetch_menu")
        return list(self.menu)

    async def create_order(self, items):
        self._record("create_order", items)
        return Order(id="new", status="pending")

    async def list_orders(self):
        self._record("list_orders")
        return list(self.orders)

    async def get_order(self, order_id):
        self._record("get_order", order_id)
        return Order(id=order_id, status="pending")

    async def mark_waiting_pickup(self, order_id):
        self._record("mark_waiting_pickup", order_id)
        return Order(id=order_id, status="waiting-pickup")

    async def complete_order(self, order_id):
        self._record("complete_order", order_id)
        return Order(id=order_id, status="completed")


def make_sync(client):
    sync = StoreSyncService(client)
    history = []
    sync.subscribe(history.append)
    return sync, history


# =============================================================================
# MENU
# =============================================================================

def test_fetch_menu_replaces_snapshot():
    client = FakeStoreClient(menu=MENU)
    sync, history = make_sync(client)

    asyncio.run(sync.fetch_menu())

    assert sync.state.menu_items == tuple(MENU)
    assert sync.state.menu_error is None
    assert sync.state.is_menu_loading is False
    assert any(s.is_menu_loading for s in history)


def test_fetch_menu_failure_uses_error_description():
    client = FakeStoreClient()
    client.errors["fetch_menu"] = ServerError(ErrorResponse(error="closed", message="store is closed"))
    sync, _ = make_sync(client)

    asyncio.run(sync.fetch_menu())

    assert sync.state.menu_error == "closed: store is closed"
    assert sync.state.is_menu_loading is False


def test_fetch_menu_failure_without_description_uses_fallback():
    client = FakeStoreClient()
    client.errors["fetch_menu"] = UnderlyingError(ConnectionError())
    sync, _ = make_sync(client)

    asyncio.run(sync.fetch_menu())

    assert sync.state.menu_error == MENU_LOAD_FAILED
    assert sync.state.is_menu_loading is False


def test_fetch_menu_unclassified_error_uses_fallback():
    client = FakeStoreClient()
    client.errors["fetch_menu"] = RuntimeError("boom")
    sync, _ = make_sync(client)

    asyncio.run(sync.fetch_menu())

    assert sync.state.menu_error == MENU_LOAD_FAILED


def test_fetch_menu_clears_previous_error():
    client = FakeStoreClient(menu=MENU)
    client.errors["fetch_menu"] = RuntimeError("boom")
    sync, _ = make_sync(client)

    asyncio.run(sync.fetch_menu())
    del client.errors["fetch_menu"]
    asyncio.run(sync.fetch_menu())

    assert sync.state.menu_error is None
    assert sync.state.menu_items == tuple(MENU)


def test_menu_loading_flag_cleared_exactly_once_per_fetch():
    client = FakeStoreClient()
    client.errors["fetch_menu"] = RuntimeError("boom")
    sync, history = make_sync(client)

    asyncio.run(sync.fetch_menu())

    flags = [s.is_menu_loading for s in history]
    assert flags[0] is True
    assert flags[-1] is False
    transitions = [b for a, b in zip(flags, flags[1:]) if a != b]
    assert transitions == [False]


def test_load_schedules_menu_fetch():
    client = FakeStoreClient(menu=MENU)
    sync, _ = make_sync(client)

    async def scenario():
        task = sync.load()
        await task

    asyncio.run(scenario())

    assert sync.state.menu_items == tuple(MENU)


# =============================================================================
# ORDERS
# =============================================================================

def test_fetch_orders_replaces_snapshot():
    orders = [Order(id="o1", status="pending"), Order(id="o2", status="completed")]
    sync, _ = make_sync(FakeStoreClient(orders=orders))

    asyncio.run(sync.fetch_orders())

    assert sync.state.orders == tuple(orders)
    assert sync.state.is_orders_loading is False


def test_fetch_orders_failure_sets_orders_error_only():
    client = FakeStoreClient()
    client.errors["list_orders"] = RuntimeError("boom")
    sync, _ = make_sync(client)

    asyncio.run(sync.fetch_orders())

    assert sync.state.orders_error == ORDERS_LOAD_FAILED
    assert sync.state.menu_error is None
    assert sync.state.is_orders_loading is False


def test_open_orders_shows_view_and_fetches():
    orders = [Order(id="o1", status="pending")]
    sync, _ = make_sync(FakeStoreClient(orders=orders))

    async def scenario():
        sync.open_orders()
        assert sync.state.show_orders is True
        await sync.wait_idle()

    asyncio.run(scenario())

    assert sync.state.orders == tuple(orders)
    sync.dismiss_orders()
    assert sync.state.show_orders is False


def test_open_orders_outside_event_loop_changes_nothing():
    client = FakeStoreClient()
    sync, history = make_sync(client)

    with pytest.raises(RuntimeError):
        sync.open_orders()

    assert sync.state.show_orders is False
    assert history == []
    assert client.calls == []


# =============================================================================
# SAMPLE ORDER
# =============================================================================

def test_create_sample_order_sends_first_menu_item_once():
    client = FakeStoreClient(menu=[MENU[0]], orders=[Order(id="new", status="pending")])
    sync, history = make_sync(client)
    asyncio.run(sync.fetch_menu())
    client.calls.clear()

    asyncio.run(sync.create_sample_order())

    assert client.calls[0] == (
        "create_order",
        CreateOrderRequest(items=[CreateOrderItem(id="a", quantity=1)]),
    )
    assert client.calls[1] == ("list_orders",)
    assert sync.state.orders == (Order(id="new", status="pending"),)
    assert sync.state.show_orders is True
    assert sync.state.is_posting is False
    assert any(s.is_posting for s in history)


def test_create_sample_order_uses_first_of_several_items():
    client = FakeStoreClient(menu=MENU)
    sync, _ = make_sync(client)
    asyncio.run(sync.fetch_menu())

    asyncio.run(sync.create_sample_order())

    request = client.calls[1][1]
    assert [(i.id, i.quantity) for i in request.items] == [("a", 1)]


def test_create_sample_order_sends_menu_item_with_empty_id():
    client = FakeStoreClient(menu=[MenuItem(id="", name="Mystery", description="Chef's choice")])
    sync, _ = make_sync(client)
    asyncio.run(sync.fetch_menu())
    client.calls.clear()

    asyncio.run(sync.create_sample_order())

    assert client.calls[0] == (
        "create_order",
        CreateOrderRequest(items=[CreateOrderItem(id="", quantity=1)]),
    )
    assert sync.state.orders_error is None


def test_create_sample_order_with_empty_menu_makes_no_call():
    client = FakeStoreClient()
    sync, history = make_sync(client)

    asyncio.run(sync.create_sample_order())

    assert client.calls == []
    assert sync.state.orders_error == EMPTY_MENU
    assert sync.state.show_orders is True
    assert not any(s.is_posting for s in history)


def test_create_sample_order_failure_shows_orders_with_error():
    client = FakeStoreClient(menu=MENU)
    sync, _ = make_sync(client)
    asyncio.run(sync.fetch_menu())
    client.errors["create_order"] = UnderlyingError(ConnectionError())
    client.calls.clear()

    asyncio.run(sync.create_sample_order())

    assert client.calls == [("create_order", CreateOrderRequest(items=[CreateOrderItem(id="a")]))]
    assert sync.state.orders_error == ORDER_CREATE_FAILED
    assert sync.state.show_orders is True
    assert sync.state.is_posting is False


# =============================================================================
# TRANSITIONS
# =============================================================================

def test_mark_waiting_pickup_refetches_instead_of_patching():
    server_truth = [Order(id="o1", status="completed"), Order(id="o2", status="pending")]
    client = FakeStoreClient(orders=server_truth)
    sync, _ = make_sync(client)

    asyncio.run(sync.mark_waiting_pickup("o1"))

    assert client.calls == [("mark_waiting_pickup", "o1"), ("list_orders",)]
    assert sync.state.orders == tuple(server_truth)
    assert sync.state.is_posting is False
    assert sync.state.show_orders is False


def test_complete_refetches_instead_of_patching():
    server_truth = [Order(id="o1", status="waiting-pickup")]
    client = FakeStoreClient(orders=server_truth)
    sync, _ = make_sync(client)

    asyncio.run(sync.complete("o1"))

    assert client.calls == [("complete_order", "o1"), ("list_orders",)]
    assert sync.state.orders == tuple(server_truth)


def test_transition_failure_sets_error_without_refetch_or_view_change():
    client = FakeStoreClient()
    client.errors["mark_waiting_pickup"] = HttpStatusError(500)
    sync, _ = make_sync(client)

    asyncio.run(sync.mark_waiting_pickup("o1"))

    assert client.calls == [("mark_waiting_pickup", "o1")]
    assert sync.state.orders_error == "HTTP status error: 500"
    assert sync.state.show_orders is False
    assert sync.state.is_posting is False


def test_complete_failure_without_description_uses_fallback():
    client = FakeStoreClient()
    client.errors["complete_order"] = RuntimeError("boom")
    sync, _ = make_sync(client)

    asyncio.run(sync.complete("o1"))

    assert sync.state.orders_error == COMPLETE_FAILED


def test_waiting_pickup_fallback_message():
    client = FakeStoreClient()
    client.errors["mark_waiting_pickup"] = UnderlyingError(TimeoutError())
    sync, _ = make_sync(client)

    asyncio.run(sync.mark_waiting_pickup("o1"))

    assert sync.state.orders_error == WAITING_PICKUP_FAILED


# =============================================================================
# STALE RESULTS & NOTIFICATION
# =============================================================================

class SlowOrdersClient(FakeStoreClient):
    """``list_orders`` answers are released by the test, in any order."""

    def __init__(self):
        super().__init__()
        self.pending = []

    async def list_orders(self):
        gate = asyncio.Event()
        result = []
        self.pending.append((gate, result))
        await gate.wait()
        return result


def test_superseded_orders_fetch_does_not_overwrite_newer_result():
    client = SlowOrdersClient()
    sync, _ = make_sync(client)

    async def scenario():
        first = asyncio.create_task(sync.fetch_orders())
        second = asyncio.create_task(sync.fetch_orders())
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        (gate1, result1), (gate2, result2) = client.pending
        result2.append(Order(id="fresh", status="pending"))
        gate2.set()
        await second
        result1.append(Order(id="stale", status="pending"))
        gate1.set()
        await first

    asyncio.run(scenario())

    assert [o.id for o in sync.state.orders] == ["fresh"]
    assert sync.state.is_orders_loading is False


def test_superseded_orders_fetch_keeps_loading_flag_until_newest_finishes():
    client = SlowOrdersClient()
    sync, _ = make_sync(client)

    async def scenario():
        first = asyncio.create_task(sync.fetch_orders())
        second = asyncio.create_task(sync.fetch_orders())
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        (gate1, _), (gate2, _) = client.pending
        gate1.set()
        await first
        still_loading = sync.state.is_orders_loading
        gate2.set()
        await second
        return still_loading

    assert asyncio.run(scenario()) is True
    assert sync.state.is_orders_loading is False


class SlowMenuClient(FakeStoreClient):
    """``fetch_menu`` answers are released by the test; an outcome may be an exception."""

    def __init__(self):
        super().__init__()
        self.pending = []

    async def fetch_menu(self):
        gate = asyncio.Event()
        outcome = []
        self.pending.append((gate, outcome))
        await gate.wait()
        if isinstance(outcome[0], Exception):
            raise outcome[0]
        return outcome[0]


def test_superseded_menu_fetch_error_is_discarded():
    client = SlowMenuClient()
    sync, _ = make_sync(client)

    async def scenario():
        first = asyncio.create_task(sync.fetch_menu())
        second = asyncio.create_task(sync.fetch_menu())
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        (gate1, outcome1), (gate2, outcome2) = client.pending
        outcome2.append([MENU[1]])
        gate2.set()
        await second
        outcome1.append(HttpStatusError(503))
        gate1.set()
        await first

    asyncio.run(scenario())

    assert sync.state.menu_items == (MENU[1],)
    assert sync.state.menu_error is None
    assert sync.state.is_menu_loading is False


def test_superseded_menu_fetch_result_is_discarded():
    client = SlowMenuClient()
    sync, _ = make_sync(client)

    async def scenario():
        first = asyncio.create_task(sync.fetch_menu())
        second = asyncio.create_task(sync.fetch_menu())
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        (gate1, outcome1), (gate2, outcome2) = client.pending
        outcome1.append([MENU[0]])
        gate1.set()
        await first
        assert sync.state.is_menu_loading is True
        outcome2.append(UnderlyingError(ConnectionError()))
        gate2.set()
        await second

    asyncio.run(scenario())

    assert sync.state.menu_items == ()
    assert sync.state.menu_error == MENU_LOAD_FAILED
    assert sync.state.is_menu_loading is False


def test_listener_errors_do_not_break_updates():
    sync = StoreSyncService(FakeStoreClient(menu=MENU))

    def broken(state):
        raise ValueError("listener bug")

    sync.subscribe(broken)
    asyncio.run(sync.fetch_menu())

    assert sync.state.menu_items == tuple(MENU)


def test_unsubscribe_stops_notifications():
    sync = StoreSyncService(FakeStoreClient(menu=MENU))
    seen = []
    unsubscribe = sync.subscribe(seen.append)
    unsubscribe()

    asyncio.run(sync.fetch_menu())

    assert seen == []


def test_initial_state_is_empty():
    sync = StoreSyncService(FakeStoreClient())

    assert sync.state == SyncState()


def test_end_to_end_with_mock_store():
    sync = StoreSyncService(MockStoreApiClient())

    async def scenario():
        await sync.fetch_menu()
        await sync.create_sample_order()
        order_id = sync.state.orders[0].id
        await sync.mark_waiting_pickup(order_id)
        waiting = sync.state.orders[0].status
        await sync.complete(order_id)
        return waiting

    waiting = asyncio.run(scenario())

    assert waiting == "waiting-pickup"
    assert [o.status for o in sync.state.orders] == ["completed"]
    assert sync.state.orders_error is None
