"""
Order Lifecycle Simulation Script

Drives the sync service through a full order lifecycle:
load menu, place sample orders, mark them waiting for pickup, complete them.
Run from project root: python scripts/simulate.py

Uses the client selected by ENV_MODE unless --mock is given.

Author: Khalil_Bannouri
Version: 1.0.0
"""

import asyncio
import sys
import os
import time
import argparse
from datetime import datetime
from typing import Any

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from pos_client.core.config import get_settings, setup_logging
from pos_client.services.api import get_api_client, MockStoreApiClient
from pos_client.services.api.base import BaseStoreApiClient
from pos_client.services.sync import StoreSyncService

TOTAL_ORDERS = 3


def print_state(sync: StoreSyncService) -> None:
    """Print the current order list."""
    state = sync.state
    if state.orders_error:
        print(f"   ⚠️ {state.orders_error}")
    for order in state.orders:
        items = ", ".join(f"{i.id} x{i.quantity}" for i in order.items or [])
        print(f"   • {order.id:<12} {order.status:<16} {items}")


async def run_simulation(
    client: BaseStoreApiClient,
    num_orders: int = TOTAL_ORDERS,
) -> dict[str, Any]:
    """
    Run the lifecycle simulation.

    Args:
        client: Store API client to drive
        num_orders: Number of sample orders to place
    """
    settings = get_settings()

    print("=" * 70)
    print("🔁 ORDER LIFECYCLE SIMULATION")
    print(f"🏷️ {settings.app_name} v{settings.app_version}")
    print("=" * 70)
    print(f"📋 Sample Orders: {num_orders}")
    print(f"🎯 Target: {settings.store_base_url}")
    print(f"🔧 Client: {client.provider_name}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    sync = StoreSyncService(client)
    start_time = time.time()

    print("\n1️⃣ Loading menu...")
    await sync.fetch_menu()
    if sync.state.menu_error:
        print(f"   ❌ {sync.state.menu_error}")
        return {"success": False, "error": sync.state.menu_error}
    for item in sync.state.menu_items:
        print(f"   • {item.id:<12} {item.name}")

    print(f"\n2️⃣ Placing {num_orders} sample order(s)...")
    for _ in range(num_orders):
        await sync.create_sample_order()
    print_state(sync)

    print("\n3️⃣ Marking pending orders as waiting for pickup...")
    for order in [o for o in sync.state.orders if o.status == "pending"]:
        await sync.mark_waiting_pickup(order.id)
    print_state(sync)

    print("\n4️⃣ Completing orders waiting for pickup...")
    for order in [o for o in sync.state.orders if o.status == "waiting-pickup"]:
        await sync.complete(order.id)
    print_state(sync)

    total_time = round(time.time() - start_time, 2)
    completed = sum(1 for o in sync.state.orders if o.status == "completed")

    print("\n" + "=" * 70)
    print("📊 RESULTS")
    print("=" * 70)
    print(f"   Orders listed: {len(sync.state.orders)}")
    print(f"   Completed: {completed}")
    print(f"   Total time: {total_time}s")
    print("=" * 70)

    return {
        "success": sync.state.orders_error is None,
        "orders": len(sync.state.orders),
        "completed": completed,
        "total_time": total_time,
    }


async def main(args: argparse.Namespace) -> int:
    client = MockStoreApiClient() if args.mock else get_api_client()
    async with client:
        result = await run_simulation(client, args.orders)
    return 0 if result["success"] else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Order Lifecycle Simulation")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of sample orders")
    parser.add_argument("--mock", action="store_true", help="Force the in-memory mock store")
    args = parser.parse_args()

    setup_logging()
    sys.exit(asyncio.run(main(args)))
