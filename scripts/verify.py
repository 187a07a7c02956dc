"""
Order Listing Verification Script

Verifies the integrity of the store's order listing.
Run from project root: python scripts/verify.py

Author: Khalil_Bannouri
Version: 1.0.0
"""

import asyncio
import os
import sys
from collections import Counter
from datetime import datetime

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pos_client.core.config import get_settings
from pos_client.schemas import Order, OrderStatus
from pos_client.services.api import ApiError, get_api_client

KNOWN_STATUSES = {status.value for status in OrderStatus}


def find_problems(orders: list[Order]) -> list[str]:
    """Return a description of every listing invariant that does not hold."""
    problems = []

    counts = Counter(order.id for order in orders)
    duplicates = sorted(order_id for order_id, n in counts.items() if n > 1)
    if duplicates:
        problems.append(f"{len(duplicates)} duplicate order IDs: {duplicates}")

    for order in orders:
        if order.status not in KNOWN_STATUSES:
            problems.append(f"Order {order.id} has unknown status '{order.status}'")

    return problems


async def verify_orders() -> bool:
    """Fetch the order listing and check its invariants."""
    settings = get_settings()

    print("=" * 60)
    print("🔍 ORDER LISTING VERIFICATION REPORT")
    print(f"🏷️ {settings.app_name} v{settings.app_version}")
    print("=" * 60)
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"🎯 Store: {settings.store_base_url}")
    print("=" * 60)

    async with get_api_client() as client:
        try:
            orders = await client.list_orders()
            print("\n✅ Orders loaded successfully!")
        except ApiError as e:
            print(f"\n❌ Could not list orders: {e.description}")
            return False

    # Statistics
    print("\n📊 STATISTICS:")
    print(f"   Total Orders: {len(orders)}")
    for status, count in sorted(Counter(o.status for o in orders).items()):
        print(f"   {status}: {count}")

    problems = find_problems(orders)
    if problems:
        print("\n⚠️ PROBLEMS:")
        for problem in problems:
            print(f"   - {problem}")
    else:
        print("\n✅ No duplicate IDs or unknown statuses")
    print("   (quantities below 1 are rejected while decoding, not checked here)")

    print("\n" + "=" * 60)
    print("✅ VERIFICATION COMPLETE")
    print("=" * 60)

    return not problems


if __name__ == "__main__":
    ok = asyncio.run(verify_orders())
    sys.exit(0 if ok else 1)
