import os
import random
import sys
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List

import pandas as pd

from dispatch.dispatcher import OrderAssignmentCoordinator
from dispatch.notifications import InMemoryPushService, NotificationDispatcher
from orders.models import Order, OrderStatus
from orders.store import InMemoryOrdersStore
from partners.directory import InMemoryPartnerDirectory
from partners.models import Partner
from partners.selection import AssignmentEngine


def load_partners(filepath="mock_partners_25.csv") -> List[Partner]:
    # Resolve the correct path depending on where the user runs the script from.
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    absolute_path = filepath if os.path.isabs(filepath) else os.path.join(base_dir, filepath)

    df = pd.read_csv(absolute_path, dtype={"partner_id": str, "service_zone": str}, keep_default_na=False)

    partners = []
    for _, row in df.iterrows():
        partners.append(
            Partner.new(
                row["partner_id"],
                row["service_zone"] or None,
                registered_at=pd.to_datetime(row["registered_at"]).to_pydatetime(),
                company_name=row["company_name"],
            )
        )
    return partners


def make_paid_orders(count: int, zones: List[str]) -> List[Order]:
    start = datetime(2026, 2, 14, 8, 0, 0)
    orders = []
    for i in range(count):
        orders.append(
            Order(
                id=i + 1,
                service_zone=random.choice(zones),
                status=OrderStatus.PAID,
                created_at=start + timedelta(minutes=i),
                customer_name=f"Customer {i + 1}",
                shipping_address=f"{i + 1} Rose Street",
                total_amount=Decimal(random.randint(25, 120)) + Decimal("0.99"),
            )
        )
    return orders


def run_simulation(partners_csv="mock_partners_25.csv", order_count=200):
    print("=== STARTING PARTNER ASSIGNMENT SIMULATION ===")

    # 1. Load Data
    directory = InMemoryPartnerDirectory(load_partners(partners_csv))
    zones = sorted({p.normalized_zone for p in directory.all_partners() if p.is_assignable})
    if not zones:
        print("No partner has a service zone. Nothing to simulate.")
        return

    orders = make_paid_orders(order_count, zones)
    print(f"Loaded {len(directory.all_partners())} Partners across {len(zones)} zones, {len(orders)} paid Orders.\n")

    # 2. Configure System
    store = InMemoryOrdersStore(orders)
    push_service = InMemoryPushService()
    notifier = NotificationDispatcher(push_service)
    coordinator = OrderAssignmentCoordinator(
        AssignmentEngine(directory, store),
        store,
        notifier=notifier,
    )

    # 3. Checkout completes for every order, oldest first
    unassigned = 0
    for order in orders:
        if not coordinator.try_auto_assign(order):
            unassigned += 1

    notifier.stop()

    # 4. Report per-partner distribution
    df = pd.DataFrame(
        [{"order_id": o.id, "zone": o.service_zone, "partner_id": o.assigned_partner_id} for o in store.all_orders()]
    )
    assigned = df.dropna(subset=["partner_id"])
    distribution = assigned.groupby(["zone", "partner_id"]).size().rename("orders").reset_index()

    print("--- Orders per Partner ---")
    print(distribution.to_string(index=False))

    spread = distribution.groupby("zone")["orders"].agg(lambda counts: counts.max() - counts.min())
    print("\n--- Max - Min per Zone (round-robin keeps this at 0 or 1) ---")
    print(spread.to_string())

    print("\n=== SIMULATION COMPLETE ===")
    print(f"Orders Assigned: {len(assigned)} / {len(df)}")
    print(f"Orders left Paid (no partner): {unassigned}")
    print(f"Notifications sent: {len(push_service.sent)}")

if __name__ == "__main__":
    run_simulation(*sys.argv[1:2])
