import logging
import threading
import time
from dataclasses import replace
from datetime import datetime, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from dispatch.candidate_filter import eligible_partners_for_order
from dispatch.dispatcher import OrderAssignmentCoordinator
from dispatch.locks import ZoneLockManager
from dispatch.notifications import InMemoryPushService, NotificationDispatcher
from dispatch.state_machines.order_state import OrderStateException
from orders.models import Order, OrderStatus
from orders.store import InMemoryOrdersStore, PersistenceError
from partners.directory import InMemoryPartnerDirectory
from partners.models import Partner
from partners.selection import AssignmentEngine
from routing.policy import BusinessHoursPolicy

IST = ZoneInfo("Asia/Kolkata")
BASE_TIME = datetime(2026, 2, 1, 9, 0, 0)
CHECKOUT_ETA = datetime(2026, 2, 14, 12, 0, tzinfo=IST)


class FailingOrdersStore(InMemoryOrdersStore):
    def update(self, order):
        raise PersistenceError("database is down")


class RecordingNotifier:
    def __init__(self):
        self.published = []

    def publish(self, partner_id, order):
        self.published.append((partner_id, order.id))


class BrokenNotifier:
    def publish(self, partner_id, order):
        raise RuntimeError("queue unavailable")


def paid_order(order_id: int, zone: str = "MH") -> Order:
    return Order(
        id=order_id,
        service_zone=zone,
        status=OrderStatus.PAID,
        created_at=BASE_TIME + timedelta(minutes=order_id),
        estimated_delivery_time=CHECKOUT_ETA,
        customer_name="Asha Rao",
        shipping_address="12 Lotus Lane, Pune",
        total_amount=Decimal("49.90"),
    )


@pytest.fixture
def directory():
    return InMemoryPartnerDirectory([
        Partner.new("ptn-a", "MH", registered_at=BASE_TIME - timedelta(days=30), company_name="Petal Express"),
        Partner.new("ptn-b", "MH", registered_at=BASE_TIME - timedelta(days=20), company_name="Stem Riders"),
        Partner.new("ptn-ka", "KA", registered_at=BASE_TIME - timedelta(days=10), company_name="Bangalore Blooms"),
    ])


@pytest.fixture
def store():
    return InMemoryOrdersStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def fixed_now():
    return datetime(2026, 2, 14, 20, 0, tzinfo=IST)


@pytest.fixture
def coordinator(directory, store, notifier, fixed_now):
    return OrderAssignmentCoordinator(
        AssignmentEngine(directory, store),
        store,
        notifier=notifier,
        policy=BusinessHoursPolicy(timezone="Asia/Kolkata"),
        clock=lambda: fixed_now,
    )


def test_auto_assign_assigns_persists_and_notifies(coordinator, store, notifier):
    order = paid_order(1)
    store.add(order)

    assert coordinator.try_auto_assign(order) is True

    assert order.assigned_partner_id == "ptn-a"
    assert order.status == OrderStatus.ASSIGNED

    stored = store.find_by_id(1)
    assert stored.assigned_partner_id == "ptn-a"
    assert stored.status == OrderStatus.ASSIGNED

    assert notifier.published == [("ptn-a", 1)]


def test_auto_assign_keeps_checkout_eta(coordinator, store):
    order = paid_order(1)
    store.add(order)

    coordinator.try_auto_assign(order)

    assert order.estimated_delivery_time == CHECKOUT_ETA
    assert store.find_by_id(1).estimated_delivery_time == CHECKOUT_ETA


def test_consecutive_checkouts_rotate_through_zone(coordinator, store):
    assigned = []
    for order_id in range(1, 5):
        order = paid_order(order_id)
        store.add(order)
        coordinator.try_auto_assign(order)
        assigned.append(order.assigned_partner_id)

    assert assigned == ["ptn-a", "ptn-b", "ptn-a", "ptn-b"]


def test_auto_assign_without_partner_leaves_order_paid(coordinator, store, notifier):
    order = paid_order(1, zone="TN")
    store.add(order)

    assert coordinator.try_auto_assign(order) is False

    assert order.status == OrderStatus.PAID
    assert order.assigned_partner_id is None
    assert store.find_by_id(1) == order
    assert notifier.published == []


@pytest.mark.parametrize("zone", [None, "", "   "])
def test_auto_assign_without_zone_returns_false(coordinator, store, zone):
    order = paid_order(1, zone=zone)
    store.add(order)

    assert coordinator.try_auto_assign(order) is False
    assert order.status == OrderStatus.PAID


def test_auto_assign_honours_exclusion(coordinator, store):
    order = paid_order(1)
    store.add(order)

    assert coordinator.try_auto_assign(order, exclude_partner_id="ptn-a") is True
    assert order.assigned_partner_id == "ptn-b"


def test_manual_assign_recomputes_eta(coordinator, store, directory, notifier):
    order = paid_order(1)
    store.add(order)

    coordinator.assign_specific(order, directory.get_partner("ptn-b"))

    # 20:00 + 5h spills past closing, so next day 14:00
    expected_eta = datetime(2026, 2, 15, 14, 0, tzinfo=IST)
    assert order.assigned_partner_id == "ptn-b"
    assert order.status == OrderStatus.ASSIGNED
    assert order.estimated_delivery_time == expected_eta
    assert store.find_by_id(1).estimated_delivery_time == expected_eta
    assert notifier.published == [("ptn-b", 1)]


def test_manual_assign_overrides_rotation_and_reassigns(coordinator, store, directory):
    order = paid_order(1)
    store.add(order)
    coordinator.try_auto_assign(order)
    assert order.assigned_partner_id == "ptn-a"

    coordinator.assign_specific(order, directory.get_partner("ptn-b"))

    assert store.find_by_id(1).assigned_partner_id == "ptn-b"


def test_manual_assign_across_zones_is_allowed_but_logged(coordinator, store, directory, caplog):
    order = paid_order(1, zone="MH")
    store.add(order)

    with caplog.at_level(logging.WARNING, logger="dispatch.dispatcher"):
        coordinator.assign_specific(order, directory.get_partner("ptn-ka"))

    assert order.assigned_partner_id == "ptn-ka"
    assert any("manually assigned" in record.message for record in caplog.records)


def test_persistence_failure_propagates_and_leaves_order_unchanged(directory, notifier, fixed_now):
    store = FailingOrdersStore()
    coordinator = OrderAssignmentCoordinator(
        AssignmentEngine(directory, store),
        store,
        notifier=notifier,
        policy=BusinessHoursPolicy(timezone="Asia/Kolkata"),
        clock=lambda: fixed_now,
    )
    order = paid_order(1)
    store.add(order)
    snapshot = replace(order)

    with pytest.raises(PersistenceError):
        coordinator.try_auto_assign(order)
    assert order == snapshot

    with pytest.raises(PersistenceError):
        coordinator.assign_specific(order, directory.get_partner("ptn-b"))
    assert order == snapshot

    assert store.find_by_id(1) == snapshot
    assert notifier.published == []


def test_notification_failure_does_not_fail_assignment(directory, store, caplog):
    coordinator = OrderAssignmentCoordinator(
        AssignmentEngine(directory, store),
        store,
        notifier=BrokenNotifier(),
        policy=BusinessHoursPolicy(timezone="Asia/Kolkata"),
    )
    order = paid_order(1)
    store.add(order)

    with caplog.at_level(logging.ERROR, logger="dispatch.dispatcher"):
        assert coordinator.try_auto_assign(order) is True

    assert store.find_by_id(1).assigned_partner_id == "ptn-a"
    assert any("Could not queue notification" in record.message for record in caplog.records)


def test_assignment_through_notification_dispatcher(directory, store):
    push_service = InMemoryPushService()
    notifier = NotificationDispatcher(push_service)
    coordinator = OrderAssignmentCoordinator(AssignmentEngine(directory, store), store, notifier=notifier)
    order = paid_order(7)
    store.add(order)

    coordinator.try_auto_assign(order)
    notifier.stop()

    group, event, payload = push_service.sent[0]
    assert group == "partner-ptn-a"
    assert event == "NewOrderAssigned"
    assert payload["orderId"] == 7
    assert payload["status"] == "Assigned"


@pytest.mark.parametrize("status", [OrderStatus.COMPLETED, OrderStatus.DELIVERED, OrderStatus.CANCELLED])
def test_finished_orders_cannot_be_assigned(coordinator, store, directory, status):
    order = replace(paid_order(1), status=status)
    store.add(order)

    with pytest.raises(OrderStateException):
        coordinator.try_auto_assign(order)

    with pytest.raises(OrderStateException):
        coordinator.assign_specific(order, directory.get_partner("ptn-a"))

    assert store.find_by_id(1).status == status


def test_decline_moves_order_to_next_partner(coordinator, store, notifier):
    order = paid_order(1)
    store.add(order)
    coordinator.try_auto_assign(order)
    assert order.assigned_partner_id == "ptn-a"

    assert coordinator.handle_partner_decline(order) is True

    assert order.assigned_partner_id == "ptn-b"
    assert order.status == OrderStatus.ASSIGNED
    assert notifier.published == [("ptn-a", 1), ("ptn-b", 1)]


def test_decline_without_alternative_marks_order_declined(coordinator, store):
    order = paid_order(1, zone="KA")
    store.add(order)
    coordinator.try_auto_assign(order)

    assert coordinator.handle_partner_decline(order) is False

    stored = store.find_by_id(1)
    assert stored.status == OrderStatus.DECLINED
    assert stored.assigned_partner_id == "ptn-ka"
    assert order.status == OrderStatus.DECLINED


def test_decline_requires_an_assigned_partner(coordinator, store):
    order = paid_order(1)
    store.add(order)
    assert not order.is_assigned

    with pytest.raises(OrderStateException):
        coordinator.handle_partner_decline(order)


def test_eligible_partners_for_order_lists_zone_in_ring_order(directory):
    assert [p.id for p in eligible_partners_for_order(directory, paid_order(1, zone=" mh"))] == ["ptn-a", "ptn-b"]
    assert eligible_partners_for_order(directory, paid_order(2, zone=None)) == []


class SlowOrdersStore(InMemoryOrdersStore):
    """
    Widens the read-then-write window and records how many assignments
    are inside it at the same time, per zone.
    """

    def __init__(self):
        super().__init__()
        self._gauge_lock = threading.Lock()
        self.in_window = {}
        self.max_in_window = {}

    def find_most_recent_assigned_in_zone(self, zone_code, partner_ids=None):
        with self._gauge_lock:
            self.in_window[zone_code] = self.in_window.get(zone_code, 0) + 1
            self.max_in_window[zone_code] = max(self.max_in_window.get(zone_code, 0), self.in_window[zone_code])
        time.sleep(0.01)
        return super().find_most_recent_assigned_in_zone(zone_code, partner_ids)

    def update(self, order):
        time.sleep(0.01)
        super().update(order)
        with self._gauge_lock:
            self.in_window[order.service_zone] -= 1


def test_same_zone_assignments_are_serialized(directory):
    store = SlowOrdersStore()
    coordinator = OrderAssignmentCoordinator(
        AssignmentEngine(directory, store),
        store,
        lock_manager=ZoneLockManager(),
        policy=BusinessHoursPolicy(timezone="Asia/Kolkata"),
    )

    orders = [paid_order(i, zone="MH") for i in range(1, 9)] + [paid_order(i, zone="KA") for i in range(9, 13)]
    for order in orders:
        store.add(order)

    threads = [threading.Thread(target=coordinator.try_auto_assign, args=(order,)) for order in orders]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert store.max_in_window == {"MH": 1, "KA": 1}

    mh_partners = [o.assigned_partner_id for o in store.all_orders() if o.service_zone == "MH"]
    assert sorted(set(mh_partners)) == ["ptn-a", "ptn-b"]
