"""
Purpose: Orchestrator / decision pipeline (the "glue").
What it does:
Accepts a paid Order from the checkout workflow (or an admin's choice of partner),
asks the round-robin engine who is next in the order's zone, persists the assignment,
recomputes the ETA when an admin reassigns, and fires the partner notification.

Zone reads and the write that follows them happen under the zone's lock, so two
checkouts in the same zone cannot both hand their order to the same partner.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from orders.models import Order
from orders.store import OrdersStore
from partners.models import Partner, normalize_zone
from partners.selection import AssignmentEngine
from routing.eta_service import estimate_delivery, now_in_business_timezone
from routing.policy import BusinessHoursPolicy, default_business_hours_policy

from .candidate_filter import is_partner_in_zone
from .locks import ZoneLockManager
from .state_machines.order_state import (
    OrderStateException,
    apply_assignment,
    transition_order_to_assigned,
    transition_order_to_declined,
)

logger = logging.getLogger(__name__)


class OrderAssignmentCoordinator:
    """
    Coordinates handing an Order to a Partner.

    Persistence errors propagate and leave the caller's Order untouched.
    Notification errors are logged and swallowed.
    """

    def __init__(
        self,
        engine: AssignmentEngine,
        orders_store: OrdersStore,
        notifier=None,
        lock_manager: Optional[ZoneLockManager] = None,
        policy: Optional[BusinessHoursPolicy] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.engine = engine
        self.orders_store = orders_store
        self.notifier = notifier
        self.lock_manager = lock_manager or ZoneLockManager()
        self.policy = policy or default_business_hours_policy()
        self.clock = clock or (lambda: now_in_business_timezone(self.policy))

    def try_auto_assign(self, order: Order, exclude_partner_id: Optional[str] = None) -> bool:
        """
        Called once payment capture succeeds. Returns False when nobody is
        available; the order then simply stays Paid. The ETA promised at
        checkout is kept as is.
        """
        if not normalize_zone(order.service_zone):
            logger.info(f"Order {order.id} has no service zone, skipping auto-assign")
            return False

        with self.lock_manager.lock(order.service_zone) as zone:
            partner = self.engine.find_best_partner(zone, exclude_partner_id)
            if partner is None:
                logger.info(f"No partner available for order {order.id} in zone {zone}")
                return False

            updated = transition_order_to_assigned(order, partner.id)
            self.orders_store.update(updated)

        apply_assignment(order, updated)
        logger.info(f"Order {order.id} auto-assigned to partner {partner.id} in zone {zone}")

        self._notify_partner(partner.id, order)
        return True

    def assign_specific(self, order: Order, partner: Partner) -> Order:
        """
        Admin override: the given partner gets the order no matter whose turn it is,
        even from another zone. The ETA is recomputed from the current time.
        """
        updated = transition_order_to_assigned(order, partner.id)
        updated.estimated_delivery_time = estimate_delivery(self.clock(), self.policy)

        if not is_partner_in_zone(partner, order.service_zone):
            logger.warning(
                f"Order {order.id} (zone {order.service_zone!r}) manually assigned to partner "
                f"{partner.id} serving zone {partner.service_zone!r}"
            )

        with self.lock_manager.lock(order.service_zone or ""):
            self.orders_store.update(updated)

        apply_assignment(order, updated, with_eta=True)
        logger.info(f"Order {order.id} manually assigned to partner {partner.id}, ETA {order.estimated_delivery_time}")

        self._notify_partner(partner.id, order)
        return order

    def handle_partner_decline(self, order: Order) -> bool:
        """
        The assigned partner turned the order down. Offer it to the next partner in
        the zone, skipping the one who declined. If nobody else is available the
        order is marked Declined for an admin to resolve.
        """
        if not order.is_assigned:
            raise OrderStateException(f"Order {order.id} has no partner to decline it")

        declined_by = order.assigned_partner_id
        if self.try_auto_assign(order, exclude_partner_id=declined_by):
            return True

        updated = transition_order_to_declined(order)
        with self.lock_manager.lock(order.service_zone or ""):
            self.orders_store.update(updated)

        apply_assignment(order, updated)
        logger.warning(f"Order {order.id} declined by partner {declined_by} and no other partner is available")
        return False

    def _notify_partner(self, partner_id: str, order: Order) -> None:
        if self.notifier is None:
            return

        try:
            self.notifier.publish(partner_id, order)
        except Exception as e:
            logger.error(f"Could not queue notification for order {order.id} to partner {partner_id}: {e}")
