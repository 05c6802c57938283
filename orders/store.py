"""
Purpose: Persistence boundary for orders.
What it does:
- Defines the OrdersStore contract used by partner assignment:
   - find_by_id(order_id)
   - find_most_recent_assigned_in_zone(zone, partner_ids)
   - update(order)
- Provides an in-memory implementation that keeps its own copies of orders,
  so nothing a caller does to an Order object leaks in without update().

Rule: Store owns persistence, assignment owns the decision.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import replace
from threading import RLock
from typing import Dict, Iterable, List, Optional

from partners.models import normalize_zone
from .models import Order


class PersistenceError(Exception):
    """Raised when an order could not be written to the store."""
    pass


class OrdersStore(ABC):

    @abstractmethod
    def find_by_id(self, order_id: int) -> Optional[Order]:
        pass

    @abstractmethod
    def find_most_recent_assigned_in_zone(
        self,
        zone_code: str,
        partner_ids: Optional[Iterable[str]] = None,
    ) -> Optional[Order]:
        """
        Newest order (by created_at) in the zone that has a partner.
        If partner_ids is given, only orders assigned to one of them count.
        """

    @abstractmethod
    def update(self, order: Order) -> None:
        """Persist the order. Must raise PersistenceError on failure."""


class InMemoryOrdersStore(OrdersStore):
    """
    Dictionary backed store keyed by order id.
    Every read and write goes through a copy.
    """

    def __init__(self, orders: Iterable[Order] = ()):
        self._orders: Dict[int, Order] = {}
        self._lock = RLock()
        for order in orders:
            self.add(order)

    def add(self, order: Order) -> None:
        with self._lock:
            if order.id in self._orders:
                # idempotency : dont double insert
                return
            self._orders[order.id] = replace(order)

    def find_by_id(self, order_id: int) -> Optional[Order]:
        with self._lock:
            stored = self._orders.get(order_id)
            return replace(stored) if stored else None

    def all_orders(self) -> List[Order]:
        with self._lock:
            return [replace(order) for order in self._orders.values()]

    def find_most_recent_assigned_in_zone(
        self,
        zone_code: str,
        partner_ids: Optional[Iterable[str]] = None,
    ) -> Optional[Order]:
        zone = normalize_zone(zone_code)
        if not zone:
            return None

        allowed = set(partner_ids) if partner_ids is not None else None

        with self._lock:
            matches = [
                order for order in self._orders.values()
                if normalize_zone(order.service_zone) == zone
                and order.assigned_partner_id is not None
                and (allowed is None or order.assigned_partner_id in allowed)
            ]

            if not matches:
                return None

            # created_at ties go to the higher id (inserted later)
            latest = max(matches, key=lambda order: (order.created_at, order.id))
            return replace(latest)

    def update(self, order: Order) -> None:
        with self._lock:
            if order.id not in self._orders:
                raise PersistenceError(f"Order {order.id} does not exist in the store")
            self._orders[order.id] = replace(order)
