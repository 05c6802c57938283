"""
Purpose: Domain models for the Orders capability.
What it does:
- Defines the Order record as seen by partner assignment
  (id, service zone, assigned partner, status, timestamps, notification fields)
- Defines OrderStatus, the full lifecycle used across the platform:
  Pending | PendingPayment | Paid | Assigned | Delivering | Completed | Delivered | Cancelled | Declined

Rule: No assignment logic, no persistence. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class OrderStatus(str, Enum):
    PENDING = "Pending"
    PENDING_PAYMENT = "PendingPayment"
    PAID = "Paid"
    ASSIGNED = "Assigned"
    DELIVERING = "Delivering"
    COMPLETED = "Completed"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"
    DECLINED = "Declined"


# Orders in these states can no longer be handed to a partner.
TERMINAL_STATUSES = frozenset({
    OrderStatus.COMPLETED,
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
})


@dataclass
class Order:
    """
    A purchase that needs delivering.

    Created and owned by the checkout workflow. Partner assignment only
    touches assigned_partner_id, status and estimated_delivery_time.
    """

    id: int
    service_zone: Optional[str] = None

    assigned_partner_id: Optional[str] = None
    status: OrderStatus = OrderStatus.PENDING_PAYMENT

    created_at: datetime = field(default_factory=datetime.utcnow)
    estimated_delivery_time: Optional[datetime] = None

    # Carried into the partner notification payload
    customer_name: str = ""
    shipping_address: str = ""
    total_amount: Decimal = Decimal("0.00")

    @property
    def is_assigned(self) -> bool:
        return self.assigned_partner_id is not None
