from dataclasses import replace

from orders.models import Order, OrderStatus, TERMINAL_STATUSES


class OrderStateException(Exception):
    """Raised when an invalid state transition is attempted."""
    pass


def _ensure_assignable(order: Order) -> None:
    if order.status in TERMINAL_STATUSES:
        raise OrderStateException(f"Cannot assign a partner to order {order.id} in status {order.status.value}")


def transition_order_to_assigned(order: Order, partner_id: str) -> Order:
    """
    Called when a partner has been chosen for the order (automatically or by an admin).
    Returns a new Order so nothing changes until the store accepts the write.
    """
    _ensure_assignable(order)
    return replace(order, assigned_partner_id=partner_id, status=OrderStatus.ASSIGNED)


def transition_order_to_declined(order: Order) -> Order:
    """
    The assigned partner declined and nobody else in the zone can take it.
    The declining partner stays on the record so admins can see who declined.
    """
    _ensure_assignable(order)
    return replace(order, status=OrderStatus.DECLINED)


def apply_assignment(target: Order, source: Order, *, with_eta: bool = False) -> Order:
    """
    Copy the assignment fields of a persisted order back onto the caller's object.
    """
    target.assigned_partner_id = source.assigned_partner_id
    target.status = source.status
    if with_eta:
        target.estimated_delivery_time = source.estimated_delivery_time
    return target
