#Expose the high-level pipeline pieces:
#Zone eligibility (admin convenience)
#Per-zone locking
#Partner notifications
#Coordinator (the "one call" entry point for checkout and admin workflows)

from .candidate_filter import eligible_partners_for_order, is_partner_in_zone
from .locks import ZoneLockManager
from .notifications import (
    InMemoryPushService,
    NotificationDispatcher,
    NotificationError,
    PushService,
    WebhookPushService,
    build_assignment_payload,
)
from .dispatcher import OrderAssignmentCoordinator #the main class to call to assign an order to a partner

__all__ = [
    "eligible_partners_for_order",
    "is_partner_in_zone",
    "ZoneLockManager",
    "PushService",
    "WebhookPushService",
    "InMemoryPushService",
    "NotificationDispatcher",
    "NotificationError",
    "build_assignment_payload",
    "OrderAssignmentCoordinator",
]
