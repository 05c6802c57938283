"""
Purpose: Partner notifications for new assignments.
What it does:
Builds the "NewOrderAssigned" payload and ships it to the partner through a
push transport. Dispatch goes through an outbound queue drained by a background
worker, so a slow or failing transport can never block or undo an assignment.
"""

from __future__ import annotations

import logging
import os
import queue
from abc import ABC, abstractmethod
from threading import Lock, Thread
from typing import Any, Dict, List, Optional, Tuple

import requests
from dotenv import load_dotenv

from orders.models import Order

# Example in .env:
# PARTNER_NOTIFY_URL=https://notify.example.com
# PARTNER_NOTIFY_TIMEOUT=5
load_dotenv()
PARTNER_NOTIFY_URL = os.getenv("PARTNER_NOTIFY_URL")
PARTNER_NOTIFY_TIMEOUT = float(os.getenv("PARTNER_NOTIFY_TIMEOUT", "5"))

NEW_ORDER_EVENT = "NewOrderAssigned"
WORKER_THREAD_NAME = "partner-notifications"

logger = logging.getLogger(__name__)


class NotificationError(Exception):
    """Raised by a push transport when a message could not be delivered."""
    pass


def partner_group(partner_id: str) -> str:
    return f"partner-{partner_id}"


def build_assignment_payload(order: Order) -> Dict[str, Any]:
    """
    JSON-safe summary of the order for the partner's app.
    """
    return {
        "orderId": order.id,
        "customerName": order.customer_name,
        "shippingAddress": order.shipping_address,
        "totalAmount": str(order.total_amount),
        "status": order.status.value,
        "createdAt": order.created_at.isoformat() if order.created_at else None,
    }


class PushService(ABC):
    """Transport that delivers one event to one partner."""

    @abstractmethod
    def send(self, partner_id: str, event: str, payload: Dict[str, Any]) -> None:
        pass


class WebhookPushService(PushService):
    """
    Posts events to the realtime gateway, which fans them out to the
    partner's connected devices (group "partner-{id}").
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = base_url or PARTNER_NOTIFY_URL
        self.timeout = timeout if timeout is not None else PARTNER_NOTIFY_TIMEOUT

        if not self.base_url:
            raise ValueError("Partner notification URL not set. Please set PARTNER_NOTIFY_URL in the .env file.")

    def send(self, partner_id: str, event: str, payload: Dict[str, Any]) -> None:
        url = f"{self.base_url.rstrip('/')}/groups/{partner_group(partner_id)}/events"
        try:
            response = requests.post(
                url,
                json={"event": event, "payload": payload},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise NotificationError(f"Push to {partner_group(partner_id)} failed: {exc}") from exc


class InMemoryPushService(PushService):
    """Keeps every message it is asked to send. Used by tests and simulations."""

    def __init__(self):
        self.sent: List[Tuple[str, str, Dict[str, Any]]] = []
        self._lock = Lock()

    def send(self, partner_id: str, event: str, payload: Dict[str, Any]) -> None:
        with self._lock:
            self.sent.append((partner_group(partner_id), event, payload))


class NotificationDispatcher:
    """
    Fire-and-forget boundary between assignment and the push transport.

    publish() only enqueues. A daemon worker delivers messages in order;
    failures are logged and dropped, never retried.
    """

    def __init__(self, push_service: PushService):
        self.push_service = push_service
        self._queue: "queue.Queue[Optional[Tuple[str, str, Dict[str, Any]]]]" = queue.Queue()
        self._worker: Optional[Thread] = None

        # Guards the single worker: publish() runs outside any zone lock.
        self._lifecycle_lock = Lock()

    def _ensure_worker(self) -> None:
        if self._worker and self._worker.is_alive():
            return
        self._worker = Thread(target=self._process_queue, name=WORKER_THREAD_NAME, daemon=True)
        self._worker.start()

    def start(self) -> None:
        with self._lifecycle_lock:
            self._ensure_worker()

    def stop(self) -> None:
        """Deliver whatever is queued, then stop the worker."""
        with self._lifecycle_lock:
            if not self._worker:
                return
            self._queue.put(None)
            self._worker.join()
            self._worker = None

    def flush(self) -> None:
        """Block until every queued message has been handled."""
        self._queue.join()

    def publish(self, partner_id: str, order: Order) -> None:
        payload = build_assignment_payload(order)
        with self._lifecycle_lock:
            self._ensure_worker()
            self._queue.put((partner_id, NEW_ORDER_EVENT, payload))

    def _process_queue(self) -> None:
        while True:
            message = self._queue.get()
            if message is None:
                self._queue.task_done()
                return

            partner_id, event, payload = message
            try:
                self.push_service.send(partner_id, event, payload)
            except Exception as e:
                logger.error(f"Partner notification failed for order {payload.get('orderId')}: {e}")
            finally:
                self._queue.task_done()
