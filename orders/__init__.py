"""
Orders domain package.

Public API:
- Domain models: Order, OrderStatus
- Persistence boundary: OrdersStore, InMemoryOrdersStore, PersistenceError
"""
from .models import Order, OrderStatus, TERMINAL_STATUSES
from .store import OrdersStore, InMemoryOrdersStore, PersistenceError

__all__ = ["Order",
           "OrderStatus",
             "TERMINAL_STATUSES",
               "OrdersStore",
               "InMemoryOrdersStore",
               "PersistenceError",
               ]
