"""
Purpose: Per-zone serialization for partner assignment.
What it does:
Hands out one mutex per normalized zone code so that the
"read last assignment -> pick next partner -> persist" sequence for a zone
runs one request at a time. Different zones never block each other.

Single process only. A multi-worker deployment needs the same guarantee
from the database (row lock on the zone's latest order) instead.
"""

from __future__ import annotations

from contextlib import contextmanager
from threading import Lock
from typing import Dict, Iterator, List

from partners.models import normalize_zone


class ZoneLockManager:

    def __init__(self):
        self._locks: Dict[str, Lock] = {}
        self._registry_lock = Lock()

    def _lock_for(self, zone: str) -> Lock:
        with self._registry_lock:
            lock = self._locks.get(zone)
            if lock is None:
                lock = Lock()
                self._locks[zone] = lock
            return lock

    @contextmanager
    def lock(self, zone_code: str) -> Iterator[str]:
        """
        Hold the zone's mutex for the duration of the block.
        Yields the normalized zone code.
        """
        zone = normalize_zone(zone_code)
        zone_lock = self._lock_for(zone)
        with zone_lock:
            yield zone

    def known_zones(self) -> List[str]:
        with self._registry_lock:
            return sorted(self._locks)
