"""
Purpose: Read-only lookup of registered partners.
What it does:
Defines the PartnerDirectory contract the assignment engine depends on and an
in-memory implementation used by tests, scripts and single-process deployments.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from .models import Partner, normalize_zone


class PartnerDirectory(ABC):
    """Abstract view over the registered partners."""

    @abstractmethod
    def list_partners_in_zone(self, zone_code: str) -> List[Partner]:
        """
        Return every partner whose normalized zone equals the normalized input.
        A blank zone code returns an empty list, never "all partners".
        """

    @abstractmethod
    def get_partner(self, partner_id: str) -> Optional[Partner]:
        pass

    @abstractmethod
    def all_partners(self) -> List[Partner]:
        pass


class InMemoryPartnerDirectory(PartnerDirectory):
    """
    Dictionary backed directory. Registration order is kept so listings are
    stable, but callers must not rely on it for round-robin ordering.
    """

    def __init__(self, partners: Iterable[Partner] = ()):
        self._partners: Dict[str, Partner] = {}
        for partner in partners:
            self.register(partner)

    def register(self, partner: Partner) -> None:
        # re-registering replaces the record (e.g. partner moved zones)
        self._partners[partner.id] = partner

    def remove(self, partner_id: str) -> None:
        self._partners.pop(partner_id, None)

    def get_partner(self, partner_id: str) -> Optional[Partner]:
        return self._partners.get(partner_id)

    def all_partners(self) -> List[Partner]:
        return list(self._partners.values())

    def list_partners_in_zone(self, zone_code: str) -> List[Partner]:
        zone = normalize_zone(zone_code)
        if not zone:
            return []

        return [
            partner for partner in self._partners.values()
            if partner.is_assignable and partner.normalized_zone == zone
        ]
