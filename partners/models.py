"""
Purpose: Core data models for the partners domain.
What it does:
Defines the structure of a delivery Partner and the zone normalization rule
used everywhere a zone code is compared, without relying on Django ORM constraints.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


def normalize_zone(zone_code: Optional[str]) -> str:
    """
    Zone codes are free text typed by admins and customers.
    Comparison is always trimmed and case-insensitive; blank means "no zone".
    """
    if not zone_code:
        return ""
    return zone_code.strip().upper()


@dataclass(frozen=True)
class Partner:
    """
    A purely stateless representation of a registered delivery partner.
    The assignment engine only ever reads these.
    """
    id: str
    service_zone: Optional[str]
    registered_at: Optional[datetime] = None

    # Shown to admins when picking a partner by hand.
    company_name: Optional[str] = None

    @property
    def normalized_zone(self) -> str:
        return normalize_zone(self.service_zone)

    @property
    def is_assignable(self) -> bool:
        # partners without a zone never receive orders
        return bool(self.normalized_zone)

    @classmethod
    def new(
        cls,
        partner_id: str,
        service_zone: str | None,
        registered_at: datetime | None = None,
        company_name: str | None = None,
    ) -> Partner:
        return cls(
            id=partner_id,
            service_zone=service_zone,
            registered_at=registered_at,
            company_name=company_name,
        )
