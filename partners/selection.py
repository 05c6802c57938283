"""
Purpose: Business rules for choosing which partner receives the next order in a zone.
What it does:
Accepts a zone and an optional partner to skip, pulls the zone's partners from the
directory, arranges them into a fixed ring and hands out orders round-robin.

Whose turn it is comes from order history (the last order assigned in the zone),
not from a stored pointer, so partners can join or leave a zone without migrating state.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional, Tuple

from .directory import PartnerDirectory
from .models import Partner, normalize_zone

if TYPE_CHECKING:
    from orders.store import OrdersStore

logger = logging.getLogger(__name__)

_NO_DATE = datetime.min


def rank_partners(partners: List[Partner]) -> List[Partner]:
    """
    Stable ring order: oldest registration first, partner id breaks ties.
    Partners with no registration date sort to the front.
    """
    return sorted(partners, key=_ring_key)


def _ring_key(partner: Partner) -> Tuple[bool, datetime, str]:
    # bool first so naive and aware timestamps are never compared with the placeholder
    registered = partner.registered_at is not None
    return (registered, partner.registered_at if registered else _NO_DATE, partner.id)


def next_in_rotation(ring: List[Partner], last_partner_id: Optional[str]) -> Optional[Partner]:
    """
    The partner after last_partner_id, wrapping around.
    Unknown or missing last partner restarts the ring at the front.
    """
    if not ring:
        return None

    if last_partner_id is None:
        return ring[0]

    for index, partner in enumerate(ring):
        if partner.id == last_partner_id:
            return ring[(index + 1) % len(ring)]

    return ring[0]


class AssignmentEngine:
    """
    Zone scoped round-robin selector. Read only: never writes orders or partners.
    """

    def __init__(self, directory: PartnerDirectory, orders_store: "OrdersStore"):
        self.directory = directory
        self.orders_store = orders_store

    def find_best_partner(self, zone_code: str, exclude_partner_id: Optional[str] = None) -> Optional[Partner]:
        zone = normalize_zone(zone_code)
        if not zone:
            return None

        candidates = self.directory.list_partners_in_zone(zone)

        # e.g. the partner who just declined this order
        if exclude_partner_id:
            candidates = [partner for partner in candidates if partner.id != exclude_partner_id]

        if not candidates:
            logger.info(f"No eligible partner in zone {zone}")
            return None

        ring = rank_partners(candidates)

        # History involving partners outside the ring is ignored on purpose.
        last_order = self.orders_store.find_most_recent_assigned_in_zone(
            zone,
            partner_ids=[partner.id for partner in ring],
        )
        last_partner_id = last_order.assigned_partner_id if last_order else None

        chosen = next_in_rotation(ring, last_partner_id)
        logger.debug(f"Zone {zone}: last assigned {last_partner_id}, next is {chosen.id}")
        return chosen
