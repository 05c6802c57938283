#Purpose: Zone eligibility rules for partners.
#Used by the admin workflow to offer a pre-filtered list when assigning by hand,
#and to flag manual assignments that cross zones.
#Output: "zone-qualified partners" in ring order (not round-robin picked).

from typing import List

from orders.models import Order
from partners.directory import PartnerDirectory
from partners.models import Partner, normalize_zone
from partners.selection import rank_partners


def is_partner_in_zone(partner: Partner, zone_code: str) -> bool:
    zone = normalize_zone(zone_code)
    return bool(zone) and partner.normalized_zone == zone


def eligible_partners_for_order(directory: PartnerDirectory, order: Order) -> List[Partner]:
    """
    Partners an admin can reasonably pick for this order: everyone in its zone.
    Orders without a zone have no eligible partners.
    """
    if not normalize_zone(order.service_zone):
        return []
    return rank_partners(directory.list_partners_in_zone(order.service_zone))
