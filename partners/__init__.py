"""
Partners domain package.

Public API:
- Domain models: Partner, normalize_zone
- Directory contract: PartnerDirectory, InMemoryPartnerDirectory
- Round-robin selection: AssignmentEngine, rank_partners, next_in_rotation
"""
from .models import Partner, normalize_zone
from .directory import PartnerDirectory, InMemoryPartnerDirectory
from .selection import AssignmentEngine, rank_partners, next_in_rotation

__all__ = [
    "Partner",
    "normalize_zone",
    "PartnerDirectory",
    "InMemoryPartnerDirectory",
    "AssignmentEngine",
    "rank_partners",
    "next_in_rotation",
]
