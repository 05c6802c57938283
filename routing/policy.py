"""
Purpose: Central configuration for delivery ETA estimation.
What it does:

Stores the store's business hours and the fixed delivery duration:

STORE_OPEN = 09:00
STORE_CLOSE = 21:00
DELIVERY_DURATION = 5 hours
BUSINESS_TIMEZONE = Asia/Kolkata (override with the BUSINESS_TIMEZONE env var)

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

# Example in .env:
# BUSINESS_TIMEZONE=Asia/Kolkata
load_dotenv()
BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "Asia/Kolkata")


@dataclass(frozen=True)
class BusinessHoursPolicy:
    """
    Business hours and delivery duration used to promise a delivery time.
    All hours are wall-clock times in `timezone`.
    """

    # --- Store hours ---
    open_time: time = time(9, 0)
    close_time: time = time(21, 0)

    # --- Delivery ---
    # Fixed courier time from processing start to the customer's door.
    delivery_duration: timedelta = timedelta(hours=5)

    # IANA name, e.g. "Asia/Kolkata"
    timezone: str = BUSINESS_TIMEZONE

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.open_time >= self.close_time:
            raise ValueError("open_time must be before close_time")

        if self.delivery_duration <= timedelta(0):
            raise ValueError("delivery_duration must be > 0")

        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown business timezone: {self.timezone!r}") from exc


def default_business_hours_policy() -> BusinessHoursPolicy:
    """
    Convenience factory for the default policy.
    """
    p = BusinessHoursPolicy()
    p.validate()
    return p
