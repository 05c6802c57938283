#Purpose: ETA estimation policy.
#Converts "now" into the delivery time promised to the customer:
#orders before opening wait for opening
#orders after closing wait for the next day's opening
#otherwise processing starts immediately
#An estimate that would land after closing is pushed to the next day's early window.
#Pure functions: the caller supplies the current time.

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from .policy import BusinessHoursPolicy, default_business_hours_policy


def now_in_business_timezone(policy: Optional[BusinessHoursPolicy] = None) -> datetime:
    """
    Current wall-clock time in the business timezone (timezone aware).
    """
    policy = policy or default_business_hours_policy()
    return datetime.now(policy.tzinfo)


def _at(day: datetime, clock_time) -> datetime:
    return day.replace(
        hour=clock_time.hour,
        minute=clock_time.minute,
        second=clock_time.second,
        microsecond=0,
    )


def estimate_delivery(now_local: datetime, policy: Optional[BusinessHoursPolicy] = None) -> datetime:
    """
    Estimated delivery timestamp for an order being processed at `now_local`.

    Aware datetimes are converted into the business timezone first; naive ones are
    taken to already be business-local wall-clock time. Arithmetic is wall-clock,
    so 09:00 stays 09:00 across DST changes.
    """
    policy = policy or default_business_hours_policy()

    if now_local.tzinfo is not None:
        now_local = now_local.astimezone(policy.tzinfo)

    open_today = _at(now_local, policy.open_time)
    close_today = _at(now_local, policy.close_time)

    if now_local < open_today:
        start = open_today
    elif now_local > close_today:
        start = open_today + timedelta(days=1)
    else:
        start = now_local

    eta = start + policy.delivery_duration

    # Closing time of the day processing starts on
    start_close = _at(start, policy.close_time)
    if eta > start_close:
        next_open = _at(start, policy.open_time) + timedelta(days=1)
        eta = next_open + policy.delivery_duration

    return eta
