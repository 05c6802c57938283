#Marks routing as a package.
#Re-exports the ETA policy and estimator so other modules import from routing
#without knowing internal file names.
#No business logic.

from .policy import BusinessHoursPolicy, default_business_hours_policy
from .eta_service import estimate_delivery, now_in_business_timezone

__all__ = [
           "BusinessHoursPolicy",
             "default_business_hours_policy",
             "estimate_delivery",
             "now_in_business_timezone",
             ]
