"""User profile, air credits and the state store."""

from aircompanion.user.models import Location, RedemptionResult, SavedRoute, SensitivityLevel, UserProfile
from aircompanion.user.credits import DAILY_CREDIT_ALLOWANCE, ROUTE_SEARCH_COST
from aircompanion.user.store import PersistOutcome, UserStateStore

__all__ = [
    "DAILY_CREDIT_ALLOWANCE",
    "ROUTE_SEARCH_COST",
    "Location",
    "PersistOutcome",
    "RedemptionResult",
    "SavedRoute",
    "SensitivityLevel",
    "UserProfile",
    "UserStateStore",
]
