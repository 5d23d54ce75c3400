"""Air credit rules.

Everything here is a pure function of its arguments so the rules can be
re-derived from persisted state at any time.
"""

from datetime import datetime, time, timedelta
from typing import Any

from aircompanion.user.models import UserProfile

DAILY_CREDIT_ALLOWANCE = 24  # Credits granted on the first load of a new day
ROUTE_SEARCH_COST = 12  # Credits charged per route search


def _local_date(moment: datetime, now: datetime):
    """Calendar date of ``moment`` in the time zone of ``now``."""
    if moment.tzinfo is not None:
        if now.tzinfo is not None:
            moment = moment.astimezone(now.tzinfo)
        else:
            moment = moment.astimezone().replace(tzinfo=None)
    return moment.date()


def needs_daily_refresh(last_refresh: datetime, now: datetime) -> bool:
    """Whether ``now`` falls on a different calendar day than the last refresh.

    Only the date matters; a refresh at 23:59 is followed by another at
    00:00.
    """
    return _local_date(last_refresh, now) != now.date()


def apply_daily_refresh(
    profile: UserProfile,
    now: datetime,
    allowance: int = DAILY_CREDIT_ALLOWANCE,
) -> UserProfile:
    """Reset the balance to the daily allowance on a new day.

    Args:
        profile: Current profile
        now: Current time
        allowance: Daily credit allowance

    Returns:
        The refreshed profile, or the same object if no refresh was due
    """
    if not needs_daily_refresh(profile.last_credit_refresh, now):
        return profile

    return profile.model_copy(update={
        "air_credits": allowance,
        "last_credit_refresh": now,
    })


def time_until_refresh(now: datetime) -> timedelta:
    """Time left until the next local midnight."""
    next_midnight = datetime.combine(now.date() + timedelta(days=1), time.min, tzinfo=now.tzinfo)
    return next_midnight - now


def credit_summary(
    profile: UserProfile | None,
    now: datetime,
    allowance: int = DAILY_CREDIT_ALLOWANCE,
    search_cost: int = ROUTE_SEARCH_COST,
) -> dict[str, Any]:
    """Summarize the balance for display.

    Args:
        profile: Current profile (None before onboarding)
        now: Current time
        allowance: Daily credit allowance
        search_cost: Cost of one route search

    Returns:
        Summary dict
    """
    balance = profile.air_credits if profile else 0

    return {
        "balance": balance,
        "daily_allowance": allowance,
        "allowance_percentage": round(balance / allowance * 100, 1),
        "route_search_cost": search_cost,
        "can_search": profile is not None and balance >= search_cost,
        "searches_available": balance // search_cost if search_cost > 0 else None,
        "refresh_in_seconds": int(time_until_refresh(now).total_seconds()),
        "last_refresh": profile.last_credit_refresh.isoformat() if profile else None,
    }
