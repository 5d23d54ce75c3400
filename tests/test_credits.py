"""Tests for the daily credit rules."""

from datetime import datetime, timedelta, timezone

import pytest

from aircompanion.user.credits import (
    apply_daily_refresh,
    credit_summary,
    needs_daily_refresh,
    time_until_refresh,
)
from aircompanion.user.models import UserProfile

UTC = timezone.utc
NOW = datetime(2024, 3, 14, 9, 30, tzinfo=UTC)


def make_profile(credits: int, last_refresh: datetime) -> UserProfile:
    return UserProfile(id="user-1", air_credits=credits, last_credit_refresh=last_refresh)


class TestNeedsDailyRefresh:

    @pytest.mark.parametrize("last_refresh", [
        datetime(2024, 3, 14, 0, 0, tzinfo=UTC),
        datetime(2024, 3, 14, 9, 29, tzinfo=UTC),
        datetime(2024, 3, 14, 23, 59, tzinfo=UTC),
    ])
    def test_same_day(self, last_refresh):
        assert needs_daily_refresh(last_refresh, NOW) is False

    @pytest.mark.parametrize("last_refresh", [
        datetime(2024, 3, 13, 0, 0, tzinfo=UTC),
        datetime(2024, 3, 13, 23, 59, 59, tzinfo=UTC),
        datetime(2023, 3, 14, 9, 30, tzinfo=UTC),
    ])
    def test_earlier_day(self, last_refresh):
        assert needs_daily_refresh(last_refresh, NOW) is True

    def test_minutes_across_midnight(self):
        last_refresh = datetime(2024, 3, 13, 23, 59, tzinfo=UTC)
        now = datetime(2024, 3, 14, 0, 1, tzinfo=UTC)

        assert needs_daily_refresh(last_refresh, now) is True

    def test_compares_dates_in_local_time_of_now(self):
        # 23:30 UTC on the 14th is already the 15th in UTC+1
        last_refresh = datetime(2024, 3, 14, 23, 30, tzinfo=UTC)
        now = datetime(2024, 3, 15, 1, 0, tzinfo=timezone(timedelta(hours=1)))

        assert needs_daily_refresh(last_refresh, now) is False

    def test_naive_timestamps_are_local(self):
        assert needs_daily_refresh(datetime(2024, 3, 14, 1, 0), datetime(2024, 3, 14, 22, 0)) is False
        assert needs_daily_refresh(datetime(2024, 3, 13, 22, 0), datetime(2024, 3, 14, 1, 0)) is True


class TestApplyDailyRefresh:

    def test_same_day_returns_profile_unchanged(self):
        profile = make_profile(3, datetime(2024, 3, 14, 6, 0, tzinfo=UTC))

        assert apply_daily_refresh(profile, NOW) is profile

    def test_new_day_resets_balance(self):
        profile = make_profile(3, datetime(2024, 3, 13, 18, 0, tzinfo=UTC))

        refreshed = apply_daily_refresh(profile, NOW)

        assert refreshed.air_credits == 24
        assert refreshed.last_credit_refresh == NOW
        assert refreshed.id == profile.id
        assert profile.air_credits == 3

    def test_new_day_resets_balance_above_allowance(self):
        profile = make_profile(150, datetime(2024, 3, 10, 12, 0, tzinfo=UTC))

        assert apply_daily_refresh(profile, NOW).air_credits == 24

    def test_custom_allowance(self):
        profile = make_profile(0, datetime(2024, 3, 13, 12, 0, tzinfo=UTC))

        assert apply_daily_refresh(profile, NOW, allowance=10).air_credits == 10

    def test_idempotent(self):
        profile = make_profile(0, datetime(2024, 3, 13, 12, 0, tzinfo=UTC))

        once = apply_daily_refresh(profile, NOW)

        assert apply_daily_refresh(once, NOW) is once


class TestTimeUntilRefresh:

    def test_until_midnight(self):
        assert time_until_refresh(datetime(2024, 3, 14, 21, 30, tzinfo=UTC)) == timedelta(hours=2, minutes=30)

    def test_at_midnight_is_a_full_day(self):
        assert time_until_refresh(datetime(2024, 3, 14, tzinfo=UTC)) == timedelta(days=1)


class TestCreditSummary:

    def test_without_profile(self):
        summary = credit_summary(None, NOW)

        assert summary["balance"] == 0
        assert summary["can_search"] is False
        assert summary["searches_available"] == 0
        assert summary["last_refresh"] is None

    def test_with_profile(self):
        profile = make_profile(30, NOW)

        summary = credit_summary(profile, NOW)

        assert summary["balance"] == 30
        assert summary["daily_allowance"] == 24
        assert summary["allowance_percentage"] == 125.0
        assert summary["route_search_cost"] == 12
        assert summary["can_search"] is True
        assert summary["searches_available"] == 2
        assert summary["refresh_in_seconds"] == int(timedelta(hours=14, minutes=30).total_seconds())
        assert summary["last_refresh"] == NOW.isoformat()

    def test_below_search_cost(self):
        summary = credit_summary(make_profile(11, NOW), NOW)

        assert summary["can_search"] is False
        assert summary["searches_available"] == 0
