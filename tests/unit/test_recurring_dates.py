"""
Unit tests for recurrence date arithmetic.

Tests cover:
- Daily, weekly, monthly, quarterly and yearly steps
- Interval multipliers
- Day-of-month clamping at month end
- Sunday-based day_of_week alignment
"""

from datetime import datetime

import pytest

from flowbalance.core.exceptions import ValidationError
from flowbalance.domain.models import RecurrenceFrequency
from flowbalance.services.recurring_service import calculate_next_date


class TestCalculateNextDate:
    """Tests for calculate_next_date."""

    def test_daily_with_interval(self):
        result = calculate_next_date(datetime(2024, 1, 1), RecurrenceFrequency.DAILY, interval=2)
        assert result == datetime(2024, 1, 3)

    def test_daily_crosses_month(self):
        assert calculate_next_date(datetime(2024, 1, 31), "DAILY") == datetime(2024, 2, 1)

    def test_weekly_plain(self):
        # 2024-06-15 is a Saturday
        assert calculate_next_date(datetime(2024, 6, 15), RecurrenceFrequency.WEEKLY) == datetime(2024, 6, 22)

    def test_weekly_aligns_to_day_of_week(self):
        """
        GIVEN a weekly template on Mondays (day_of_week=1, Sunday=0)
        WHEN stepping from a Saturday
        THEN the next date is the Monday after one week
        """
        result = calculate_next_date(datetime(2024, 6, 15), RecurrenceFrequency.WEEKLY, day_of_week=1)
        assert result == datetime(2024, 6, 24)
        assert result.weekday() == 0

    def test_weekly_sunday_is_zero(self):
        result = calculate_next_date(datetime(2024, 6, 15), RecurrenceFrequency.WEEKLY, day_of_week=0)
        assert result == datetime(2024, 6, 23)
        assert result.weekday() == 6

    def test_monthly_clamps_day_31(self):
        """
        GIVEN a monthly template on day 31
        WHEN stepping from January 31st 2024
        THEN February 29th is used, and March returns to the 31st
        """
        feb = calculate_next_date(datetime(2024, 1, 31), RecurrenceFrequency.MONTHLY, day_of_month=31)
        assert feb == datetime(2024, 2, 29)
        mar = calculate_next_date(feb, RecurrenceFrequency.MONTHLY, day_of_month=31)
        assert mar == datetime(2024, 3, 31)

    def test_monthly_keeps_time_of_day(self):
        result = calculate_next_date(datetime(2024, 1, 10, 9, 30), RecurrenceFrequency.MONTHLY)
        assert result == datetime(2024, 2, 10, 9, 30)

    def test_monthly_across_year_end(self):
        result = calculate_next_date(datetime(2024, 11, 15), RecurrenceFrequency.MONTHLY, interval=3)
        assert result == datetime(2025, 2, 15)

    def test_quarterly(self):
        assert calculate_next_date(datetime(2024, 1, 15), RecurrenceFrequency.QUARTERLY) == datetime(2024, 4, 15)

    def test_yearly_from_leap_day(self):
        assert calculate_next_date(datetime(2024, 2, 29), RecurrenceFrequency.YEARLY) == datetime(2025, 2, 28)

    def test_yearly_with_month_and_day(self):
        result = calculate_next_date(
            datetime(2024, 1, 10),
            RecurrenceFrequency.YEARLY,
            day_of_month=10,
            month_of_year=3,
        )
        assert result == datetime(2025, 3, 10)

    def test_unknown_frequency_raises(self):
        with pytest.raises(ValidationError):
            calculate_next_date(datetime(2024, 1, 1), "HOURLY")
