# backend/tests/utils/test_date_utils.py
"""
Tests for calendar helpers.
"""

from datetime import date
from decimal import Decimal

import pytest

from wealth.utils.date_utils import (
    add_months,
    add_years,
    days_in_month,
    month_dates,
    sunday_based_weekday,
    thursday_of_week,
    week_of_year,
    year_fraction,
)


class TestMonthArithmetic:

    @pytest.mark.parametrize("start,months,expected", [
        (date(2024, 1, 31), 1, date(2024, 2, 29)),
        (date(2023, 1, 31), 1, date(2023, 2, 28)),
        (date(2024, 1, 15), 0, date(2024, 1, 15)),
        (date(2024, 11, 30), 3, date(2025, 2, 28)),
    ])
    def test_add_months_clamps(self, start, months, expected):
        assert add_months(start, months) == expected

    def test_add_years_from_leap_day(self):
        assert add_years(date(2024, 2, 29), 1) == date(2025, 2, 28)

    def test_days_in_month(self):
        assert days_in_month(2024, 2) == 29
        assert days_in_month(2023, 2) == 28
        assert days_in_month(2024, 4) == 30

    def test_month_dates(self):
        dates = month_dates(2024, 2)

        assert len(dates) == 29
        assert dates[0] == date(2024, 2, 1)
        assert dates[-1] == date(2024, 2, 29)


class TestWeeks:

    def test_thursday_of_week(self):
        assert thursday_of_week(date(2024, 3, 4)) == date(2024, 3, 7)   # Monday
        assert thursday_of_week(date(2024, 3, 10)) == date(2024, 3, 7)  # Sunday

    @pytest.mark.parametrize("d,expected", [
        (date(2024, 1, 1), 1),
        (date(2024, 12, 30), 1),   # Thursday falls in 2025
        (date(2023, 1, 1), 52),    # Thursday falls in 2022
        (date(2020, 12, 31), 53),
        (date(2024, 3, 6), 10),
    ])
    def test_week_of_year(self, d, expected):
        assert week_of_year(d) == expected

    @pytest.mark.parametrize("d,expected", [
        (date(2024, 3, 3), 0),   # Sunday
        (date(2024, 3, 4), 1),   # Monday
        (date(2024, 3, 9), 6),   # Saturday
    ])
    def test_sunday_based_weekday(self, d, expected):
        assert sunday_based_weekday(d) == expected


class TestYearFraction:

    def test_full_leap_year(self):
        assert year_fraction(date(2024, 1, 1), date(2025, 1, 1)) == Decimal("366") / Decimal("365")

    def test_negative_span(self):
        assert year_fraction(date(2024, 1, 2), date(2024, 1, 1)) < 0
