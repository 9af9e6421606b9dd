"""Tests for vendor metric arithmetic."""

from datetime import datetime

from app.services.vendor_metrics import average_cost, project_frequency, round_rating


class TestAverageCost:

    def test_rounds_to_whole_cents(self):
        assert average_cost(1000, 3) == 333
        assert average_cost(2000, 3) == 667

    def test_no_costs(self):
        assert average_cost(0, 0) == 0


class TestProjectFrequency:

    def test_first_year_counts_as_one_year(self):
        now = datetime(2026, 10, 19)
        assert project_frequency(3, datetime(2026, 6, 1), now) == 3.0

    def test_spread_over_years(self):
        now = datetime(2026, 10, 19)
        first = datetime(2022, 10, 20)  # 1460 days
        assert project_frequency(8, first, now) == 2.0

    def test_no_history(self):
        assert project_frequency(0, None) == 0.0
        assert project_frequency(2, None) == 0.0


class TestRoundRating:

    def test_one_decimal(self):
        assert round_rating(4.24) == 4.2
        assert round_rating(3.666) == 3.7

    def test_no_ratings(self):
        assert round_rating(None) is None
