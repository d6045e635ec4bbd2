from datetime import date, timedelta

import pytest

from planner_api.recurrence import Recurrence, is_due_on


def d(s: str) -> date:
    return date.fromisoformat(s)


class TestNone:
    def test_due_only_on_anchor(self):
        for anchor in (d("2024-01-01"), d("2024-02-29"), d("2023-12-31")):
            assert is_due_on(anchor, "none", anchor) is True
            assert is_due_on(anchor, "none", anchor + timedelta(days=1)) is False
            assert is_due_on(anchor, "none", anchor - timedelta(days=1)) is False


class TestDaily:
    def test_due_every_day_including_before_anchor(self):
        anchor = d("2024-01-10")
        assert is_due_on(anchor, "daily", d("2024-01-10"))
        assert is_due_on(anchor, "daily", d("2024-03-02"))
        assert is_due_on(anchor, "daily", d("2023-06-01"))


class TestWeekly:
    def test_same_weekday_in_both_directions(self):
        anchor = d("2024-01-01")  # Monday
        assert is_due_on(anchor, "weekly", d("2024-01-08"))
        assert is_due_on(anchor, "weekly", d("2023-12-25"))
        assert is_due_on(anchor, "weekly", d("2025-06-02"))

    def test_other_weekdays_are_not_due(self):
        anchor = d("2024-01-01")
        for offset in range(1, 7):
            assert is_due_on(anchor, "weekly", anchor + timedelta(days=offset)) is False


class TestBiweekly:
    def test_even_week_distance(self):
        assert is_due_on(d("2024-01-01"), "biweekly", d("2024-01-15")) is True
        assert is_due_on(d("2024-01-01"), "biweekly", d("2024-01-01")) is True
        assert is_due_on(d("2024-01-01"), "biweekly", d("2024-01-29")) is True

    def test_odd_week_distance(self):
        assert is_due_on(d("2024-01-01"), "biweekly", d("2024-01-08")) is False

    def test_never_before_anchor(self):
        assert is_due_on(d("2024-01-01"), "biweekly", d("2023-12-18")) is False
        assert is_due_on(d("2024-01-01"), "biweekly", d("2023-12-25")) is False

    def test_weekday_must_match(self):
        assert is_due_on(d("2024-01-01"), "biweekly", d("2024-01-16")) is False


class TestMonthly:
    def test_same_day_of_month(self):
        assert is_due_on(d("2024-01-15"), "monthly", d("2024-02-15"))
        assert is_due_on(d("2024-01-15"), "monthly", d("2023-11-15"))

    def test_no_rollover_for_missing_days(self):
        assert is_due_on(d("2024-01-31"), "monthly", d("2024-02-28")) is False
        assert is_due_on(d("2024-01-31"), "monthly", d("2024-02-29")) is False
        assert is_due_on(d("2024-01-31"), "monthly", d("2024-04-30")) is False
        assert is_due_on(d("2024-01-31"), "monthly", d("2024-03-31")) is True


class TestQuarterly:
    def test_every_three_months(self):
        assert is_due_on(d("2024-01-15"), "quarterly", d("2024-04-15")) is True
        assert is_due_on(d("2024-01-15"), "quarterly", d("2025-01-15")) is True
        assert is_due_on(d("2024-11-15"), "quarterly", d("2025-02-15")) is True

    def test_other_months_are_not_due(self):
        assert is_due_on(d("2024-01-15"), "quarterly", d("2024-03-15")) is False
        assert is_due_on(d("2024-01-15"), "quarterly", d("2024-04-16")) is False

    def test_never_before_anchor(self):
        assert is_due_on(d("2024-01-15"), "quarterly", d("2023-10-15")) is False


class TestUnknownRules:
    @pytest.mark.parametrize("rule", ["yearly", "", "WEEKLY", None, 3])
    def test_unknown_rule_is_never_due(self, rule):
        assert is_due_on(d("2024-01-15"), rule, d("2024-01-15")) is False

    def test_enum_members_are_accepted(self):
        assert is_due_on(d("2024-01-01"), Recurrence.BIWEEKLY, d("2024-01-15")) is True
        assert is_due_on(d("2024-01-01"), Recurrence.NONE, d("2024-01-01")) is True
