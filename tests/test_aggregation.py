"""Tests for the aggregation engine and day grouping."""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from spendring.aggregation import (
    compute_totals,
    day_label,
    group_by_day,
    month_range,
    progress_ratio,
    round_currency,
    severity_for,
    today_range,
)
from spendring.models import Budget, DateRange, Period, SeverityTier

AS_OF = date(2024, 3, 15)


class TestPeriodBounds:
    def test_today_range(self):
        assert today_range(AS_OF) == DateRange(start=date(2024, 3, 15), end=date(2024, 3, 16))

    def test_today_range_accepts_datetime(self):
        assert today_range(datetime(2024, 3, 15, 23, 59)).start == AS_OF

    def test_month_range(self):
        assert month_range(AS_OF) == DateRange(start=date(2024, 3, 1), end=date(2024, 4, 1))

    def test_december_rolls_over(self):
        window = month_range(date(2023, 12, 31))
        assert window.start == date(2023, 12, 1)
        assert window.end == date(2024, 1, 1)


class TestRounding:
    def test_half_up(self):
        assert round_currency(Decimal("0.005")) == Decimal("0.01")
        assert round_currency(Decimal("2.675")) == Decimal("2.68")

    def test_float_input_uses_decimal_text(self):
        assert round_currency(0.1) == Decimal("0.10")

    def test_sum_is_exact_before_rounding(self, expense_factory):
        expenses = [expense_factory("0.10", AS_OF) for _ in range(3)]
        totals = compute_totals(expenses, AS_OF)
        assert totals.today.total == Decimal("0.30")


class TestSeverity:
    @pytest.mark.parametrize(
        "total, tier",
        [
            ("0", SeverityTier.NORMAL),
            ("79.99", SeverityTier.NORMAL),
            ("80", SeverityTier.WARNING),
            ("99.99", SeverityTier.WARNING),
            ("100", SeverityTier.OVER),
            ("250", SeverityTier.OVER),
        ],
    )
    def test_thresholds(self, total, tier):
        assert severity_for(Decimal(total), Decimal("100")) == tier

    def test_no_cap_is_normal(self):
        assert severity_for(Decimal("1000000"), None) == SeverityTier.NORMAL

    def test_zero_cap_is_no_cap(self):
        assert severity_for(Decimal("5"), Decimal("0")) == SeverityTier.NORMAL
        assert progress_ratio(Decimal("5"), Decimal("0")) == Decimal("0")

    def test_progress_ratio_is_capped(self):
        assert progress_ratio(Decimal("150"), Decimal("100")) == Decimal("1")
        assert progress_ratio(Decimal("25"), Decimal("100")) == Decimal("0.25")


class TestComputeTotals:
    def test_today_and_month(self, expense_factory):
        expenses = [
            expense_factory("10.00", AS_OF),
            expense_factory("5.25", AS_OF),
            expense_factory("20.00", date(2024, 3, 1)),
            expense_factory("4.00", date(2024, 3, 14)),
            expense_factory("99.00", date(2024, 2, 29)),
        ]
        totals = compute_totals(expenses, AS_OF)

        assert totals.today.total == Decimal("15.25")
        assert totals.today.expense_count == 2
        assert totals.month.total == Decimal("39.25")
        assert totals.month.expense_count == 4
        assert totals.as_of == AS_OF

    def test_sub_cent_amounts_summed_exactly(self):
        records = [
            {"owner_id": "owner-1", "item_name": "Gum", "amount": 0.1 + 0.2, "expense_date": "2024-03-15"},
            {"owner_id": "owner-1", "item_name": "Fuel", "amount": "10.005", "expense_date": "2024-03-15"},
        ]
        totals = compute_totals(records, AS_OF)

        assert totals.skipped == 0
        assert totals.today.expense_count == 2
        assert totals.today.total == Decimal("10.31")

    def test_next_month_first_day_excluded(self, expense_factory):
        expenses = [
            expense_factory("10.00", date(2024, 3, 31)),
            expense_factory("50.00", date(2024, 4, 1)),
        ]
        totals = compute_totals(expenses, date(2024, 3, 31))
        assert totals.month.total == Decimal("10.00")
        assert totals.today.total == Decimal("10.00")

    def test_tomorrow_excluded_from_today(self, expense_factory):
        expenses = [expense_factory("7.00", AS_OF + timedelta(days=1))]
        totals = compute_totals(expenses, AS_OF)
        assert totals.today.total == Decimal("0.00")
        assert totals.month.total == Decimal("7.00")

    def test_caps_and_tiers(self, expense_factory):
        expenses = [
            expense_factory("45.00", AS_OF),
            expense_factory("400.00", date(2024, 3, 2)),
        ]
        budget = Budget(owner_id="owner-1", daily_cap=Decimal("50"), monthly_cap=Decimal("400"))
        totals = compute_totals(expenses, AS_OF, budget=budget)

        assert totals.today.tier == SeverityTier.WARNING
        assert totals.today.progress_ratio == pytest.approx(0.9)
        assert totals.month.tier == SeverityTier.OVER
        assert totals.month.progress_ratio == 1.0

    def test_no_budget(self, expense_factory):
        totals = compute_totals([expense_factory("500.00", AS_OF)], AS_OF)
        assert totals.today.cap is None
        assert totals.today.progress_ratio == 0.0
        assert totals.today.tier == SeverityTier.NORMAL

    def test_zero_cap_reported_as_absent(self, expense_factory):
        budget = Budget(owner_id="owner-1", daily_cap=Decimal("0"))
        totals = compute_totals([expense_factory("5.00", AS_OF)], AS_OF, budget=budget)
        assert totals.today.cap is None
        assert totals.today.tier == SeverityTier.NORMAL

    def test_malformed_records_skipped(self, expense_factory):
        records = [
            expense_factory("10.00", AS_OF),
            {"owner_id": "owner-1", "item_name": "Bad", "amount": "-3", "expense_date": "2024-03-15"},
            {"owner_id": "owner-1", "item_name": "Bad", "amount": "3", "expense_date": "not-a-date"},
            {"owner_id": "owner-1", "amount": "3", "expense_date": "2024-03-15"},
        ]
        totals = compute_totals(records, AS_OF)
        assert totals.skipped == 3
        assert totals.today.total == Decimal("10.00")

    def test_raw_mapping_records_accepted(self):
        records = [
            {"owner_id": "owner-1", "item_name": "Tea", "amount": "2.50", "expense_date": "2024-03-15"},
        ]
        totals = compute_totals(records, AS_OF)
        assert totals.skipped == 0
        assert totals.today.total == Decimal("2.50")

    def test_other_owners_excluded(self, expense_factory):
        expenses = [
            expense_factory("10.00", AS_OF, owner_id="owner-1"),
            expense_factory("90.00", AS_OF, owner_id="owner-2"),
        ]
        totals = compute_totals(expenses, AS_OF, owner_id="owner-1")
        assert totals.today.total == Decimal("10.00")
        assert totals.skipped == 0

    def test_empty_input(self):
        totals = compute_totals([], AS_OF)
        assert totals.today.total == Decimal("0.00")
        assert totals.month.expense_count == 0

    def test_input_not_mutated(self, expense_factory):
        expenses = [expense_factory("10.00", AS_OF)]
        snapshot = [e.model_copy() for e in expenses]
        compute_totals(expenses, AS_OF)
        assert expenses == snapshot

    def test_for_period(self, expense_factory):
        totals = compute_totals([expense_factory("1.00", AS_OF)], AS_OF)
        assert totals.for_period(Period.TODAY) is totals.today
        assert totals.for_period(Period.THIS_MONTH) is totals.month


class TestGrouping:
    def test_labels(self):
        today = date(2024, 3, 15)
        assert day_label(today, today) == "Today"
        assert day_label(date(2024, 3, 14), today) == "Yesterday"
        assert day_label(date(2024, 3, 8), today) == "Friday, March 8"
        assert day_label(date(2023, 12, 25), today) == "Monday, December 25, 2023"

    def test_groups_newest_first(self, expense_factory):
        today = date(2024, 3, 15)
        older = expense_factory("3.00", date(2024, 3, 10))
        first = expense_factory("1.00", today, item_name="First")
        second = expense_factory("2.01", today, item_name="Second").model_copy(
            update={"created_at": first.created_at + timedelta(minutes=5)}
        )

        groups = group_by_day([older, first, second], today)

        assert [g.label for g in groups] == ["Today", "Sunday, March 10"]
        assert [e.item_name for e in groups[0].expenses] == ["Second", "First"]
        assert groups[0].total == Decimal("3.01")
        assert groups[0].count == 2

    def test_empty(self):
        assert group_by_day([], date(2024, 3, 15)) == []
