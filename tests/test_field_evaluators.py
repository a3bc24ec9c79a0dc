"""Tests for the per-field-type matchers."""

from datetime import date, datetime, timedelta, timezone

import pytest

from finmatch.core.models import TransactionStatus
from finmatch.matching import (
    Operator,
    evaluate_date,
    evaluate_label,
    evaluate_number,
    evaluate_status,
    evaluate_text,
    parse_instant,
    to_number,
)


class TestCoercion:
    @pytest.mark.parametrize("value,expected", [(5, 5.0), ("12.5", 12.5), (" -3 ", -3.0), (0, 0.0)])
    def test_to_number(self, value, expected):
        assert to_number(value) == expected

    @pytest.mark.parametrize("value", [None, "abc", "", True, float("nan"), [1]])
    def test_to_number_rejects(self, value):
        assert to_number(value) is None

    def test_parse_instant_date_is_midnight(self):
        assert parse_instant(date(2024, 3, 15)) == datetime(2024, 3, 15)

    def test_parse_instant_iso_string(self):
        assert parse_instant("2024-03-15T08:30:00") == datetime(2024, 3, 15, 8, 30)

    def test_parse_instant_converts_aware_to_naive_utc(self):
        aware = datetime(2024, 3, 15, 10, 0, tzinfo=timezone(timedelta(hours=2)))
        assert parse_instant(aware) == datetime(2024, 3, 15, 8, 0)
        assert parse_instant("2024-03-15T08:00:00Z") == datetime(2024, 3, 15, 8, 0)

    @pytest.mark.parametrize("value", [None, "", "not a date", 42])
    def test_parse_instant_rejects(self, value):
        assert parse_instant(value) is None


class TestText:
    def test_equals_ignores_case(self):
        assert evaluate_text("Coffee", Operator.EQUALS, "coffee")
        assert not evaluate_text("Coffee Shop", Operator.EQUALS, "coffee")

    def test_contains(self):
        assert evaluate_text("STARBUCKS COFFEE #12", Operator.CONTAINS, "coffee")
        assert not evaluate_text("Tea house", Operator.CONTAINS, "coffee")

    def test_starts_and_ends_with(self):
        assert evaluate_text("Amazon Prime", Operator.STARTS_WITH, "amazon")
        assert evaluate_text("Amazon Prime", Operator.ENDS_WITH, "PRIME")
        assert not evaluate_text("Amazon Prime", Operator.ENDS_WITH, "amazon")

    @pytest.mark.parametrize("field_value", [None, ""])
    def test_empty_field_never_matches(self, field_value):
        assert not evaluate_text(field_value, Operator.CONTAINS, "a")

    def test_unsupported_operator(self):
        with pytest.raises(ValueError):
            evaluate_text("x", Operator.GREATER_THAN, "x")


class TestNumber:
    def test_comparisons(self):
        assert evaluate_number(150, Operator.GREATER_THAN, 100)
        assert not evaluate_number(100, Operator.GREATER_THAN, 100)
        assert evaluate_number(-5, Operator.LESS_THAN, "0")
        assert evaluate_number(12.5, Operator.EQUALS, "12.5")

    def test_between_is_inclusive(self):
        assert evaluate_number(10, Operator.BETWEEN, [10, 20])
        assert evaluate_number(15, Operator.BETWEEN, [10, 20])
        assert not evaluate_number(9.99, Operator.BETWEEN, [10, 20])
        assert evaluate_number(20, Operator.BETWEEN, ["10", "20"])
        assert not evaluate_number(20.01, Operator.BETWEEN, [10, 20])

    def test_zero_is_a_value(self):
        assert evaluate_number(0, Operator.EQUALS, 0)
        assert evaluate_number(-1, Operator.LESS_THAN, 0)

    @pytest.mark.parametrize(
        "field_value,operator,value",
        [
            ("abc", Operator.GREATER_THAN, 1),
            (None, Operator.EQUALS, 1),
            (5, Operator.GREATER_THAN, "abc"),
            (5, Operator.BETWEEN, [1]),
            (5, Operator.BETWEEN, [1, "x"]),
        ],
    )
    def test_malformed_is_false(self, field_value, operator, value):
        assert not evaluate_number(field_value, operator, value)


class TestDate:
    def test_equals_compares_day_only(self):
        assert evaluate_date(datetime(2024, 3, 15, 23, 59), Operator.EQUALS, "2024-03-15")
        assert not evaluate_date(datetime(2024, 3, 16, 0, 0), Operator.EQUALS, "2024-03-15")

    def test_ordering(self):
        assert evaluate_date("2024-03-15T08:00:00", Operator.GREATER_THAN, date(2024, 3, 15))
        assert evaluate_date(datetime(2024, 3, 14), Operator.LESS_THAN, "2024-03-15")

    def test_between_is_inclusive(self):
        bounds = ["2024-03-01T00:00:00", "2024-03-31T00:00:00"]
        assert evaluate_date(datetime(2024, 3, 1), Operator.BETWEEN, bounds)
        assert evaluate_date(datetime(2024, 3, 31), Operator.BETWEEN, bounds)
        assert not evaluate_date(datetime(2024, 3, 31, 0, 0, 1), Operator.BETWEEN, bounds)

    def test_malformed_is_false(self):
        assert not evaluate_date("garbage", Operator.EQUALS, "2024-03-15")
        assert not evaluate_date(datetime(2024, 3, 15), Operator.EQUALS, "garbage")
        assert not evaluate_date(datetime(2024, 3, 15), Operator.BETWEEN, ["2024-03-01"])


class TestStatus:
    def test_equals(self):
        assert evaluate_status(TransactionStatus.PENDING, Operator.EQUALS, "pending")
        assert not evaluate_status("approved", Operator.EQUALS, TransactionStatus.PENDING)

    def test_not_in_negates_equals(self):
        assert evaluate_status("approved", Operator.NOT_IN, "pending")
        assert not evaluate_status("pending", Operator.NOT_IN, "pending")

    def test_missing_status(self):
        assert not evaluate_status(None, Operator.EQUALS, "pending")
        assert evaluate_status(None, Operator.NOT_IN, "pending")


class TestLabel:
    def test_membership(self):
        assert evaluate_label(["a", "b"], Operator.EQUALS, "b")
        assert not evaluate_label(["a"], Operator.EQUALS, "b")

    def test_not_in(self):
        assert evaluate_label(["a"], Operator.NOT_IN, "b")
        assert evaluate_label(None, Operator.NOT_IN, "b")
        assert not evaluate_label(["b"], Operator.NOT_IN, "b")
