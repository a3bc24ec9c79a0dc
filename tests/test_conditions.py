"""Tests for the condition model."""

import pytest
from pydantic import ValidationError

from finmatch.matching import (
    FIELD_OPERATORS,
    Condition,
    ConditionSet,
    Conjunction,
    FieldKind,
    Operator,
    format_condition,
    is_empty_value,
)


class TestFieldOperators:
    def test_every_field_has_operators(self):
        assert set(FIELD_OPERATORS) == set(FieldKind)

    @pytest.mark.parametrize("field", ["description", "identifier", "source"])
    def test_text_fields_accept_pattern_operators(self, field):
        for operator in ("equals", "contains", "starts_with", "ends_with"):
            Condition(field=field, operator=operator, value="x")

    @pytest.mark.parametrize(
        "field,operator",
        [
            ("amount", "contains"),
            ("date", "starts_with"),
            ("status", "greater_than"),
            ("label", "between"),
            ("description", "between"),
            ("description", "not_in"),
        ],
    )
    def test_illegal_combination_rejected(self, field, operator):
        with pytest.raises(ValidationError) as exc_info:
            Condition(field=field, operator=operator, value="x")
        assert "not supported" in str(exc_info.value)

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            Condition(field="merchant", operator="equals", value="x")


class TestEmptyValues:
    @pytest.mark.parametrize("value", [None, "", "   ", [], ()])
    def test_empty(self, value):
        assert is_empty_value(value)

    @pytest.mark.parametrize("value", [0, 0.0, False, "0", "a", [1]])
    def test_not_empty(self, value):
        assert not is_empty_value(value)


class TestEvaluability:
    def test_scalar_value(self):
        assert Condition(field="description", operator="contains", value="coffee").is_evaluable

    def test_missing_value(self):
        assert not Condition(field="description", operator="contains").is_evaluable
        assert not Condition(field="description", operator="contains", value="  ").is_evaluable

    def test_zero_amount_is_evaluable(self):
        assert Condition(field="amount", operator="greater_than", value=0).is_evaluable

    def test_between_needs_two_bounds(self):
        assert Condition(field="amount", operator="between", value=[10, 20]).is_evaluable
        assert not Condition(field="amount", operator="between", value=[10]).is_evaluable
        assert not Condition(field="amount", operator="between", value=[10, ""]).is_evaluable
        assert not Condition(field="amount", operator="between", value=15).is_evaluable

    def test_list_value_only_for_between(self):
        assert not Condition(field="amount", operator="equals", value=[10, 20]).is_evaluable


class TestConditionSet:
    def test_defaults(self):
        condition_set = ConditionSet()
        assert condition_set.is_empty
        assert condition_set.conjunction == Conjunction.AND

    def test_pruned_drops_incomplete(self):
        condition_set = ConditionSet(
            conditions=[
                Condition(field="description", operator="contains", value="coffee"),
                Condition(field="amount", operator="between", value=[1, None]),
                Condition(field="source", operator="equals", value=""),
            ],
            conjunction=Conjunction.OR,
        )
        pruned = condition_set.pruned()
        assert [c.field for c in pruned.conditions] == [FieldKind.DESCRIPTION]
        assert pruned.conjunction == Conjunction.OR

    def test_round_trips_through_json(self):
        condition_set = ConditionSet(
            conditions=[Condition(field="amount", operator="between", value=[10, 20])],
            conjunction="OR",
        )
        restored = ConditionSet.model_validate_json(condition_set.model_dump_json())
        assert restored == condition_set


class TestFormatting:
    def test_format_text(self):
        condition = Condition(field="description", operator="starts_with", value="coffee")
        assert format_condition(condition) == 'Description starts with "coffee"'

    def test_format_between(self):
        condition = Condition(field=FieldKind.AMOUNT, operator=Operator.BETWEEN, value=[10, 20])
        assert condition.describe() == 'Amount between "10 - 20"'

    def test_describe_set(self):
        condition_set = ConditionSet(
            conditions=[
                Condition(field="description", operator="contains", value="a"),
                Condition(field="status", operator="equals", value="pending"),
            ],
            conjunction="OR",
        )
        assert condition_set.describe() == 'Description contains "a" OR Status equals "pending"'
        assert ConditionSet().describe() == "(no conditions)"
