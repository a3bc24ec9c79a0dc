"""Tests for in-memory condition set evaluation."""

from datetime import datetime
from types import SimpleNamespace

from finmatch.core.models import Label
from finmatch.matching import (
    Condition,
    ConditionSet,
    evaluate,
    evaluate_condition,
    filter_records,
    label_ids_of,
    rule_matches,
)


def _set(*conditions, conjunction="AND") -> ConditionSet:
    return ConditionSet(conditions=list(conditions), conjunction=conjunction)


COFFEE = Condition(field="description", operator="contains", value="coffee")
SMALL = Condition(field="amount", operator="between", value=[-10, 0])
INCOMPLETE = Condition(field="description", operator="contains", value="")


class TestRecordAccess:
    def test_label_ids_from_transaction(self, make_transaction):
        transaction = make_transaction(labels=[Label(id="a", name="A"), Label(id="b", name="B")])
        assert label_ids_of(transaction) == ["a", "b"]

    def test_label_ids_from_mapping(self):
        record = {"labels": ["a", {"id": "b"}, {"label_id": "c"}]}
        assert label_ids_of(record) == ["a", "b", "c"]

    def test_label_ids_from_link_rows(self):
        record = SimpleNamespace(labels=None, transaction_labels=[SimpleNamespace(label_id="x")])
        assert label_ids_of(record) == ["x"]

    def test_mapping_record(self):
        record = {"description": "Coffee bar", "amount": -3}
        assert evaluate(record, _set(COFFEE, SMALL))


class TestEvaluate:
    def test_and_requires_all(self, make_transaction):
        transaction = make_transaction(description="Coffee", amount=-50)
        assert not evaluate(transaction, _set(COFFEE, SMALL))
        assert evaluate(make_transaction(description="Coffee", amount=-5), _set(COFFEE, SMALL))

    def test_or_requires_any(self, make_transaction):
        transaction = make_transaction(description="Coffee", amount=-50)
        assert evaluate(transaction, _set(COFFEE, SMALL, conjunction="OR"))
        assert not evaluate(make_transaction(description="Tea", amount=-50), _set(COFFEE, SMALL, conjunction="OR"))

    def test_empty_set_matches_everything(self, make_transaction):
        assert evaluate(make_transaction(), ConditionSet())
        assert evaluate(make_transaction(), ConditionSet(conjunction="OR"))

    def test_incomplete_condition_never_matches(self, make_transaction):
        transaction = make_transaction(description="Coffee")
        assert not evaluate_condition(transaction, INCOMPLETE)
        assert not evaluate(transaction, _set(COFFEE, INCOMPLETE))
        assert evaluate(transaction, _set(COFFEE, INCOMPLETE, conjunction="OR"))

    def test_label_condition(self, make_transaction):
        transaction = make_transaction(labels=[Label(id="label-food", name="Food")])
        has_food = Condition(field="label", operator="equals", value="label-food")
        lacks_food = Condition(field="label", operator="not_in", value="label-food")
        assert evaluate(transaction, _set(has_food))
        assert not evaluate(transaction, _set(lacks_food))

    def test_status_condition(self, make_transaction):
        pending = Condition(field="status", operator="equals", value="pending")
        assert evaluate(make_transaction(), _set(pending))
        assert not evaluate(make_transaction(status="approved"), _set(pending))

    def test_date_condition(self, make_transaction):
        same_day = Condition(field="date", operator="equals", value="2024-03-15")
        assert evaluate(make_transaction(date=datetime(2024, 3, 15, 21, 0)), _set(same_day))


class TestRuleMatches:
    def test_rule_without_conditions_matches_nothing(self, make_transaction):
        assert not rule_matches(make_transaction(), [])

    def test_rule_conditions_are_anded(self, make_transaction):
        transaction = make_transaction(description="Coffee", amount=-50)
        assert not rule_matches(transaction, [COFFEE, SMALL])
        assert rule_matches(transaction, [COFFEE])

    def test_incomplete_condition_fails_rule(self, make_transaction):
        assert not rule_matches(make_transaction(description="Coffee"), [COFFEE, INCOMPLETE])


def test_filter_records_keeps_order(make_transaction):
    records = [
        make_transaction(id="1", description="Coffee A"),
        make_transaction(id="2", description="Tea"),
        make_transaction(id="3", description="coffee B"),
    ]
    assert [r.id for r in filter_records(records, _set(COFFEE))] == ["1", "3"]


def test_amount_filter_scenario(make_transaction):
    condition_set = _set(Condition(field="amount", operator="greater_than", value=100))
    records = [make_transaction(id="small", amount=50), make_transaction(id="large", amount=150)]
    assert [r.id for r in filter_records(records, condition_set)] == ["large"]
