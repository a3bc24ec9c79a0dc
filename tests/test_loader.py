"""Tests for YAML rule definition loading."""

import pytest
from pydantic import ValidationError

from finmatch.matching import FieldKind, Operator
from finmatch.rules import load_rules_file, parse_rules


RULES_YAML = """
- id: rule-coffee
  name: Coffee shops
  order_index: 0
  labels_to_apply: [label-coffee]
  conditions:
    - {field: description, operator: contains, value: coffee}
- name: Large expenses
  order_index: 1
  labels_to_apply: [label-large]
  conditions:
    - {field: amount, operator: less_than, value: -500}
"""


def test_load_list(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text(RULES_YAML)

    rules = load_rules_file(path)

    assert [r.name for r in rules] == ["Coffee shops", "Large expenses"]
    assert rules[0].id == "rule-coffee"
    assert rules[0].conditions[0].field == FieldKind.DESCRIPTION
    assert rules[1].conditions[0].operator == Operator.LESS_THAN
    assert rules[1].conditions[0].value == -500


def test_single_mapping():
    rules = parse_rules({"name": "Only", "conditions": []})
    assert len(rules) == 1
    assert rules[0].is_active


def test_empty_document():
    assert parse_rules(None) == []


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_rules_file(tmp_path / "nope.yaml")


def test_illegal_operator_rejected():
    with pytest.raises(ValidationError):
        parse_rules([{"name": "Bad", "conditions": [{"field": "amount", "operator": "contains", "value": 1}]}])
