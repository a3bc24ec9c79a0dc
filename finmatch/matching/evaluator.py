"""In-memory evaluation of condition sets against a single record.

Used for dry-run rule tests, for applying rules to an in-memory batch, and for
re-checking records a store returned for a translated predicate.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable, Sequence

from .conditions import Condition, ConditionSet, Conjunction, FieldKind
from .fields import FIELD_EVALUATORS


def field_value(record: Any, name: str) -> Any:
    """Read a field from a model, an object or a mapping."""
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def label_ids_of(record: Any) -> list[str]:
    """Collect the ids of the labels attached to a record.

    Accepts ``label_ids``, a ``labels`` list of Label objects, mappings or
    plain ids, and the ``transaction_labels`` link rows a store join returns.
    """
    explicit = field_value(record, "label_ids")
    if explicit is not None:
        return [str(label_id) for label_id in explicit]

    ids: list[str] = []
    for item in field_value(record, "labels") or ():
        if isinstance(item, str):
            ids.append(item)
        elif isinstance(item, Mapping):
            label_id = item.get("id", item.get("label_id"))
            if label_id is not None:
                ids.append(str(label_id))
        elif getattr(item, "id", None) is not None:
            ids.append(str(item.id))

    for link in field_value(record, "transaction_labels") or ():
        label_id = link.get("label_id") if isinstance(link, Mapping) else getattr(link, "label_id", None)
        if label_id is not None:
            ids.append(str(label_id))
    return ids


def evaluate_condition(record: Any, condition: Condition) -> bool:
    """Evaluate one condition. Incomplete conditions never match."""
    if not condition.is_evaluable:
        return False

    evaluator = FIELD_EVALUATORS[condition.field]
    if condition.field == FieldKind.LABEL:
        actual = label_ids_of(record)
    else:
        actual = field_value(record, condition.field.value)
    return evaluator(actual, condition.operator, condition.value)


def evaluate(record: Any, condition_set: ConditionSet) -> bool:
    """Decide whether a record matches a condition set.

    An empty set places no restriction and matches every record, under
    either conjunction.
    """
    if condition_set.is_empty:
        return True

    results = (evaluate_condition(record, c) for c in condition_set.conditions)
    if condition_set.conjunction == Conjunction.AND:
        return all(results)
    return any(results)


def rule_matches(record: Any, conditions: Sequence[Condition]) -> bool:
    """Evaluate rule conditions (always AND).

    A rule without conditions is treated as malformed and matches nothing.
    """
    if not conditions:
        return False
    return evaluate(record, ConditionSet(conditions=list(conditions), conjunction=Conjunction.AND))


def filter_records(records: Iterable[Any], condition_set: ConditionSet) -> list[Any]:
    """Keep the records that match a condition set, preserving order."""
    return [record for record in records if evaluate(record, condition_set)]
