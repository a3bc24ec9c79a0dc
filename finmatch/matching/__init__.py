"""Matching domain - condition model, local evaluation and predicate translation."""

from .conditions import (
    FieldKind,
    Operator,
    Conjunction,
    Condition,
    ConditionSet,
    FIELD_OPERATORS,
    TEXT_FIELDS,
    format_condition,
    is_empty_value,
)
from .fields import (
    FIELD_EVALUATORS,
    evaluate_text,
    evaluate_number,
    evaluate_date,
    evaluate_status,
    evaluate_label,
    parse_instant,
    to_number,
)
from .evaluator import (
    evaluate,
    evaluate_condition,
    rule_matches,
    filter_records,
    label_ids_of,
)
from .translator import (
    PredicateTranslator,
    TranslationTarget,
    UnsupportedConditionError,
    translate,
)

__all__ = [
    # Condition model
    "FieldKind",
    "Operator",
    "Conjunction",
    "Condition",
    "ConditionSet",
    "FIELD_OPERATORS",
    "TEXT_FIELDS",
    "format_condition",
    "is_empty_value",
    # Field evaluators
    "FIELD_EVALUATORS",
    "evaluate_text",
    "evaluate_number",
    "evaluate_date",
    "evaluate_status",
    "evaluate_label",
    "parse_instant",
    "to_number",
    # Local evaluator
    "evaluate",
    "evaluate_condition",
    "rule_matches",
    "filter_records",
    "label_ids_of",
    # Predicate translator
    "PredicateTranslator",
    "TranslationTarget",
    "UnsupportedConditionError",
    "translate",
]
