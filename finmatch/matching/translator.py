"""Translation of condition sets into SQLAlchemy filter predicates.

The predicate produced for a condition set selects exactly the rows the local
evaluator would accept, so a store can filter without loading every record.
Incomplete conditions are dropped; a condition whose value is present but
unusable (e.g. amount ``"abc"``) becomes ``false`` just as it does locally.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Any

from sqlalchemy import and_, exists, false, func, or_, true
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.sql.expression import FromClause

from .conditions import Condition, ConditionSet, Conjunction, FieldKind, Operator, TEXT_FIELDS
from .fields import parse_instant, to_number

logger = logging.getLogger(__name__)


class UnsupportedConditionError(ValueError):
    """Raised when a condition cannot be expressed against a target."""


@dataclass(frozen=True)
class TranslationTarget:
    """Where translated predicates point.

    ``label_links`` is the transaction/label link table. Without it, label
    membership cannot be expressed and label conditions are rejected.
    """

    table: FromClause
    id_column: str = "id"
    label_links: FromClause | None = None
    link_record_column: str = "transaction_id"
    link_label_column: str = "label_id"

    def column(self, name: str) -> Any:
        return self.table.c[name]


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user text matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class PredicateTranslator:
    """Converts condition sets into predicates for a translation target."""

    def __init__(self, target: TranslationTarget):
        self.target = target

    def translate(self, condition_set: ConditionSet) -> ColumnElement[bool]:
        """Translate a condition set into one boolean predicate.

        An empty set, or one whose conditions were all dropped, yields
        ``true`` (no restriction).
        """
        clauses = []
        for condition in condition_set.conditions:
            clause = self.translate_condition(condition)
            if clause is not None:
                clauses.append(clause)

        if not clauses:
            return true()
        if condition_set.conjunction == Conjunction.AND:
            return and_(*clauses)
        return or_(*clauses)

    def translate_condition(self, condition: Condition) -> ColumnElement[bool] | None:
        """Translate one condition; None means the condition is dropped."""
        if not condition.is_evaluable:
            logger.debug("Dropping incomplete condition: %s", condition.describe())
            return None

        if condition.field in TEXT_FIELDS:
            return self._text(condition)
        if condition.field == FieldKind.AMOUNT:
            return self._number(condition)
        if condition.field == FieldKind.DATE:
            return self._date(condition)
        if condition.field == FieldKind.STATUS:
            return self._status(condition)
        if condition.field == FieldKind.LABEL:
            return self._label(condition)
        raise UnsupportedConditionError(f"Unsupported field: {condition.field}")

    # =========================================================================
    # Per-field translation
    # =========================================================================

    def _text(self, condition: Condition) -> ColumnElement[bool]:
        column = self.target.column(condition.field.value)
        needle = str(condition.value)

        if condition.operator == Operator.EQUALS:
            return func.lower(column) == needle.lower()

        escaped = escape_like(needle)
        patterns = {
            Operator.CONTAINS: f"%{escaped}%",
            Operator.STARTS_WITH: f"{escaped}%",
            Operator.ENDS_WITH: f"%{escaped}",
        }
        return column.ilike(patterns[condition.operator], escape="\\")

    def _number(self, condition: Condition) -> ColumnElement[bool]:
        column = self.target.column(condition.field.value)

        if condition.operator == Operator.BETWEEN:
            low, high = (to_number(bound) for bound in condition.value)
            if low is None or high is None:
                return false()
            return and_(column >= low, column <= high)

        target = to_number(condition.value)
        if target is None:
            return false()
        if condition.operator == Operator.EQUALS:
            return column == target
        if condition.operator == Operator.GREATER_THAN:
            return column > target
        return column < target

    def _date(self, condition: Condition) -> ColumnElement[bool]:
        column = self.target.column(condition.field.value)

        if condition.operator == Operator.BETWEEN:
            start, end = (parse_instant(bound) for bound in condition.value)
            if start is None or end is None:
                return false()
            return and_(column >= start, column <= end)

        target = parse_instant(condition.value)
        if target is None:
            return false()
        if condition.operator == Operator.EQUALS:
            day_start = datetime.combine(target.date(), time.min)
            return and_(column >= day_start, column < day_start + timedelta(days=1))
        if condition.operator == Operator.GREATER_THAN:
            return column > target
        return column < target

    def _status(self, condition: Condition) -> ColumnElement[bool]:
        column = self.target.column(condition.field.value)
        expected = getattr(condition.value, "value", condition.value)

        if condition.operator == Operator.EQUALS:
            return column == str(expected)
        # A missing status is "not equal" locally, so NULL rows must match too
        return or_(column.is_(None), column != str(expected))

    def _label(self, condition: Condition) -> ColumnElement[bool]:
        links = self.target.label_links
        if links is None:
            raise UnsupportedConditionError(
                "Label conditions need a transaction/label link table on the translation target"
            )

        membership = exists().where(
            links.c[self.target.link_record_column] == self.target.column(self.target.id_column),
            links.c[self.target.link_label_column] == str(condition.value),
        )
        if condition.operator == Operator.EQUALS:
            return membership
        return ~membership


def translate(condition_set: ConditionSet, target: TranslationTarget) -> ColumnElement[bool]:
    """Translate a condition set against a target."""
    return PredicateTranslator(target).translate(condition_set)
