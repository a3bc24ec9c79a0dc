"""Condition model shared by transaction rules and advanced filters.

A condition is a single ``(field, operator, value)`` test. Conditions are
grouped into a ``ConditionSet`` with an AND/OR conjunction. Which operators a
field accepts is fixed by ``FIELD_OPERATORS`` and checked when a condition is
constructed, so an illegal combination never reaches evaluation.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator


# =============================================================================
# Enumerations
# =============================================================================


class FieldKind(str, Enum):
    """Transaction fields a condition can test."""

    DESCRIPTION = "description"
    AMOUNT = "amount"
    DATE = "date"
    IDENTIFIER = "identifier"
    SOURCE = "source"
    STATUS = "status"
    LABEL = "label"


class Operator(str, Enum):
    """Comparison operators for conditions."""

    EQUALS = "equals"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    BETWEEN = "between"
    NOT_IN = "not_in"


class Conjunction(str, Enum):
    """How the conditions of a set are combined."""

    AND = "AND"
    OR = "OR"


# =============================================================================
# Field / Operator Table
# =============================================================================


TEXT_OPERATORS = frozenset(
    {Operator.EQUALS, Operator.CONTAINS, Operator.STARTS_WITH, Operator.ENDS_WITH}
)
RANGE_OPERATORS = frozenset(
    {Operator.EQUALS, Operator.GREATER_THAN, Operator.LESS_THAN, Operator.BETWEEN}
)
MEMBERSHIP_OPERATORS = frozenset({Operator.EQUALS, Operator.NOT_IN})

TEXT_FIELDS = frozenset({FieldKind.DESCRIPTION, FieldKind.IDENTIFIER, FieldKind.SOURCE})

FIELD_OPERATORS: dict[FieldKind, frozenset[Operator]] = {
    FieldKind.DESCRIPTION: TEXT_OPERATORS,
    FieldKind.IDENTIFIER: TEXT_OPERATORS,
    FieldKind.SOURCE: TEXT_OPERATORS,
    FieldKind.AMOUNT: RANGE_OPERATORS,
    FieldKind.DATE: RANGE_OPERATORS,
    FieldKind.STATUS: MEMBERSHIP_OPERATORS,
    FieldKind.LABEL: MEMBERSHIP_OPERATORS,
}


def is_empty_value(value: Any) -> bool:
    """Whether a condition value counts as missing.

    ``None``, blank strings and empty sequences are empty. Zero is a real
    value (an amount of 0 is a legitimate bound).
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


# =============================================================================
# Condition
# =============================================================================


class Condition(BaseModel):
    """A single field/operator/value test."""

    field: FieldKind = Field(..., description="Transaction field to test")
    operator: Operator = Field(..., description="Comparison operator")
    value: Any = Field(None, description="Scalar, or [min, max] for 'between'")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_operator_supported(self) -> Condition:
        allowed = FIELD_OPERATORS[self.field]
        if self.operator not in allowed:
            choices = ", ".join(sorted(op.value for op in allowed))
            raise ValueError(
                f"Operator '{self.operator.value}' is not supported for field "
                f"'{self.field.value}' (expected one of: {choices})"
            )
        return self

    @property
    def is_evaluable(self) -> bool:
        """Whether the value is complete enough to evaluate.

        ``between`` needs a two-item sequence with both bounds present; every
        other operator needs a single non-empty scalar.
        """
        if self.operator == Operator.BETWEEN:
            if not isinstance(self.value, (list, tuple)) or len(self.value) != 2:
                return False
            return not any(is_empty_value(bound) for bound in self.value)
        if isinstance(self.value, (list, tuple)):
            return False
        return not is_empty_value(self.value)

    def describe(self) -> str:
        """Human-readable form, e.g. ``Description contains "coffee"``."""
        return format_condition(self)


# =============================================================================
# Condition Set
# =============================================================================


class ConditionSet(BaseModel):
    """A list of conditions combined with a single conjunction."""

    conditions: list[Condition] = Field(default_factory=list)
    conjunction: Conjunction = Conjunction.AND

    model_config = {"frozen": True}

    @property
    def is_empty(self) -> bool:
        return not self.conditions

    def pruned(self) -> ConditionSet:
        """Copy of this set without the conditions that cannot be evaluated.

        Filter building drops incomplete conditions instead of letting them
        veto every record.
        """
        return ConditionSet(
            conditions=[c for c in self.conditions if c.is_evaluable],
            conjunction=self.conjunction,
        )

    def describe(self) -> str:
        if not self.conditions:
            return "(no conditions)"
        return f" {self.conjunction.value} ".join(c.describe() for c in self.conditions)


def format_condition(condition: Condition) -> str:
    """Format a condition for display."""
    field = condition.field.value.capitalize()
    operator = condition.operator.value.replace("_", " ")
    value = condition.value

    if condition.operator == Operator.BETWEEN and isinstance(value, (list, tuple)) and len(value) == 2:
        value = f"{value[0]} - {value[1]}"

    return f'{field} {operator} "{value}"'
