"""Per-field-type matchers.

Each evaluator is a pure function ``(field_value, operator, condition_value)
-> bool``. Malformed input (missing field, non-numeric amount, unparseable
date) evaluates to ``False`` instead of raising, so a bad condition excludes
records rather than aborting a rule pass.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Iterable

from .conditions import FieldKind, Operator


# =============================================================================
# Value Coercion
# =============================================================================


def to_number(value: Any) -> float | None:
    """Coerce a number or numeric string to float; None if not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        result = float(value)
    elif isinstance(value, str):
        try:
            result = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(result):
        return None
    return result


def parse_instant(value: Any) -> datetime | None:
    """Parse a date, datetime or ISO-8601 string to a naive UTC datetime.

    Dates become midnight. Aware datetimes are converted to UTC and stripped
    of their tzinfo so they compare with naive stored values.
    """
    if isinstance(value, datetime):
        instant = value
    elif isinstance(value, date):
        instant = datetime.combine(value, time.min)
    elif isinstance(value, str) and value.strip():
        try:
            instant = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None

    if instant.tzinfo is not None:
        instant = instant.astimezone(timezone.utc).replace(tzinfo=None)
    return instant


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _bounds(value: Any) -> tuple[Any, Any] | None:
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return value[0], value[1]
    return None


# =============================================================================
# Evaluators
# =============================================================================


def evaluate_text(field_value: Any, operator: Operator, value: Any) -> bool:
    """Case-insensitive text comparison. An empty field never matches."""
    if field_value is None or value is None:
        return False
    text = str(_plain(field_value)).lower()
    if not text:
        return False
    needle = str(value).lower()

    if operator == Operator.EQUALS:
        return text == needle
    if operator == Operator.CONTAINS:
        return needle in text
    if operator == Operator.STARTS_WITH:
        return text.startswith(needle)
    if operator == Operator.ENDS_WITH:
        return text.endswith(needle)
    raise ValueError(f"Unsupported text operator: {operator}")


def evaluate_number(field_value: Any, operator: Operator, value: Any) -> bool:
    """Numeric comparison. Equality is exact; ``between`` is inclusive."""
    amount = to_number(field_value)
    if amount is None:
        return False

    if operator == Operator.BETWEEN:
        bounds = _bounds(value)
        if bounds is None:
            return False
        low, high = to_number(bounds[0]), to_number(bounds[1])
        if low is None or high is None:
            return False
        return low <= amount <= high

    target = to_number(value)
    if target is None:
        return False
    if operator == Operator.EQUALS:
        return amount == target
    if operator == Operator.GREATER_THAN:
        return amount > target
    if operator == Operator.LESS_THAN:
        return amount < target
    raise ValueError(f"Unsupported number operator: {operator}")


def evaluate_date(field_value: Any, operator: Operator, value: Any) -> bool:
    """Date comparison.

    ``equals`` compares the calendar day only; the other operators compare
    full instants, with ``between`` inclusive on both ends.
    """
    instant = parse_instant(field_value)
    if instant is None:
        return False

    if operator == Operator.BETWEEN:
        bounds = _bounds(value)
        if bounds is None:
            return False
        start, end = parse_instant(bounds[0]), parse_instant(bounds[1])
        if start is None or end is None:
            return False
        return start <= instant <= end

    target = parse_instant(value)
    if target is None:
        return False
    if operator == Operator.EQUALS:
        return instant.date() == target.date()
    if operator == Operator.GREATER_THAN:
        return instant > target
    if operator == Operator.LESS_THAN:
        return instant < target
    raise ValueError(f"Unsupported date operator: {operator}")


def evaluate_status(field_value: Any, operator: Operator, value: Any) -> bool:
    """Exact status match. ``not_in`` negates equality against one value."""
    current = _plain(field_value)
    expected = _plain(value)
    matches = current is not None and str(current) == str(expected)

    if operator == Operator.EQUALS:
        return matches
    if operator == Operator.NOT_IN:
        return not matches
    raise ValueError(f"Unsupported status operator: {operator}")


def evaluate_label(label_ids: Iterable[str] | None, operator: Operator, value: Any) -> bool:
    """Membership test over the label ids attached to a record."""
    attached = {str(label_id) for label_id in (label_ids or ())}
    has_label = str(value) in attached

    if operator == Operator.EQUALS:
        return has_label
    if operator == Operator.NOT_IN:
        return not has_label
    raise ValueError(f"Unsupported label operator: {operator}")


FieldEvaluator = Callable[[Any, Operator, Any], bool]

FIELD_EVALUATORS: dict[FieldKind, FieldEvaluator] = {
    FieldKind.DESCRIPTION: evaluate_text,
    FieldKind.IDENTIFIER: evaluate_text,
    FieldKind.SOURCE: evaluate_text,
    FieldKind.AMOUNT: evaluate_number,
    FieldKind.DATE: evaluate_date,
    FieldKind.STATUS: evaluate_status,
    FieldKind.LABEL: evaluate_label,
}
