"""Dry-run checks for rules and filters.

Nothing here attaches labels or writes to a store.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from pydantic import BaseModel, Field

from finmatch.core.models import Transaction
from finmatch.matching import ConditionSet, evaluate, filter_records, translate

from .contracts import RecordStore

logger = logging.getLogger(__name__)

DEFAULT_TEST_LIMIT = 10


class FilterTestResult(BaseModel):
    """Outcome of a dry-run filter check."""

    matches: bool
    results: list[Transaction] | None = Field(None, description="Matching records (store checks only)")
    error: str | None = None


def revalidate(records: Iterable[Any], condition_set: ConditionSet) -> list[Any]:
    """Re-check store results with the local evaluator.

    Records the store returned but the evaluator rejects are dropped and
    logged, since they mean the two paths disagree.
    """
    records = list(records)
    confirmed = filter_records(records, condition_set)
    if len(confirmed) != len(records):
        logger.warning(
            "Store returned %d record(s) the local evaluator rejects for: %s",
            len(records) - len(confirmed),
            condition_set.describe(),
        )
    return confirmed


def check_against_sample(condition_set: ConditionSet, sample: Any) -> FilterTestResult:
    """Evaluate a filter against one sample record, in memory.

    Incomplete conditions are dropped first, as they are when a filter is
    built for the store.
    """
    return FilterTestResult(matches=evaluate(sample, condition_set.pruned()))


def check_against_store(
    condition_set: ConditionSet,
    store: RecordStore,
    limit: int = DEFAULT_TEST_LIMIT,
) -> FilterTestResult:
    """Check whether a condition set returns anything from the store.

    Args:
        condition_set: Conditions to check
        store: Record store to query
        limit: Maximum number of records fetched

    Returns:
        FilterTestResult with the matching records, or with ``error`` set if
        translation or the fetch failed
    """
    condition_set = condition_set.pruned()
    try:
        predicate = translate(condition_set, store.target)
        records = store.fetch(predicate, limit=limit)
    except Exception as exc:
        logger.warning("Filter test failed: %s", exc)
        return FilterTestResult(matches=False, error=str(exc))

    confirmed = revalidate(records, condition_set)
    return FilterTestResult(matches=bool(confirmed), results=confirmed)


# Earlier names, kept for callers that still import them
test_against_sample = check_against_sample
test_against_store = check_against_store
