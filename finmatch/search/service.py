"""Transaction search and on-arrival rule processing."""

from __future__ import annotations

import logging

from finmatch.core.models import Label, Transaction
from finmatch.matching import ConditionSet, translate
from finmatch.rules.contracts import ExecutionRecorder, RecordStore, RuleSource
from finmatch.rules.engine import RuleApplicationEngine
from finmatch.rules.harness import revalidate
from finmatch.rules.models import TransactionOutcome
from finmatch.storage.repositories import TransactionRepository

logger = logging.getLogger(__name__)


def search_transactions(
    store: RecordStore,
    condition_set: ConditionSet,
    limit: int | None = None,
) -> list[Transaction]:
    """Run an advanced filter against the store.

    Incomplete conditions are dropped before translation and every returned
    record is re-checked with the local evaluator.

    Raises:
        UnsupportedConditionError: If a condition cannot be expressed for the store
    """
    condition_set = condition_set.pruned()
    predicate = translate(condition_set, store.target)
    records = store.fetch(predicate, limit=limit)
    logger.debug("Search for %s returned %d record(s)", condition_set.describe(), len(records))
    return revalidate(records, condition_set)


def create_transaction(
    transactions: TransactionRepository,
    rules: RuleSource,
    execution_log: ExecutionRecorder | None,
    transaction: Transaction,
) -> tuple[Transaction, TransactionOutcome]:
    """Store a new transaction, then run the active rules over it.

    Returns:
        The transaction as stored after the rule pass, and the pass outcome
    """
    stored = transactions.add_transaction(transaction)
    outcome = RuleApplicationEngine(transactions, execution_log).on_transaction_created(stored, rules)
    if outcome.labels_applied:
        stored = transactions.get_transaction(stored.id)
    return stored, outcome


def labels_from_ids(label_ids: list[str]) -> list[Label]:
    """Label stubs carrying only ids, for attaching labels on creation."""
    return [Label(id=label_id, name=label_id) for label_id in label_ids]
