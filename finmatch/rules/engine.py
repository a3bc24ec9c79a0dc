"""Rule application engine.

Evaluates an ordered list of active rules against transactions and attaches
the labels of every matching rule. Attachment is idempotent (check before
insert) and a failed attachment is logged and reported without stopping the
rest of the pass. Rules are always passed in; the engine never looks them up
on its own.
"""

from __future__ import annotations

import logging
import time
from typing import Iterable, Sequence

from finmatch.core.models import Transaction, TransactionStatus
from finmatch.matching import Condition, ConditionSet, FieldKind, Operator, translate

from .contracts import ExecutionRecorder, LabelWriter, RecordStore, RuleSource
from .models import (
    ApplicationReport,
    DryRunResult,
    Rule,
    RuleExecution,
    TransactionOutcome,
)

logger = logging.getLogger(__name__)


def active_rules_in_order(rules: Iterable[Rule]) -> list[Rule]:
    """Active rules sorted by ``order_index`` (stable for equal indexes)."""
    return sorted((rule for rule in rules if rule.is_active), key=lambda rule: rule.order_index)


def pending_filter(status: str = TransactionStatus.PENDING.value) -> ConditionSet:
    """Condition set selecting transactions still waiting in the inbox."""
    return ConditionSet(
        conditions=[Condition(field=FieldKind.STATUS, operator=Operator.EQUALS, value=status)]
    )


class RuleApplicationEngine:
    """Applies rules to transactions through a label writer.

    Args:
        label_writer: Store used to check and attach labels
        execution_log: Optional recorder for per-rule execution records
    """

    def __init__(self, label_writer: LabelWriter, execution_log: ExecutionRecorder | None = None):
        self.label_writer = label_writer
        self.execution_log = execution_log

    # =========================================================================
    # Application
    # =========================================================================

    def apply_to_transaction(self, transaction: Transaction, rules: Sequence[Rule]) -> TransactionOutcome:
        """Run every active rule, in order, against one transaction."""
        return self._apply(transaction, active_rules_in_order(rules))

    def apply_to_transactions(
        self, transactions: Iterable[Transaction], rules: Sequence[Rule]
    ) -> ApplicationReport:
        """Run the active rules over a batch, one transaction at a time."""
        ordered = active_rules_in_order(rules)
        report = ApplicationReport()
        for transaction in transactions:
            report.add(self._apply(transaction, ordered))

        logger.info(report.summary())
        return report

    def process_pending_transactions(
        self,
        store: RecordStore,
        rules: Sequence[Rule],
        pending_status: str = TransactionStatus.PENDING.value,
    ) -> ApplicationReport:
        """Apply rules to every pending transaction in the store.

        A failed fetch is reported in ``ApplicationReport.error``.
        """
        predicate = translate(pending_filter(pending_status), store.target)
        try:
            transactions = store.fetch(predicate)
        except Exception as exc:
            logger.exception("Failed to fetch pending transactions")
            return ApplicationReport(error=str(exc))

        return self.apply_to_transactions(transactions, rules)

    def on_transaction_created(self, transaction: Transaction, rule_source: RuleSource) -> TransactionOutcome:
        """Single-record pass for a transaction that just arrived."""
        try:
            rules = rule_source.list_active_rules()
        except Exception as exc:
            logger.exception("Failed to load active rules for transaction %s", transaction.id)
            return TransactionOutcome(transaction_id=transaction.id, errors=[f"rules: {exc}"])

        return self.apply_to_transaction(transaction, rules)

    # =========================================================================
    # Dry Run
    # =========================================================================

    def test_rules(self, transaction: Transaction, rules: Sequence[Rule]) -> DryRunResult:
        """Report which rules would match, without attaching or recording anything."""
        matching = [rule for rule in active_rules_in_order(rules) if rule.matches(transaction)]

        labels: list[str] = []
        for rule in matching:
            for label_id in rule.labels_to_apply:
                if label_id not in labels:
                    labels.append(label_id)

        return DryRunResult(
            transaction_id=transaction.id,
            matching_rules=matching,
            labels_to_apply=labels,
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _apply(self, transaction: Transaction, ordered_rules: list[Rule]) -> TransactionOutcome:
        outcome = TransactionOutcome(transaction_id=transaction.id)

        for rule in ordered_rules:
            started = time.perf_counter()
            matched = rule.matches(transaction)
            applied: list[str] = []

            if matched:
                logger.debug("Rule %s (%s) matched transaction %s", rule.id, rule.name, transaction.id)
                outcome.rules_applied.append(rule.id)
                for label_id in rule.labels_to_apply:
                    if self._attach(transaction.id, label_id, outcome):
                        applied.append(label_id)
                        outcome.labels_applied.append(label_id)

            elapsed_ms = (time.perf_counter() - started) * 1000
            self._record(rule, transaction.id, matched, elapsed_ms, applied)

        return outcome

    def _attach(self, transaction_id: str, label_id: str, outcome: TransactionOutcome) -> bool:
        try:
            if self.label_writer.is_label_attached(transaction_id, label_id):
                return False
            return self.label_writer.attach_label(transaction_id, label_id)
        except Exception as exc:
            logger.exception("Failed to attach label %s to transaction %s", label_id, transaction_id)
            outcome.errors.append(f"label {label_id}: {exc}")
            return False

    def _record(
        self,
        rule: Rule,
        transaction_id: str,
        matched: bool,
        elapsed_ms: float,
        labels_applied: list[str],
    ) -> None:
        if self.execution_log is None:
            return
        execution = RuleExecution(
            rule_id=rule.id,
            transaction_id=transaction_id,
            matched=matched,
            execution_time_ms=elapsed_ms,
            labels_applied=labels_applied,
            rule_conditions=[c.model_dump(mode="json") for c in rule.conditions],
        )
        try:
            self.execution_log.record(execution)
        except Exception:
            logger.warning("Could not record execution of rule %s", rule.id, exc_info=True)
