"""Repositories over the SQLModel tables.

``TransactionRepository`` is the record store and label writer the rule
engine consumes, ``RuleRepository`` the rule source and
``ExecutionLogRepository`` the execution recorder.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.sql.elements import ColumnElement
from sqlmodel import Session, col, func, select

from finmatch.core.models import Label, Transaction, utc_now
from finmatch.matching import Condition, TranslationTarget
from finmatch.rules.models import Rule, RuleExecution

from .models import (
    LabelRecord,
    RuleExecutionRecord,
    RuleRecord,
    TransactionLabelRecord,
    TransactionRecord,
)

logger = logging.getLogger(__name__)


def transaction_target() -> TranslationTarget:
    """Translation target for the transactions table and its label links."""
    return TranslationTarget(
        table=TransactionRecord.__table__,
        label_links=TransactionLabelRecord.__table__,
    )


# =============================================================================
# Transactions
# =============================================================================


class TransactionRepository:
    """Transaction persistence, predicate execution and label attachment."""

    def __init__(self, session: Session):
        self.session = session
        self.target = transaction_target()

    def add_transaction(self, transaction: Transaction) -> Transaction:
        """Store a transaction together with any labels it already carries."""
        record = TransactionRecord(
            id=transaction.id,
            description=transaction.description,
            amount=transaction.amount,
            date=transaction.date,
            identifier=transaction.identifier,
            source=transaction.source,
            status=transaction.status.value,
            notes=transaction.notes,
        )
        self.session.add(record)
        for label_id in dict.fromkeys(transaction.label_ids):
            self.session.add(TransactionLabelRecord(transaction_id=record.id, label_id=label_id))
        self.session.commit()
        return self.get_transaction(record.id)

    def get_transaction(self, transaction_id: str) -> Transaction | None:
        record = self.session.get(TransactionRecord, transaction_id)
        if record is None:
            return None
        return self._to_domain([record])[0]

    def get_transactions(self, transaction_ids: Sequence[str]) -> list[Transaction]:
        """Fetch several transactions, in the order given. Unknown ids are skipped."""
        statement = select(TransactionRecord).where(col(TransactionRecord.id).in_(list(transaction_ids)))
        by_id = {t.id: t for t in self._to_domain(self.session.exec(statement).all())}
        return [by_id[transaction_id] for transaction_id in dict.fromkeys(transaction_ids) if transaction_id in by_id]

    def list_transactions(self, limit: int | None = None) -> list[Transaction]:
        statement = select(TransactionRecord).order_by(
            col(TransactionRecord.date).desc(), col(TransactionRecord.id)
        )
        if limit is not None:
            statement = statement.limit(limit)
        return self._to_domain(self.session.exec(statement).all())

    def list_pending(self, status: str = "pending") -> list[Transaction]:
        """Transactions still waiting in the inbox, newest first."""
        statement = (
            select(TransactionRecord)
            .where(TransactionRecord.status == status)
            .order_by(col(TransactionRecord.date).desc(), col(TransactionRecord.id))
        )
        return self._to_domain(self.session.exec(statement).all())

    def fetch(
        self,
        predicate: ColumnElement[bool],
        order_by: Sequence[Any] | None = None,
        limit: int | None = None,
    ) -> list[Transaction]:
        """Execute a translated predicate.

        Args:
            predicate: Boolean expression over ``self.target``
            order_by: Sort expressions (newest first when omitted)
            limit: Maximum number of rows

        Returns:
            Matching transactions with their labels loaded
        """
        statement = select(TransactionRecord).where(predicate)
        if order_by:
            statement = statement.order_by(*order_by)
        else:
            statement = statement.order_by(col(TransactionRecord.date).desc(), col(TransactionRecord.id))
        if limit is not None:
            statement = statement.limit(limit)
        return self._to_domain(self.session.exec(statement).all())

    # =========================================================================
    # Labels
    # =========================================================================

    def is_label_attached(self, transaction_id: str, label_id: str) -> bool:
        statement = select(TransactionLabelRecord).where(
            TransactionLabelRecord.transaction_id == transaction_id,
            TransactionLabelRecord.label_id == label_id,
        )
        try:
            return self.session.exec(statement).first() is not None
        except SQLAlchemyError:
            self.session.rollback()
            raise

    def attach_label(self, transaction_id: str, label_id: str) -> bool:
        """Attach a label; False if the pair already exists."""
        self.session.add(TransactionLabelRecord(transaction_id=transaction_id, label_id=label_id))
        try:
            self.session.commit()
        except IntegrityError:
            # Lost a race with another pass; the unique pair already exists
            self.session.rollback()
            logger.info("Label %s already attached to transaction %s", label_id, transaction_id)
            return False
        except SQLAlchemyError:
            self.session.rollback()
            raise
        return True

    def labels_for(self, transaction_id: str) -> list[str]:
        statement = (
            select(TransactionLabelRecord.label_id)
            .where(TransactionLabelRecord.transaction_id == transaction_id)
            .order_by(col(TransactionLabelRecord.id))
        )
        return list(self.session.exec(statement).all())

    def _to_domain(self, records: Sequence[TransactionRecord]) -> list[Transaction]:
        if not records:
            return []

        ids = [record.id for record in records]
        statement = (
            select(TransactionLabelRecord, LabelRecord)
            .outerjoin(LabelRecord, col(LabelRecord.id) == col(TransactionLabelRecord.label_id))
            .where(col(TransactionLabelRecord.transaction_id).in_(ids))
            .order_by(col(TransactionLabelRecord.id))
        )
        labels: dict[str, list[Label]] = defaultdict(list)
        for link, label in self.session.exec(statement).all():
            if label is None:
                # Links may point at labels the store does not know by name
                labels[link.transaction_id].append(Label(id=link.label_id, name=link.label_id))
            else:
                labels[link.transaction_id].append(Label.model_validate(label))

        return [
            Transaction(
                id=record.id,
                description=record.description,
                amount=record.amount,
                date=record.date,
                identifier=record.identifier,
                source=record.source,
                status=record.status,
                notes=record.notes,
                labels=labels.get(record.id, []),
            )
            for record in records
        ]


# =============================================================================
# Labels
# =============================================================================


class LabelRepository:
    """Label persistence."""

    def __init__(self, session: Session):
        self.session = session

    def create_label(self, label: Label) -> Label:
        record = LabelRecord(id=label.id, name=label.name, color=label.color, recurring=label.recurring)
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return Label.model_validate(record)

    def get_label(self, label_id: str) -> Label | None:
        record = self.session.get(LabelRecord, label_id)
        return Label.model_validate(record) if record else None

    def list_labels(self) -> list[Label]:
        records = self.session.exec(select(LabelRecord).order_by(col(LabelRecord.name))).all()
        return [Label.model_validate(record) for record in records]


# =============================================================================
# Rules
# =============================================================================


class RuleRepository:
    """Rule persistence. Rules come back ordered by ``order_index``."""

    def __init__(self, session: Session):
        self.session = session

    def create_rule(self, rule: Rule) -> Rule:
        record = RuleRecord(
            id=rule.id,
            name=rule.name,
            conditions=_dump_conditions(rule.conditions),
            labels_to_apply=list(rule.labels_to_apply),
            order_index=rule.order_index,
            is_active=rule.is_active,
        )
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return _rule_from_record(record)

    def next_order_index(self) -> int:
        """Index that places a new rule after every existing one."""
        highest = self.session.exec(select(func.max(RuleRecord.order_index))).one()
        return 0 if highest is None else highest + 1

    def get_rule(self, rule_id: str) -> Rule | None:
        record = self.session.get(RuleRecord, rule_id)
        return _rule_from_record(record) if record else None

    def list_rules(self) -> list[Rule]:
        statement = select(RuleRecord).order_by(col(RuleRecord.order_index), col(RuleRecord.created_at))
        return [_rule_from_record(record) for record in self.session.exec(statement).all()]

    def list_active_rules(self) -> list[Rule]:
        statement = (
            select(RuleRecord)
            .where(RuleRecord.is_active == True)  # noqa: E712
            .order_by(col(RuleRecord.order_index), col(RuleRecord.created_at))
        )
        return [_rule_from_record(record) for record in self.session.exec(statement).all()]

    def update_rule(self, rule_id: str, changes: dict[str, Any]) -> Rule | None:
        """Apply field changes to a rule.

        Args:
            rule_id: The rule identifier
            changes: Any of name, conditions, labels_to_apply, order_index, is_active

        Returns:
            The updated rule, or None if not found
        """
        record = self.session.get(RuleRecord, rule_id)
        if record is None:
            return None

        for key, value in changes.items():
            if key == "conditions":
                conditions = [c if isinstance(c, Condition) else Condition.model_validate(c) for c in value]
                value = _dump_conditions(conditions)
            elif key == "labels_to_apply":
                value = list(value)
            elif key not in ("name", "order_index", "is_active"):
                raise ValueError(f"Unknown rule field: {key}")
            setattr(record, key, value)

        record.updated_at = utc_now()
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return _rule_from_record(record)

    def toggle_rule(self, rule_id: str) -> Rule | None:
        """Flip a rule between active and inactive."""
        record = self.session.get(RuleRecord, rule_id)
        if record is None:
            return None
        return self.update_rule(rule_id, {"is_active": not record.is_active})

    def reorder_rules(self, rule_ids: Sequence[str]) -> list[Rule]:
        """Assign ``order_index`` by position in ``rule_ids``.

        Rules missing from ``rule_ids`` keep their relative order and are
        placed after the listed ones.

        Raises:
            KeyError: If an id does not belong to a stored rule
        """
        records = []
        for rule_id in dict.fromkeys(rule_ids):
            record = self.session.get(RuleRecord, rule_id)
            if record is None:
                raise KeyError(rule_id)
            records.append(record)

        listed = {record.id for record in records}
        statement = select(RuleRecord).order_by(col(RuleRecord.order_index), col(RuleRecord.created_at))
        records.extend(record for record in self.session.exec(statement).all() if record.id not in listed)

        now = utc_now()
        for position, record in enumerate(records):
            record.order_index = position
            record.updated_at = now
            self.session.add(record)
        self.session.commit()
        return self.list_rules()

    def delete_rule(self, rule_id: str) -> bool:
        record = self.session.get(RuleRecord, rule_id)
        if record is None:
            return False
        self.session.delete(record)
        self.session.commit()
        return True


def _dump_conditions(conditions: Sequence[Condition]) -> list[dict[str, Any]]:
    return [condition.model_dump(mode="json") for condition in conditions]


def _rule_from_record(record: RuleRecord) -> Rule:
    return Rule(
        id=record.id,
        name=record.name,
        conditions=[Condition.model_validate(c) for c in record.conditions or []],
        labels_to_apply=list(record.labels_to_apply or []),
        order_index=record.order_index,
        is_active=record.is_active,
    )


# =============================================================================
# Execution Log
# =============================================================================


class ExecutionLogRepository:
    """Rule execution records, newest first."""

    def __init__(self, session: Session):
        self.session = session

    def record(self, execution: RuleExecution) -> None:
        self.session.add(RuleExecutionRecord(**execution.model_dump()))
        try:
            self.session.commit()
        except SQLAlchemyError:
            # A failed flush leaves the session unusable until rolled back
            self.session.rollback()
            raise

    def recent(self, limit: int = 20) -> list[RuleExecution]:
        statement = select(RuleExecutionRecord).order_by(col(RuleExecutionRecord.executed_at).desc()).limit(limit)
        return [RuleExecution.model_validate(record) for record in self.session.exec(statement).all()]

    def for_rule(self, rule_id: str, limit: int | None = 50) -> list[RuleExecution]:
        statement = (
            select(RuleExecutionRecord)
            .where(RuleExecutionRecord.rule_id == rule_id)
            .order_by(col(RuleExecutionRecord.executed_at).desc())
        )
        if limit is not None:
            statement = statement.limit(limit)
        return [RuleExecution.model_validate(record) for record in self.session.exec(statement).all()]

    def all(self) -> list[RuleExecution]:
        statement = select(RuleExecutionRecord).order_by(col(RuleExecutionRecord.executed_at).desc())
        return [RuleExecution.model_validate(record) for record in self.session.exec(statement).all()]

    def clear_rule(self, rule_id: str) -> int:
        """Delete every execution record of a rule; returns how many went."""
        records = self.session.exec(
            select(RuleExecutionRecord).where(RuleExecutionRecord.rule_id == rule_id)
        ).all()
        for record in records:
            self.session.delete(record)
        self.session.commit()
        return len(records)
