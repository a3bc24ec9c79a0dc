"""Interfaces the rule engine consumes from its collaborators.

Storage implements these in ``finmatch.storage.repositories``; tests can use
any object with the same methods.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence

from sqlalchemy.sql.elements import ColumnElement

from finmatch.core.models import Transaction
from finmatch.matching import TranslationTarget

from .models import Rule, RuleExecution


class RecordStore(Protocol):
    """Executes predicates translated against its own ``target``."""

    target: TranslationTarget

    def fetch(
        self,
        predicate: ColumnElement[bool],
        order_by: Sequence[Any] | None = None,
        limit: int | None = None,
    ) -> list[Transaction]: ...


class LabelWriter(Protocol):
    """Attaches labels to transactions.

    ``attach_label`` returns False when the association already existed.
    """

    def is_label_attached(self, transaction_id: str, label_id: str) -> bool: ...

    def attach_label(self, transaction_id: str, label_id: str) -> bool: ...


class RuleSource(Protocol):
    """Lists active rules ordered by ``order_index`` ascending."""

    def list_active_rules(self) -> list[Rule]: ...


class ExecutionRecorder(Protocol):
    """Stores rule execution records."""

    def record(self, execution: RuleExecution) -> None: ...
