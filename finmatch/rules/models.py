"""Rule value objects and the reports produced by rule application."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from finmatch.core.models import generate_uuid, utc_now
from finmatch.matching import Condition, rule_matches


# =============================================================================
# Rule
# =============================================================================


class Rule(BaseModel):
    """A named, ordered set of AND-ed conditions that applies labels on match."""

    id: str = Field(default_factory=generate_uuid)
    name: str = Field(..., min_length=1, description="Display name")
    conditions: list[Condition] = Field(default_factory=list)
    labels_to_apply: list[str] = Field(default_factory=list, description="Label ids")
    order_index: int = Field(0, description="Lower runs first")
    is_active: bool = True

    model_config = {"from_attributes": True}

    def matches(self, record: Any) -> bool:
        """Whether every condition holds for the record."""
        return rule_matches(record, self.conditions)

    def describe(self) -> str:
        return describe_rule(self)


def describe_rule(rule: Rule) -> str:
    """One-line description, e.g. ``When Amount greater than "100", apply 1 label``."""
    condition_text = " AND ".join(c.describe() for c in rule.conditions) or "never"
    count = len(rule.labels_to_apply)
    return f"When {condition_text}, apply {count} label{'' if count == 1 else 's'}"


# =============================================================================
# Execution Log
# =============================================================================


class RuleExecution(BaseModel):
    """One evaluation of one rule against one transaction."""

    id: str = Field(default_factory=generate_uuid)
    rule_id: str
    transaction_id: str
    matched: bool
    execution_time_ms: float = 0.0
    labels_applied: list[str] = Field(default_factory=list)
    rule_conditions: list[dict[str, Any]] = Field(default_factory=list)
    executed_at: datetime = Field(default_factory=utc_now)

    model_config = {"from_attributes": True}


# =============================================================================
# Application Results
# =============================================================================


class TransactionOutcome(BaseModel):
    """What a rule pass did to one transaction."""

    transaction_id: str
    rules_applied: list[str] = Field(default_factory=list, description="Matched rule ids, in order")
    labels_applied: list[str] = Field(default_factory=list, description="Newly attached label ids")
    errors: list[str] = Field(default_factory=list)


class ApplicationReport(BaseModel):
    """Summary of a rule pass over one or more transactions, keyed by transaction id."""

    total_processed: int = 0
    rules_applied: dict[str, list[str]] = Field(default_factory=dict)
    labels_applied: dict[str, list[str]] = Field(default_factory=dict)
    errors: dict[str, list[str]] = Field(default_factory=dict)
    error: str | None = Field(None, description="Set when the batch could not be fetched")

    def add(self, outcome: TransactionOutcome) -> None:
        self.total_processed += 1
        if outcome.rules_applied:
            self.rules_applied[outcome.transaction_id] = list(outcome.rules_applied)
        if outcome.labels_applied:
            self.labels_applied[outcome.transaction_id] = list(outcome.labels_applied)
        if outcome.errors:
            self.errors[outcome.transaction_id] = list(outcome.errors)

    @property
    def rule_match_count(self) -> int:
        return sum(len(ids) for ids in self.rules_applied.values())

    @property
    def label_count(self) -> int:
        return sum(len(ids) for ids in self.labels_applied.values())

    @property
    def error_count(self) -> int:
        return sum(len(messages) for messages in self.errors.values()) + (1 if self.error else 0)

    def summary(self) -> str:
        """Short message for toasts and logs."""
        if self.error:
            return f"Rule application failed: {self.error}"
        return (
            f"Processed {self.total_processed} transaction(s): "
            f"{self.rule_match_count} rule match(es), "
            f"{self.label_count} label(s) applied, "
            f"{self.error_count} error(s)"
        )


class DryRunResult(BaseModel):
    """Rules that would fire for a transaction, without applying anything."""

    transaction_id: str
    matching_rules: list[Rule] = Field(default_factory=list)
    labels_to_apply: list[str] = Field(default_factory=list, description="Unique label ids, first-seen order")
