"""Pydantic schemas for the transactions and labels API."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from finmatch.core.models import Label, Transaction, TransactionStatus
from finmatch.matching import Condition, ConditionSet, Conjunction, parse_instant
from finmatch.rules.models import TransactionOutcome


class TransactionCreate(BaseModel):
    """Create schema for a transaction."""
    description: str = ""
    amount: float
    date: datetime
    identifier: Optional[str] = None
    source: Optional[str] = None
    status: TransactionStatus = TransactionStatus.PENDING
    notes: Optional[str] = None
    label_ids: list[str] = Field(default_factory=list, description="Labels attached on creation")

    @field_validator("date")
    @classmethod
    def normalize_date(cls, value: datetime) -> datetime:
        return parse_instant(value)


class TransactionCreated(BaseModel):
    """A stored transaction and what the on-arrival rule pass did to it."""
    transaction: Transaction
    rule_outcome: TransactionOutcome


class FilterRequest(BaseModel):
    """Advanced filter: conditions combined with one conjunction."""
    conditions: list[Condition] = Field(default_factory=list)
    conjunction: Conjunction = Conjunction.AND

    def condition_set(self) -> ConditionSet:
        return ConditionSet(conditions=self.conditions, conjunction=self.conjunction)


class SearchRequest(FilterRequest):
    limit: Optional[int] = Field(None, ge=1, le=1000, description="Defaults to the configured search limit")


class SearchResponse(BaseModel):
    count: int
    results: list[Transaction]


class FilterTestRequest(FilterRequest):
    """Dry-run filter check against an inline sample, or the store when omitted."""
    sample: Optional[Transaction] = None


class LabelCreate(BaseModel):
    name: str = Field(..., min_length=1)
    color: str = "#6b7280"
    recurring: bool = False


class LabelAttachResponse(BaseModel):
    transaction_id: str
    label_id: str
    attached: bool = Field(description="False when the label was already attached")
    labels: list[Label] = Field(default_factory=list)
