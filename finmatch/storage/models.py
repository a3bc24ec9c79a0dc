"""SQLModel table definitions.

Transactions, labels, the transaction/label link table, rules and the rule
execution log. Rule conditions are stored as JSON using the condition field
names (``field``, ``operator``, ``value``).
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel

from finmatch.core.models import generate_uuid, utc_now


class TransactionRecord(SQLModel, table=True):
    """A stored transaction."""

    __tablename__ = "transactions"

    id: str = Field(default_factory=generate_uuid, primary_key=True)
    description: str = Field(default="", description="Bank or card description")
    amount: float = Field(..., description="Signed amount in the account currency")
    date: datetime = Field(..., index=True, description="Booking instant (naive UTC)")
    identifier: Optional[str] = Field(default=None, description="Bank reference")
    source: Optional[str] = Field(default=None, description="Account or import source")
    status: str = Field(default="pending", index=True)
    notes: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)


class LabelRecord(SQLModel, table=True):
    """A stored label."""

    __tablename__ = "labels"

    id: str = Field(default_factory=generate_uuid, primary_key=True)
    name: str = Field(..., index=True)
    color: str = Field(default="#6b7280")
    recurring: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now)


class TransactionLabelRecord(SQLModel, table=True):
    """Association between a transaction and a label.

    The unique pair is the storage-level guard against two rule passes
    attaching the same label concurrently.
    """

    __tablename__ = "transaction_labels"
    __table_args__ = (UniqueConstraint("transaction_id", "label_id", name="uq_transaction_label"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    transaction_id: str = Field(foreign_key="transactions.id", index=True, ondelete="CASCADE")
    label_id: str = Field(index=True)
    created_at: datetime = Field(default_factory=utc_now)


class RuleRecord(SQLModel, table=True):
    """A stored labelling rule."""

    __tablename__ = "rules"

    id: str = Field(default_factory=generate_uuid, primary_key=True)
    name: str = Field(...)
    conditions: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    labels_to_apply: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    order_index: int = Field(default=0, index=True)
    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class RuleExecutionRecord(SQLModel, table=True):
    """One rule evaluation against one transaction."""

    __tablename__ = "rule_execution_logs"

    id: str = Field(default_factory=generate_uuid, primary_key=True)
    rule_id: str = Field(index=True)
    transaction_id: str = Field(index=True)
    matched: bool = Field(default=False, index=True)
    execution_time_ms: float = Field(default=0.0)
    labels_applied: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    rule_conditions: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    executed_at: datetime = Field(default_factory=utc_now, index=True)
