"""Domain records consumed by the matching engine.

Transactions and labels are owned by the surrounding application; the engine
only reads them.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from finmatch.matching.fields import parse_instant


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Current time as a naive UTC datetime (the storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TransactionStatus(str, Enum):
    """Inbox status of a transaction."""

    PENDING = "pending"
    APPROVED = "approved"


class Label(BaseModel):
    """A user-defined tag attached to transactions."""

    id: str = Field(default_factory=generate_uuid)
    name: str
    color: str = "#6b7280"
    recurring: bool = False

    model_config = {"from_attributes": True}


class Transaction(BaseModel):
    """A single money movement in the inbox."""

    id: str = Field(default_factory=generate_uuid)
    description: str = ""
    amount: float
    date: datetime
    identifier: str | None = None
    source: str | None = None
    status: TransactionStatus = TransactionStatus.PENDING
    notes: str | None = None
    labels: list[Label] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    @field_validator("date")
    @classmethod
    def normalize_date(cls, value: datetime) -> datetime:
        """Store aware datetimes as naive UTC."""
        return parse_instant(value)

    @property
    def label_ids(self) -> list[str]:
        return [label.id for label in self.labels]
