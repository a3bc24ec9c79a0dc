"""Pydantic schemas for the rules API."""

from typing import Optional

from pydantic import BaseModel, Field

from finmatch.core.models import Transaction
from finmatch.matching import Condition

from .models import ApplicationReport, Rule
from .performance import PerformanceTrend, RulePerformance


class RuleCreate(BaseModel):
    """Create schema for a rule. A missing order_index appends the rule."""
    name: str = Field(..., min_length=1)
    conditions: list[Condition] = Field(default_factory=list)
    labels_to_apply: list[str] = Field(default_factory=list)
    order_index: Optional[int] = None
    is_active: bool = True


class RuleUpdate(BaseModel):
    """Partial update for a rule."""
    name: Optional[str] = Field(None, min_length=1)
    conditions: Optional[list[Condition]] = None
    labels_to_apply: Optional[list[str]] = None
    order_index: Optional[int] = None
    is_active: Optional[bool] = None


class RuleRead(Rule):
    """Rule with its one-line description."""
    description: str = ""

    @classmethod
    def from_rule(cls, rule: Rule) -> "RuleRead":
        return cls(**rule.model_dump(), description=rule.describe())


class ReorderRequest(BaseModel):
    rule_ids: list[str] = Field(..., min_length=1, description="Rule ids in their new order")


class ApplyRequest(BaseModel):
    """Which transactions to run the active rules over."""
    transaction_ids: Optional[list[str]] = Field(
        None, description="Explicit transactions; pending transactions when omitted"
    )


class ApplyResponse(ApplicationReport):
    message: str


class RuleTestRequest(BaseModel):
    """Dry run against a stored transaction or an inline sample."""
    transaction_id: Optional[str] = None
    transaction: Optional[Transaction] = None
    rule_ids: Optional[list[str]] = Field(None, description="Limit the run to these rules")


class RuleTestResponse(BaseModel):
    transaction_id: str
    matching_rules: list[RuleRead]
    labels_to_apply: list[str]


class RulePerformanceResponse(RulePerformance):
    trend: PerformanceTrend = PerformanceTrend.STABLE
    display: dict[str, str] = Field(default_factory=dict)
