"""Storage domain - SQLModel tables and repositories."""

from .models import (
    TransactionRecord,
    LabelRecord,
    TransactionLabelRecord,
    RuleRecord,
    RuleExecutionRecord,
)
from .repositories import (
    transaction_target,
    TransactionRepository,
    LabelRepository,
    RuleRepository,
    ExecutionLogRepository,
)

__all__ = [
    # Tables
    "TransactionRecord",
    "LabelRecord",
    "TransactionLabelRecord",
    "RuleRecord",
    "RuleExecutionRecord",
    # Repositories
    "transaction_target",
    "TransactionRepository",
    "LabelRepository",
    "RuleRepository",
    "ExecutionLogRepository",
]
