"""Rules domain - rule model, application engine, dry runs and analytics."""

from .models import (
    Rule,
    RuleExecution,
    TransactionOutcome,
    ApplicationReport,
    DryRunResult,
    describe_rule,
)
from .contracts import RecordStore, LabelWriter, RuleSource, ExecutionRecorder
from .engine import RuleApplicationEngine, active_rules_in_order, pending_filter
from .harness import FilterTestResult, revalidate, check_against_sample, check_against_store
from .loader import load_rules_file, parse_rules
from .performance import (
    PerformanceTrend,
    RulePerformance,
    RulePerformanceStats,
    summarize_rule,
    rule_performance,
    performance_stats,
    performance_trend,
    underperforming_rules,
)

__all__ = [
    # Models
    "Rule",
    "RuleExecution",
    "TransactionOutcome",
    "ApplicationReport",
    "DryRunResult",
    "describe_rule",
    # Contracts
    "RecordStore",
    "LabelWriter",
    "RuleSource",
    "ExecutionRecorder",
    # Engine
    "RuleApplicationEngine",
    "active_rules_in_order",
    "pending_filter",
    # Harness
    "FilterTestResult",
    "revalidate",
    "check_against_sample",
    "check_against_store",
    # Loader
    "load_rules_file",
    "parse_rules",
    # Performance
    "PerformanceTrend",
    "RulePerformance",
    "RulePerformanceStats",
    "summarize_rule",
    "rule_performance",
    "performance_stats",
    "performance_trend",
    "underperforming_rules",
]
