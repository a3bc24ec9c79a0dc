"""Rule performance analytics computed from execution records."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from enum import Enum
from typing import Iterable

from pydantic import BaseModel, Field

from finmatch.core.models import utc_now

from .models import RuleExecution

EFFECTIVENESS_MIN_EXECUTIONS = 5
TREND_WINDOW = 10
TREND_THRESHOLD = 0.05


class PerformanceTrend(str, Enum):
    """Direction of a rule's recent match rate."""

    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


class RulePerformance(BaseModel):
    """Aggregated execution metrics for one rule."""

    rule_id: str
    total_executions: int = 0
    total_matches: int = 0
    total_labels_applied: int = 0
    avg_execution_time_ms: float = 0.0
    last_execution_at: datetime | None = None
    executions_today: int = 0
    matches_today: int = 0
    match_rate: float = Field(0.0, description="Share of executions that matched (0-1)")

    def formatted(self) -> dict[str, str]:
        """Display strings for the metrics."""
        return {
            "match_rate": f"{self.match_rate * 100:.1f}%",
            "executions_today": str(self.executions_today),
            "total_executions": str(self.total_executions),
            "total_matches": str(self.total_matches),
            "avg_execution_time": f"{self.avg_execution_time_ms:.1f}ms",
            "last_execution": self.last_execution_at.date().isoformat() if self.last_execution_at else "Never",
        }


class RulePerformanceStats(BaseModel):
    """Performance across all rules."""

    total_executions: int = 0
    total_matches: int = 0
    total_labels_applied: int = 0
    average_match_rate: float = 0.0
    most_active_rule: RulePerformance | None = None
    most_effective_rule: RulePerformance | None = None
    executions_today: int = 0
    matches_today: int = 0
    recent_activity: list[RuleExecution] = Field(default_factory=list)


def summarize_rule(rule_id: str, executions: Iterable[RuleExecution], today: date | None = None) -> RulePerformance:
    """Aggregate the executions of one rule (others are ignored)."""
    today = today or utc_now().date()
    runs = [e for e in executions if e.rule_id == rule_id]
    if not runs:
        return RulePerformance(rule_id=rule_id)

    matches = [e for e in runs if e.matched]
    todays = [e for e in runs if e.executed_at.date() == today]
    return RulePerformance(
        rule_id=rule_id,
        total_executions=len(runs),
        total_matches=len(matches),
        total_labels_applied=sum(len(e.labels_applied) for e in matches),
        avg_execution_time_ms=sum(e.execution_time_ms for e in runs) / len(runs),
        last_execution_at=max(e.executed_at for e in runs),
        executions_today=len(todays),
        matches_today=sum(1 for e in todays if e.matched),
        match_rate=len(matches) / len(runs),
    )


def rule_performance(executions: Iterable[RuleExecution], today: date | None = None) -> dict[str, RulePerformance]:
    """Per-rule metrics keyed by rule id."""
    grouped: dict[str, list[RuleExecution]] = defaultdict(list)
    for execution in executions:
        grouped[execution.rule_id].append(execution)
    return {rule_id: summarize_rule(rule_id, runs, today) for rule_id, runs in grouped.items()}


def performance_stats(
    executions: Iterable[RuleExecution],
    today: date | None = None,
    recent_limit: int = 10,
) -> RulePerformanceStats:
    """Totals, leaders and recent activity across every rule."""
    executions = list(executions)
    per_rule = list(rule_performance(executions, today).values())
    if not per_rule:
        return RulePerformanceStats()

    total_executions = sum(p.total_executions for p in per_rule)
    total_matches = sum(p.total_matches for p in per_rule)

    # Only rules with enough history compete on match rate
    candidates = [p for p in per_rule if p.total_executions >= EFFECTIVENESS_MIN_EXECUTIONS]

    return RulePerformanceStats(
        total_executions=total_executions,
        total_matches=total_matches,
        total_labels_applied=sum(p.total_labels_applied for p in per_rule),
        average_match_rate=total_matches / total_executions if total_executions else 0.0,
        most_active_rule=max(per_rule, key=lambda p: p.total_executions),
        most_effective_rule=max(candidates, key=lambda p: p.match_rate) if candidates else None,
        executions_today=sum(p.executions_today for p in per_rule),
        matches_today=sum(p.matches_today for p in per_rule),
        recent_activity=sorted(executions, key=lambda e: e.executed_at, reverse=True)[:recent_limit],
    )


def performance_trend(executions: Iterable[RuleExecution]) -> PerformanceTrend:
    """Compare the latest window of executions with the one before it.

    Fewer than ``TREND_WINDOW`` executions, or no older window, is stable.
    """
    latest = sorted(executions, key=lambda e: e.executed_at, reverse=True)[: TREND_WINDOW * 2]
    recent, older = latest[:TREND_WINDOW], latest[TREND_WINDOW:]
    if len(recent) < TREND_WINDOW or not older:
        return PerformanceTrend.STABLE

    recent_rate = sum(1 for e in recent if e.matched) / len(recent)
    older_rate = sum(1 for e in older if e.matched) / len(older)
    difference = recent_rate - older_rate

    if difference > TREND_THRESHOLD:
        return PerformanceTrend.IMPROVING
    if difference < -TREND_THRESHOLD:
        return PerformanceTrend.DECLINING
    return PerformanceTrend.STABLE


def underperforming_rules(
    executions: Iterable[RuleExecution],
    min_executions: int = 10,
    max_match_rate: float = 0.1,
) -> list[RulePerformance]:
    """Rules with enough history whose match rate stays below the threshold."""
    flagged = [
        p
        for p in rule_performance(executions).values()
        if p.total_executions >= min_executions and p.match_rate < max_match_rate
    ]
    return sorted(flagged, key=lambda p: p.match_rate)
