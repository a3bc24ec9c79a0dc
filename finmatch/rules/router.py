"""API routes for transaction rules."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from finmatch.core.config import get_settings
from finmatch.core.database import get_session
from finmatch.storage.repositories import (
    ExecutionLogRepository,
    RuleRepository,
    TransactionRepository,
)

from .engine import RuleApplicationEngine
from .models import Rule
from .performance import (
    RulePerformanceStats,
    performance_stats,
    performance_trend,
    summarize_rule,
)
from .schemas import (
    ApplyRequest,
    ApplyResponse,
    ReorderRequest,
    RuleCreate,
    RulePerformanceResponse,
    RuleRead,
    RuleTestRequest,
    RuleTestResponse,
    RuleUpdate,
)

router = APIRouter(prefix="/rules", tags=["rules"])


def get_rule_repository(session: Session = Depends(get_session)) -> RuleRepository:
    return RuleRepository(session)


def get_transaction_repository(session: Session = Depends(get_session)) -> TransactionRepository:
    return TransactionRepository(session)


def get_execution_log(session: Session = Depends(get_session)) -> ExecutionLogRepository:
    return ExecutionLogRepository(session)


def _require_rule(repository: RuleRepository, rule_id: str) -> Rule:
    rule = repository.get_rule(rule_id)
    if not rule:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Rule '{rule_id}' not found")
    return rule


# =============================================================================
# CRUD
# =============================================================================


@router.get("", response_model=list[RuleRead])
def list_rules(repository: RuleRepository = Depends(get_rule_repository)) -> list[RuleRead]:
    return [RuleRead.from_rule(rule) for rule in repository.list_rules()]


@router.post("", response_model=RuleRead, status_code=status.HTTP_201_CREATED)
def create_rule(rule_data: RuleCreate, repository: RuleRepository = Depends(get_rule_repository)) -> RuleRead:
    order_index = rule_data.order_index
    if order_index is None:
        order_index = repository.next_order_index()
    rule = repository.create_rule(
        Rule(
            name=rule_data.name,
            conditions=rule_data.conditions,
            labels_to_apply=rule_data.labels_to_apply,
            order_index=order_index,
            is_active=rule_data.is_active,
        )
    )
    return RuleRead.from_rule(rule)


@router.post("/reorder", response_model=list[RuleRead])
def reorder_rules(request: ReorderRequest, repository: RuleRepository = Depends(get_rule_repository)) -> list[RuleRead]:
    try:
        rules = repository.reorder_rules(request.rule_ids)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Rule {exc} not found")
    return [RuleRead.from_rule(rule) for rule in rules]


# =============================================================================
# Application
# =============================================================================


@router.post("/apply", response_model=ApplyResponse)
def apply_rules(
    request: ApplyRequest,
    rules: RuleRepository = Depends(get_rule_repository),
    transactions: TransactionRepository = Depends(get_transaction_repository),
    execution_log: ExecutionLogRepository = Depends(get_execution_log),
) -> ApplyResponse:
    """Run the active rules over pending transactions, or the ones listed."""
    engine = RuleApplicationEngine(transactions, execution_log)
    active = rules.list_active_rules()

    if request.transaction_ids is None:
        report = engine.process_pending_transactions(transactions, active, get_settings().pending_status)
    else:
        batch = transactions.get_transactions(request.transaction_ids)
        report = engine.apply_to_transactions(batch, active)

    return ApplyResponse(**report.model_dump(), message=report.summary())


@router.post("/test", response_model=RuleTestResponse)
def test_rules(
    request: RuleTestRequest,
    rules: RuleRepository = Depends(get_rule_repository),
    transactions: TransactionRepository = Depends(get_transaction_repository),
) -> RuleTestResponse:
    """Report which rules would fire, without attaching labels."""
    if request.transaction is not None:
        sample = request.transaction
    elif request.transaction_id is not None:
        sample = transactions.get_transaction(request.transaction_id)
        if sample is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Transaction '{request.transaction_id}' not found",
            )
    else:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Provide either transaction or transaction_id",
        )

    if request.rule_ids is None:
        candidates = rules.list_active_rules()
    else:
        candidates = [_require_rule(rules, rule_id) for rule_id in request.rule_ids]
        inactive = [rule.id for rule in candidates if not rule.is_active]
        if inactive:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Rule '{inactive[0]}' is inactive",
            )

    result = RuleApplicationEngine(transactions).test_rules(sample, candidates)
    return RuleTestResponse(
        transaction_id=result.transaction_id,
        matching_rules=[RuleRead.from_rule(rule) for rule in result.matching_rules],
        labels_to_apply=result.labels_to_apply,
    )


# =============================================================================
# Performance
# =============================================================================


@router.get("/performance", response_model=RulePerformanceStats)
def get_performance_stats(execution_log: ExecutionLogRepository = Depends(get_execution_log)) -> RulePerformanceStats:
    return performance_stats(execution_log.all())


@router.get("/{rule_id}/performance", response_model=RulePerformanceResponse)
def get_rule_performance(
    rule_id: str,
    rules: RuleRepository = Depends(get_rule_repository),
    execution_log: ExecutionLogRepository = Depends(get_execution_log),
) -> RulePerformanceResponse:
    _require_rule(rules, rule_id)
    executions = execution_log.for_rule(rule_id, limit=None)
    summary = summarize_rule(rule_id, executions)
    return RulePerformanceResponse(
        **summary.model_dump(),
        trend=performance_trend(executions),
        display=summary.formatted(),
    )


# =============================================================================
# Single Rule
# =============================================================================


@router.get("/{rule_id}", response_model=RuleRead)
def get_rule(rule_id: str, repository: RuleRepository = Depends(get_rule_repository)) -> RuleRead:
    return RuleRead.from_rule(_require_rule(repository, rule_id))


@router.put("/{rule_id}", response_model=RuleRead)
def update_rule(
    rule_id: str, rule_data: RuleUpdate, repository: RuleRepository = Depends(get_rule_repository)
) -> RuleRead:
    rule = repository.update_rule(rule_id, rule_data.model_dump(exclude_unset=True, exclude_none=True))
    if not rule:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Rule '{rule_id}' not found")
    return RuleRead.from_rule(rule)


@router.post("/{rule_id}/toggle", response_model=RuleRead)
def toggle_rule(rule_id: str, repository: RuleRepository = Depends(get_rule_repository)) -> RuleRead:
    rule = repository.toggle_rule(rule_id)
    if not rule:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Rule '{rule_id}' not found")
    return RuleRead.from_rule(rule)


@router.delete("/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rule(
    rule_id: str,
    repository: RuleRepository = Depends(get_rule_repository),
    execution_log: ExecutionLogRepository = Depends(get_execution_log),
) -> None:
    if not repository.delete_rule(rule_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Rule '{rule_id}' not found")
    execution_log.clear_rule(rule_id)
