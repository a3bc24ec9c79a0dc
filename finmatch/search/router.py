"""API routes for transactions, advanced filters and labels."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from finmatch.core.config import get_settings
from finmatch.core.database import get_session
from finmatch.core.models import Label, Transaction
from finmatch.matching import UnsupportedConditionError
from finmatch.rules.harness import FilterTestResult, check_against_sample, check_against_store
from finmatch.storage.repositories import (
    ExecutionLogRepository,
    LabelRepository,
    RuleRepository,
    TransactionRepository,
)

from .schemas import (
    FilterTestRequest,
    LabelAttachResponse,
    LabelCreate,
    SearchRequest,
    SearchResponse,
    TransactionCreate,
    TransactionCreated,
)
from .service import create_transaction, labels_from_ids, search_transactions

router = APIRouter(prefix="/transactions", tags=["transactions"])
labels_router = APIRouter(prefix="/labels", tags=["labels"])


def get_transaction_repository(session: Session = Depends(get_session)) -> TransactionRepository:
    return TransactionRepository(session)


def get_label_repository(session: Session = Depends(get_session)) -> LabelRepository:
    return LabelRepository(session)


# =============================================================================
# Transactions
# =============================================================================


@router.post("", response_model=TransactionCreated, status_code=status.HTTP_201_CREATED)
def add_transaction(
    data: TransactionCreate,
    session: Session = Depends(get_session),
) -> TransactionCreated:
    """Store a transaction and run the active rules over it."""
    transaction = Transaction(
        **data.model_dump(exclude={"label_ids"}),
        labels=labels_from_ids(data.label_ids),
    )
    stored, outcome = create_transaction(
        TransactionRepository(session),
        RuleRepository(session),
        ExecutionLogRepository(session),
        transaction,
    )
    return TransactionCreated(transaction=stored, rule_outcome=outcome)


@router.get("/{transaction_id}", response_model=Transaction)
def get_transaction(
    transaction_id: str, repository: TransactionRepository = Depends(get_transaction_repository)
) -> Transaction:
    transaction = repository.get_transaction(transaction_id)
    if not transaction:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"Transaction '{transaction_id}' not found"
        )
    return transaction


@router.post("/search", response_model=SearchResponse)
def search(
    request: SearchRequest, repository: TransactionRepository = Depends(get_transaction_repository)
) -> SearchResponse:
    limit = request.limit or get_settings().search_limit
    try:
        results = search_transactions(repository, request.condition_set(), limit=limit)
    except UnsupportedConditionError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return SearchResponse(count=len(results), results=results)


@router.post("/filters/test", response_model=FilterTestResult)
def test_filter(
    request: FilterTestRequest, repository: TransactionRepository = Depends(get_transaction_repository)
) -> FilterTestResult:
    """Dry-run a filter against a sample, or against a few stored transactions."""
    if request.sample is not None:
        return check_against_sample(request.condition_set(), request.sample)
    return check_against_store(request.condition_set(), repository, limit=get_settings().filter_test_limit)


@router.post("/{transaction_id}/labels/{label_id}", response_model=LabelAttachResponse)
def attach_label(
    transaction_id: str,
    label_id: str,
    repository: TransactionRepository = Depends(get_transaction_repository),
) -> LabelAttachResponse:
    """Attach a label by hand. Attaching an existing label is a no-op."""
    if repository.get_transaction(transaction_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"Transaction '{transaction_id}' not found"
        )

    attached = False
    if not repository.is_label_attached(transaction_id, label_id):
        attached = repository.attach_label(transaction_id, label_id)

    return LabelAttachResponse(
        transaction_id=transaction_id,
        label_id=label_id,
        attached=attached,
        labels=repository.get_transaction(transaction_id).labels,
    )


# =============================================================================
# Labels
# =============================================================================


@labels_router.get("", response_model=list[Label])
def list_labels(repository: LabelRepository = Depends(get_label_repository)) -> list[Label]:
    return repository.list_labels()


@labels_router.post("", response_model=Label, status_code=status.HTTP_201_CREATED)
def create_label(data: LabelCreate, repository: LabelRepository = Depends(get_label_repository)) -> Label:
    return repository.create_label(Label(**data.model_dump()))
