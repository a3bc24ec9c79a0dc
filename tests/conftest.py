"""Pytest fixtures for test suite."""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from finmatch.core.database import get_session, register_sqlite_functions
from finmatch.core.models import Label, Transaction, TransactionStatus
from finmatch.main import app
from finmatch.storage import (
    ExecutionLogRepository,
    LabelRepository,
    RuleRepository,
    TransactionRepository,
)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    register_sqlite_functions(engine)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def transactions(session) -> TransactionRepository:
    return TransactionRepository(session)


@pytest.fixture
def labels(session) -> LabelRepository:
    return LabelRepository(session)


@pytest.fixture
def rules(session) -> RuleRepository:
    return RuleRepository(session)


@pytest.fixture
def execution_log(session) -> ExecutionLogRepository:
    return ExecutionLogRepository(session)


@pytest.fixture(name="client")
def client_fixture(engine):
    def get_session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


# =============================================================================
# Domain Fixtures
# =============================================================================


@pytest.fixture
def make_transaction():
    """Factory for transactions with sensible defaults."""

    def _make(**overrides) -> Transaction:
        data = {
            "description": "STARBUCKS #123 SEATTLE",
            "amount": -4.5,
            "date": datetime(2024, 3, 15, 8, 30),
            "identifier": "REF-001",
            "source": "Checking",
            "status": TransactionStatus.PENDING,
        }
        data.update(overrides)
        return Transaction(**data)

    return _make


@pytest.fixture
def coffee_label() -> Label:
    return Label(id="label-coffee", name="Coffee")


@pytest.fixture
def ledger(transactions: TransactionRepository, make_transaction) -> list[Transaction]:
    """A small stored ledger covering every field type."""
    stored = [
        make_transaction(id="tx-coffee", description="Starbucks Coffee", amount=-4.5,
                         date=datetime(2024, 3, 15, 8, 30), source="Checking"),
        make_transaction(id="tx-rent", description="Monthly RENT payment", amount=-1200.0,
                         date=datetime(2024, 3, 1, 0, 0), identifier="RENT-03", source="Checking",
                         status=TransactionStatus.APPROVED),
        make_transaction(id="tx-salary", description="ACME Corp salary", amount=3000.0,
                         date=datetime(2024, 3, 31, 23, 59), identifier=None, source="Savings"),
        make_transaction(id="tx-grocery", description="Whole Foods 100%_organic", amount=-85.25,
                         date=datetime(2024, 2, 28, 12, 0), identifier="WF-77", source=None,
                         labels=[Label(id="label-food", name="Food")]),
        make_transaction(id="tx-zero", description="", amount=0.0,
                         date=datetime(2024, 3, 15, 23, 59, 59), identifier="", source="Checking"),
    ]
    return [transactions.add_transaction(t) for t in stored]
