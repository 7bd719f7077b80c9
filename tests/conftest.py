"""
Pytest fixtures for the backoffice engine test suite.

Provides:
- Structured logging configuration and capture
- A fresh SQLite database per test (in-memory, shared via StaticPool)
- Deterministic clock, ids and in-memory master-data directories
- Factories for lifecycle service, facade and new-document inputs

All ids are deterministic so tests can import and use them directly.
"""

import json
import logging
from datetime import UTC, date, datetime
from io import StringIO
from uuid import UUID

import pytest
from sqlalchemy.pool import StaticPool

from backoffice_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from backoffice_kernel.domain.clock import DeterministicClock
from backoffice_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from backoffice_config.schema import EngineConfig
from backoffice_modules.documents.models import DocumentRole, NewDocument
from backoffice_modules.documents.ports import (
    Counterparty,
    InMemoryCounterpartyDirectory,
    InMemoryNameDirectory,
)
from backoffice_modules.documents.service import AccountLifecycleService
from backoffice_services.document_engine import FinancialDocumentEngine

# ---------------------------------------------------------------------------
# Deterministic ids
# ---------------------------------------------------------------------------

TEST_SUPPLIER_ID = UUID("00000000-0000-4000-a000-000000000001")
TEST_CUSTOMER_ID = UUID("00000000-0000-4000-a000-000000000002")
TEST_UNKNOWN_PARTY_ID = UUID("00000000-0000-4000-a000-0000000000ff")
TEST_METHOD_PIX_ID = UUID("00000000-0000-4000-a000-000000000010")
TEST_METHOD_BOLETO_ID = UUID("00000000-0000-4000-a000-000000000011")
TEST_ACTOR_ID = UUID("00000000-0000-4000-a000-000000000020")
TEST_TRANSACTION_ID = UUID("00000000-0000-4000-a000-000000000030")

# Clock "today" for every DB test.
TODAY = date(2024, 1, 10)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture backoffice logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, lifecycle):
            lifecycle.create(...)
            logs = captured_logs()
            assert any(r["message"] == "document_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("backoffice")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def db_engine():
    """Fresh in-memory SQLite database with all tables, per test."""
    engine = init_engine_from_url(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    create_tables(engine)
    yield engine
    drop_tables(engine)
    reset_engine()


@pytest.fixture
def session_factory(db_engine):
    return get_session_factory()


# =============================================================================
# Collaborators
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock(datetime(2024, 1, 10, 12, 0, 0, tzinfo=UTC))


@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def counterparties():
    return InMemoryCounterpartyDirectory(
        suppliers={
            TEST_SUPPLIER_ID: Counterparty(
                TEST_SUPPLIER_ID, "Acme Supplies Ltda", "12.345.678/0001-90",
            ),
        },
        customers={
            TEST_CUSTOMER_ID: Counterparty(
                TEST_CUSTOMER_ID, "Maria Clara Comercio", "987.654.321-00",
            ),
        },
    )


@pytest.fixture
def payment_methods():
    return InMemoryNameDirectory({
        TEST_METHOD_PIX_ID: "Pix",
        TEST_METHOD_BOLETO_ID: "Boleto",
    })


@pytest.fixture
def actors():
    return InMemoryNameDirectory({TEST_ACTOR_ID: "Operator One"})


@pytest.fixture
def lifecycle(session_factory, counterparties, clock, config):
    return AccountLifecycleService(session_factory, counterparties, clock=clock, config=config)


@pytest.fixture
def document_engine(session_factory, counterparties, payment_methods, actors, clock, config):
    return FinancialDocumentEngine(
        session_factory,
        counterparties,
        payment_methods=payment_methods,
        actors=actors,
        clock=clock,
        config=config,
    )


@pytest.fixture
def make_new_document():
    """Factory for NewDocument inputs with sensible payable defaults."""

    def _make(**overrides) -> NewDocument:
        values = {
            "role": DocumentRole.PAYABLE,
            "counterparty_id": TEST_SUPPLIER_ID,
            "document_number": "NF-1001",
            "issue_date": date(2024, 1, 2),
            "due_date": date(2024, 2, 1),
            "original": 10000,
        }
        values.update(overrides)
        return NewDocument(**values)

    return _make
