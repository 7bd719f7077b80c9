"""
ORM round-trip tests for the monetary document model.

Verifies: DTO -> row -> DTO equality, money stored as two-place Decimal,
provenance flattening, and repository visibility rules.
"""

from datetime import UTC, date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from backoffice_kernel.db.engine import transaction_scope
from backoffice_modules.documents.models import (
    DerivedFrom,
    DocumentKind,
    DocumentRole,
    DocumentStatus,
    MonetaryDocument,
    Standalone,
)
from backoffice_modules.documents.orm import MonetaryDocumentModel
from backoffice_modules.documents.repository import DocumentRepository
from tests.conftest import TEST_ACTOR_ID, TEST_SUPPLIER_ID, TEST_TRANSACTION_ID


def _document(**overrides) -> MonetaryDocument:
    values = {
        "id": uuid4(),
        "role": DocumentRole.PAYABLE,
        "counterparty_id": TEST_SUPPLIER_ID,
        "document_number": "NF-2001",
        "kind": DocumentKind.DUPLICATE,
        "issue_date": date(2024, 1, 2),
        "due_date": date(2024, 2, 1),
        "original": 123456,
        "discount": 1,
        "interest": 99,
        "penalty": 0,
        "paid": 0,
        "balance": 123554,
        "status": DocumentStatus.OPEN,
        "created_at": datetime(2024, 1, 2, 9, 0, tzinfo=UTC),
        "updated_at": datetime(2024, 1, 2, 9, 0, tzinfo=UTC),
    }
    values.update(overrides)
    return MonetaryDocument(**values)


class TestMonetaryDocumentModelORM:

    def test_money_stored_as_two_place_decimal(self, session_factory):
        doc = _document()
        with transaction_scope(session_factory) as session:
            DocumentRepository(session).add(doc)

        with transaction_scope(session_factory) as session:
            row = session.get(MonetaryDocumentModel, doc.id)
            assert row.original == Decimal("1234.56")
            assert row.discount == Decimal("0.01")
            assert row.balance == Decimal("1235.54")
            assert row.role == "payable"
            assert row.kind == "duplicate"
            assert row.status == "open"
            assert row.source_transaction_id is None

    def test_standalone_round_trip(self, session_factory):
        doc = _document(notes="freight included", payment_method_id=uuid4())
        with transaction_scope(session_factory) as session:
            DocumentRepository(session).add(doc, actor_id=TEST_ACTOR_ID)

        with transaction_scope(session_factory) as session:
            loaded = DocumentRepository(session).find(doc.id)

        assert loaded.provenance == Standalone()
        assert loaded.original == 123456
        assert loaded.balance == 123554
        assert loaded.notes == "freight included"
        assert loaded.payment_method_id == doc.payment_method_id
        assert loaded.created_by_id == TEST_ACTOR_ID
        assert loaded.kind == DocumentKind.DUPLICATE

    def test_derived_round_trip(self, session_factory):
        provenance = DerivedFrom(
            transaction_id=TEST_TRANSACTION_ID,
            model="55",
            series="1",
            number="000777",
            counterparty_id=TEST_SUPPLIER_ID,
            installment_sequence=3,
        )
        doc = _document(provenance=provenance)
        with transaction_scope(session_factory) as session:
            DocumentRepository(session).add(doc)

        with transaction_scope(session_factory) as session:
            row = session.get(MonetaryDocumentModel, doc.id)
            assert row.source_transaction_id == TEST_TRANSACTION_ID
            assert row.installment_sequence == 3
            loaded = row.to_dto()

        assert loaded.provenance == provenance
        assert loaded.is_derived

    def test_server_default_timestamps(self, session_factory):
        doc = _document(created_at=None, updated_at=None)
        with transaction_scope(session_factory) as session:
            DocumentRepository(session).add(doc)

        with transaction_scope(session_factory) as session:
            loaded = DocumentRepository(session).find(doc.id)

        assert loaded.created_at.tzinfo == UTC
        assert loaded.updated_at.tzinfo == UTC

    def test_timestamps_come_back_aware_in_utc(self, session_factory):
        local = timezone(timedelta(hours=-3))
        doc = _document(
            created_at=datetime(2024, 1, 2, 6, 0, tzinfo=local),
            updated_at=datetime(2024, 1, 2, 6, 30, tzinfo=local),
        )
        with transaction_scope(session_factory) as session:
            DocumentRepository(session).add(doc)

        with transaction_scope(session_factory) as session:
            loaded = DocumentRepository(session).find(doc.id)

        assert loaded.created_at == datetime(2024, 1, 2, 9, 0, tzinfo=UTC)
        assert loaded.created_at.tzinfo == UTC
        assert loaded.updated_at - loaded.created_at == timedelta(minutes=30)


class TestDocumentRepository:

    def test_inactive_rows_are_invisible(self, session_factory):
        doc = _document()
        with transaction_scope(session_factory) as session:
            repo = DocumentRepository(session)
            repo.add(doc)
            assert repo.transition(doc.id, [DocumentStatus.OPEN], {"is_active": False}) == 1

        with transaction_scope(session_factory) as session:
            repo = DocumentRepository(session)
            assert repo.find(doc.id) is None
            assert repo.transition(doc.id, [DocumentStatus.OPEN], {"notes": "x"}) == 0
            assert session.get(MonetaryDocumentModel, doc.id) is not None

    def test_transition_guards_on_status(self, session_factory):
        doc = _document()
        with transaction_scope(session_factory) as session:
            repo = DocumentRepository(session)
            repo.add(doc)
            assert repo.transition(doc.id, [DocumentStatus.OVERDUE], {"notes": "x"}) == 0
            assert repo.transition(doc.id, [DocumentStatus.OPEN], {"interest": 150}) == 1
            assert repo.find(doc.id).interest == 150

    def test_find_by_transaction_orders_by_installment(self, session_factory):
        docs = [
            _document(
                document_number=f"000777/{seq}",
                provenance=DerivedFrom(
                    TEST_TRANSACTION_ID, "55", "1", "000777", TEST_SUPPLIER_ID, seq,
                ),
            )
            for seq in (2, 1, 3)
        ]
        with transaction_scope(session_factory) as session:
            repo = DocumentRepository(session)
            for doc in docs:
                repo.add(doc)

        with transaction_scope(session_factory) as session:
            found = DocumentRepository(session).find_by_transaction(TEST_TRANSACTION_ID)

        assert [d.provenance.installment_sequence for d in found] == [1, 2, 3]

    def test_rollback_discards_insert(self, session_factory):
        doc = _document()
        with pytest.raises(RuntimeError):
            with transaction_scope(session_factory) as session:
                DocumentRepository(session).add(doc)
                raise RuntimeError("abort")

        with transaction_scope(session_factory) as session:
            assert DocumentRepository(session).find(doc.id) is None
