"""
저장 레코드 스키마 테스트

Pydantic 레코드 검증과 도메인 모델 변환
"""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import TypeAdapter

from core.ledger.errors import InvalidRecordError
from core.ledger.models import PostingLine, RecurringTemplate, Transaction
from core.ledger.records import (
    AccountRecord,
    LedgerRecord,
    RecurringRecord,
    TransactionRecord,
    parse_record,
)
from core.types import Collection, Frequency, TransactionKind


class TestTransactionRecord:
    """TransactionRecord 테스트"""

    def test_amount_serialized_as_string(self) -> None:
        """JSON에서 금액은 문자열 (정밀도 유지)"""
        tx = Transaction(
            transaction_id="tx:1",
            booked_on=date(2024, 5, 1),
            lines=[PostingLine("A", Decimal("-0.10")), PostingLine("B", Decimal("0.10"))],
        )

        payload = TransactionRecord.from_entity(tx).model_dump(mode="json")

        assert payload["record_type"] == "transaction"
        assert payload["id"] == "tx:1"
        assert payload["booked_on"] == "2024-05-01"
        assert payload["lines"][0] == {"account_id": "A", "amount": "-0.10"}
        assert payload["kind"] == "regular"

    def test_to_entity_preserves_origin(self) -> None:
        record = TransactionRecord(
            id="tx:1",
            booked_on=date(2024, 5, 1),
            kind=TransactionKind.RECURRING,
            recurring_id="rec:1",
            lines=[{"account_id": "A", "amount": "12.5"}],
        )

        tx = record.to_entity()

        assert tx.kind == TransactionKind.RECURRING
        assert tx.recurring_id == "rec:1"
        assert tx.lines == [PostingLine("A", Decimal("12.5"))]

    def test_empty_lines_rejected(self) -> None:
        with pytest.raises(ValueError):
            TransactionRecord(id="tx:1", booked_on=date(2024, 5, 1), lines=[])


class TestRecurringRecord:
    """RecurringRecord 테스트"""

    def test_last_processed_preserved(self) -> None:
        template = RecurringTemplate(
            template_id="rec:1",
            description="Rent",
            frequency=Frequency.MONTHLY,
            start_date=date(2024, 1, 1),
            lines=[PostingLine("A", Decimal("-1000"))],
            last_processed=date(2024, 4, 1),
            active=False,
        )

        restored = RecurringRecord.from_entity(template).to_entity()

        assert restored.last_processed == date(2024, 4, 1)
        assert restored.active is False
        assert restored.frequency == Frequency.MONTHLY


class TestLedgerRecordUnion:
    """record_type 태그드 유니온 테스트"""

    def test_discriminates_by_record_type(self) -> None:
        adapter = TypeAdapter(LedgerRecord)

        record = adapter.validate_python({"record_type": "account", "id": "acc:1", "name": "Cash"})

        assert isinstance(record, AccountRecord)

    def test_unknown_record_type_rejected(self) -> None:
        adapter = TypeAdapter(LedgerRecord)

        with pytest.raises(ValueError):
            adapter.validate_python({"record_type": "invoice", "id": "x"})


class TestParseRecord:
    """parse_record 테스트"""

    def test_valid_payload(self) -> None:
        record = parse_record(
            Collection.ACCOUNTS,
            {"record_type": "account", "id": "acc:1", "name": "Cash", "balance": "12.34"},
        )

        assert record.to_entity().balance == Decimal("12.34")

    def test_invalid_payload_wrapped(self) -> None:
        """검증 실패는 InvalidRecordError로 변환"""
        with pytest.raises(InvalidRecordError, match="acc:bad"):
            parse_record(
                Collection.ACCOUNTS,
                {"record_type": "account", "id": "acc:bad", "balance": "not-a-number"},
            )

    def test_wrong_collection_rejected(self) -> None:
        """다른 컬렉션의 레코드 형태는 거부"""
        with pytest.raises(InvalidRecordError):
            parse_record(
                Collection.TRANSACTIONS,
                {"record_type": "account", "id": "acc:1", "name": "Cash"},
            )
