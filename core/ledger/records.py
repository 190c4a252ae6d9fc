"""
저장 레코드 스키마 (Pydantic)

저장소 / 스냅샷 경계에서 레코드 형태를 검증.
record_type 필드로 구분되는 태그드 유니온이며,
검증을 통과한 레코드만 도메인 모델로 변환되어 PostingEngine에 도달한다.

금액은 JSON에서 문자열로 직렬화되어 정밀도 손실 없이 왕복한다.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, ValidationError

from core.ledger.errors import InvalidRecordError
from core.ledger.models import (
    Account,
    Budget,
    PostingLine,
    RecurringTemplate,
    StagedTransaction,
    Transaction,
)
from core.types import AccountType, Collection, Frequency, TransactionKind


class LineRecord(BaseModel):
    """분개 line 레코드"""

    account_id: str = Field(..., min_length=1)
    amount: Decimal

    @classmethod
    def from_entity(cls, line: PostingLine) -> "LineRecord":
        return cls(account_id=line.account_id, amount=line.amount)

    def to_entity(self) -> PostingLine:
        return PostingLine(account_id=self.account_id, amount=self.amount)


class AccountRecord(BaseModel):
    """계좌 레코드"""

    record_type: Literal["account"] = "account"
    id: str = Field(..., min_length=1)
    name: str
    account_type: AccountType = AccountType.BANK
    balance: Decimal = Decimal("0")

    @classmethod
    def from_entity(cls, account: Account) -> "AccountRecord":
        return cls(
            id=account.account_id,
            name=account.name,
            account_type=account.account_type,
            balance=account.balance,
        )

    def to_entity(self) -> Account:
        return Account(
            account_id=self.id,
            name=self.name,
            account_type=self.account_type,
            balance=self.balance,
        )


class BudgetRecord(BaseModel):
    """예산 레코드"""

    record_type: Literal["budget"] = "budget"
    id: str = Field(..., min_length=1)
    name: str
    amount: Decimal = Decimal("0")

    @classmethod
    def from_entity(cls, budget: Budget) -> "BudgetRecord":
        return cls(id=budget.budget_id, name=budget.name, amount=budget.amount)

    def to_entity(self) -> Budget:
        return Budget(budget_id=self.id, name=self.name, amount=self.amount)


class TransactionRecord(BaseModel):
    """거래 레코드"""

    record_type: Literal["transaction"] = "transaction"
    id: str = Field(..., min_length=1)
    booked_on: date
    description: str | None = None
    budget_id: str | None = None
    tags: list[str] = Field(default_factory=list)
    kind: TransactionKind = TransactionKind.REGULAR
    recurring_id: str | None = None
    lines: list[LineRecord] = Field(..., min_length=1)

    @classmethod
    def from_entity(cls, tx: Transaction) -> "TransactionRecord":
        return cls(
            id=tx.transaction_id,
            booked_on=tx.booked_on,
            description=tx.description,
            budget_id=tx.budget_id,
            tags=list(tx.tags),
            kind=tx.kind,
            recurring_id=tx.recurring_id,
            lines=[LineRecord.from_entity(line) for line in tx.lines],
        )

    def to_entity(self) -> Transaction:
        return Transaction(
            transaction_id=self.id,
            booked_on=self.booked_on,
            lines=[line.to_entity() for line in self.lines],
            description=self.description,
            budget_id=self.budget_id,
            tags=list(self.tags),
            kind=self.kind,
            recurring_id=self.recurring_id,
        )


class RecurringRecord(BaseModel):
    """반복 거래 템플릿 레코드"""

    record_type: Literal["recurring"] = "recurring"
    id: str = Field(..., min_length=1)
    description: str
    frequency: Frequency
    start_date: date
    end_date: date | None = None
    last_processed: date | None = None
    budget_id: str | None = None
    tags: list[str] = Field(default_factory=list)
    lines: list[LineRecord] = Field(..., min_length=1)
    active: bool = True

    @classmethod
    def from_entity(cls, template: RecurringTemplate) -> "RecurringRecord":
        return cls(
            id=template.template_id,
            description=template.description,
            frequency=template.frequency,
            start_date=template.start_date,
            end_date=template.end_date,
            last_processed=template.last_processed,
            budget_id=template.budget_id,
            tags=list(template.tags),
            lines=[LineRecord.from_entity(line) for line in template.lines],
            active=template.active,
        )

    def to_entity(self) -> RecurringTemplate:
        return RecurringTemplate(
            template_id=self.id,
            description=self.description,
            frequency=self.frequency,
            start_date=self.start_date,
            lines=[line.to_entity() for line in self.lines],
            end_date=self.end_date,
            last_processed=self.last_processed,
            budget_id=self.budget_id,
            tags=list(self.tags),
            active=self.active,
        )


class StagedRecord(BaseModel):
    """대기 거래 레코드"""

    record_type: Literal["staged"] = "staged"
    id: str = Field(..., min_length=1)
    account_id: str = Field(..., min_length=1)
    booked_on: date
    description: str | None = None
    budget_id: str | None = None
    tags: list[str] = Field(default_factory=list)
    lines: list[LineRecord] = Field(..., min_length=1)

    @classmethod
    def from_entity(cls, staged: StagedTransaction) -> "StagedRecord":
        return cls(
            id=staged.staged_id,
            account_id=staged.account_id,
            booked_on=staged.booked_on,
            description=staged.description,
            budget_id=staged.budget_id,
            tags=list(staged.tags),
            lines=[LineRecord.from_entity(line) for line in staged.lines],
        )

    def to_entity(self) -> StagedTransaction:
        return StagedTransaction(
            staged_id=self.id,
            account_id=self.account_id,
            booked_on=self.booked_on,
            lines=[line.to_entity() for line in self.lines],
            description=self.description,
            budget_id=self.budget_id,
            tags=list(self.tags),
        )


LedgerRecord = Annotated[
    Union[AccountRecord, BudgetRecord, TransactionRecord, RecurringRecord, StagedRecord],
    Field(discriminator="record_type"),
]

RECORD_MODELS: dict[Collection, type[BaseModel]] = {
    Collection.ACCOUNTS: AccountRecord,
    Collection.BUDGETS: BudgetRecord,
    Collection.TRANSACTIONS: TransactionRecord,
    Collection.RECURRING_TRANSACTIONS: RecurringRecord,
    Collection.STAGED_TRANSACTIONS: StagedRecord,
}


def parse_record(collection: Collection, payload: dict[str, Any]) -> Any:
    """저장된 payload를 컬렉션에 맞는 레코드로 검증

    Args:
        collection: 컬렉션
        payload: JSON에서 읽은 dict

    Returns:
        검증된 레코드 인스턴스

    Raises:
        InvalidRecordError: 레코드 형태가 잘못된 경우
    """
    model = RECORD_MODELS[collection]
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        record_id = payload.get("id") if isinstance(payload, dict) else None
        raise InvalidRecordError(
            f"Invalid {collection.value} record {record_id!r}: {e}"
        ) from e
