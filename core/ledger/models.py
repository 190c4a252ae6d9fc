"""
원장 도메인 모델

계좌, 거래, 반복 거래 템플릿, 대기 거래, 예산.
금액은 모두 Decimal (부호: + 증가 / - 감소)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from core.constants import BALANCE_TOLERANCE
from core.types import AccountType, Frequency, TransactionKind


@dataclass(frozen=True)
class PostingLine:
    """분개 line

    하나의 계좌에 대한 부호 있는 금액.
    """

    account_id: str
    amount: Decimal


def lines_total(lines: list[PostingLine]) -> Decimal:
    """line 금액 합계"""
    return sum((line.amount for line in lines), Decimal("0"))


def lines_balanced(lines: list[PostingLine]) -> bool:
    """합계가 허용 오차 이내로 0인지 확인"""
    return abs(lines_total(lines)) <= BALANCE_TOLERANCE


def amount_for(lines: list[PostingLine], account_id: str) -> Decimal:
    """특정 계좌에 대한 line 금액 합계"""
    return sum(
        (line.amount for line in lines if line.account_id == account_id),
        Decimal("0"),
    )


@dataclass(frozen=True)
class Account:
    """계좌

    balance는 모든 거래 line의 합계를 캐시한 값.
    불변 객체이며 잔액 변경은 PostingEngine만 수행한다.
    """

    account_id: str
    name: str
    account_type: AccountType = AccountType.BANK
    balance: Decimal = Decimal("0")


@dataclass(frozen=True)
class Budget:
    """예산 (원장 코어에서는 태그로만 사용)"""

    budget_id: str
    name: str
    amount: Decimal = Decimal("0")


@dataclass
class Transaction:
    """거래

    하나 이상의 line으로 구성.
    복식 모드: line 합계 = 0
    """

    transaction_id: str
    booked_on: date
    lines: list[PostingLine]
    description: str | None = None
    budget_id: str | None = None
    tags: list[str] = field(default_factory=list)

    # 출처
    kind: TransactionKind = TransactionKind.REGULAR
    recurring_id: str | None = None

    def total(self) -> Decimal:
        return lines_total(self.lines)

    def is_balanced(self) -> bool:
        return lines_balanced(self.lines)

    def account_ids(self) -> set[str]:
        return {line.account_id for line in self.lines}


@dataclass
class RecurringTemplate:
    """반복 거래 템플릿

    last_processed는 스케줄러가 거래 생성에 성공했을 때만 갱신된다.
    """

    template_id: str
    description: str
    frequency: Frequency
    start_date: date
    lines: list[PostingLine]
    end_date: date | None = None
    last_processed: date | None = None
    budget_id: str | None = None
    tags: list[str] = field(default_factory=list)
    active: bool = True

    @property
    def reference_date(self) -> date:
        """주기 계산 기준일 (마지막 처리일, 없으면 시작일)"""
        return self.last_processed or self.start_date

    def is_expired(self, as_of: date) -> bool:
        return self.end_date is not None and self.end_date < as_of


@dataclass
class StagedTransaction:
    """대기 거래

    커밋 전까지 어떤 계좌 잔액에도 영향을 주지 않는다.
    account_id는 정합 중인 계좌, line은 다른 계좌를 포함할 수 있음 (이체).
    """

    staged_id: str
    account_id: str
    booked_on: date
    lines: list[PostingLine]
    description: str | None = None
    budget_id: str | None = None
    tags: list[str] = field(default_factory=list)

    def amount_for_account(self) -> Decimal:
        """정합 대상 계좌에 대한 금액"""
        return amount_for(self.lines, self.account_id)

    def to_transaction(self, transaction_id: str) -> Transaction:
        return Transaction(
            transaction_id=transaction_id,
            booked_on=self.booked_on,
            lines=list(self.lines),
            description=self.description,
            budget_id=self.budget_id,
            tags=list(self.tags),
        )


@dataclass(frozen=True)
class BalanceAudit:
    """잔액 감사 결과

    computed: 모든 거래 line으로 재계산한 잔액
    cached: 계좌에 저장된 잔액
    """

    account_id: str
    computed: Decimal
    cached: Decimal

    @property
    def difference(self) -> Decimal:
        return self.cached - self.computed

    @property
    def is_consistent(self) -> bool:
        return abs(self.difference) <= BALANCE_TOLERANCE
