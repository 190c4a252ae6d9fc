"""
PostingEngine - 분개 적용 엔진

계좌 잔액(balance)을 변경할 수 있는 유일한 컴포넌트.
잔액은 거래 로그 위의 Projection이며, 모든 변경은 이 모듈을 거친다.

동시성:
    하나의 원장 전체 asyncio.Lock + SQLite 트랜잭션(atomic)으로
    "계좌 읽기 → 금액 더하기 → 계좌 쓰기" 사이의 끼어들기를 막는다.
    atomic() 안에서 예외가 나면 그 안의 모든 쓰기가 롤백된다.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import replace
from decimal import Decimal
from typing import TYPE_CHECKING, AsyncIterator

from core.constants import BALANCE_TOLERANCE
from core.ledger.errors import (
    DanglingAccountReferenceError,
    DuplicateIdError,
    EmptyPostingError,
    NotFoundError,
    UnbalancedTransactionError,
)
from core.ledger.models import (
    Account,
    BalanceAudit,
    PostingLine,
    Transaction,
    amount_for,
    lines_total,
)
from core.types import LedgerMode

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter
    from core.ledger.repository import LedgerRepository

logger = logging.getLogger(__name__)


def validate_postings(lines: list[PostingLine], mode: LedgerMode, ref_id: str) -> None:
    """line 목록 검증

    Args:
        lines: 분개 line 목록
        mode: 기장 모드
        ref_id: 오류 메시지용 식별자 (거래 / 템플릿 / 대기 거래 ID)

    Raises:
        EmptyPostingError: line이 없거나 금액이 0인 line이 있는 경우
        UnbalancedTransactionError: 복식 모드에서 합계가 0이 아닌 경우
    """
    if not lines:
        raise EmptyPostingError(f"{ref_id} has no lines")

    zero_lines = [line.account_id for line in lines if line.amount == 0]
    if zero_lines:
        raise EmptyPostingError(f"{ref_id} has zero-amount line(s): {', '.join(zero_lines)}")

    if mode == LedgerMode.DOUBLE_ENTRY:
        total = lines_total(lines)
        if abs(total) > BALANCE_TOLERANCE:
            raise UnbalancedTransactionError(ref_id, total)


class PostingEngine:
    """분개 적용 엔진

    공개 메서드(create/update/delete/...)는 스스로 atomic()을 연다.
    apply_postings / remove_postings / set_reported_balance는
    다른 컴포넌트(스케줄러, 대기 거래)가 atomic() 안에서 조합하는 하위 경로.

    Args:
        db: SQLite 어댑터 (트랜잭션 경계)
        repo: 도메인 모델 저장소
    """

    def __init__(self, db: SQLiteAdapter, repo: LedgerRepository):
        self.db = db
        self.repo = repo
        self._lock = asyncio.Lock()
        self._owner: asyncio.Task | None = None

    # -------------------------------------------------------------------------
    # 원자 단위
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[None]:
        """원장 잠금 + DB 트랜잭션

        성공 시 커밋, 예외 시 롤백. 재진입 불가.
        잠금을 잡은 Task를 기록하여 하위 경로가 소유 여부를 확인한다.
        """
        async with self._lock:
            self._owner = asyncio.current_task()
            try:
                async with self.db.transaction():
                    yield
            finally:
                self._owner = None

    def _require_atomic(self) -> None:
        if self._owner is None or self._owner is not asyncio.current_task():
            raise RuntimeError("Posting path must run inside PostingEngine.atomic()")

    # -------------------------------------------------------------------------
    # 공개 연산
    # -------------------------------------------------------------------------

    async def create_transaction(self, tx: Transaction, mode: LedgerMode) -> Transaction:
        """거래 생성

        검증 후 거래를 저장하고 각 line 금액을 계좌 잔액에 더한다.

        Raises:
            EmptyPostingError, UnbalancedTransactionError,
            DanglingAccountReferenceError
            DuplicateIdError: 같은 ID의 거래가 이미 있는 경우 (수정은 update_transaction)
        """
        validate_postings(tx.lines, mode, tx.transaction_id)

        async with self.atomic():
            await self.apply_postings(tx)

        logger.info(
            "거래 생성",
            extra={"transaction_id": tx.transaction_id, "mode": mode.value, "lines": len(tx.lines)},
        )
        return tx

    async def update_transaction(self, tx: Transaction, mode: LedgerMode) -> Transaction:
        """거래 수정 (롤백 후 재적용)

        이전 버전의 line을 되돌리고 새 버전을 적용한다.
        참조 계좌 확인과 검증을 모든 쓰기보다 먼저 수행하며,
        전체가 하나의 atomic 단위라 중간 실패 시 아무것도 바뀌지 않는다.

        Raises:
            NotFoundError: 이전 버전이 없는 경우
            DanglingAccountReferenceError: 이전/새 line의 계좌가 삭제된 경우
            EmptyPostingError, UnbalancedTransactionError
        """
        async with self.atomic():
            old = await self.repo.get_transaction(tx.transaction_id)
            if old is None:
                raise NotFoundError("Transaction", tx.transaction_id)

            validate_postings(tx.lines, mode, tx.transaction_id)
            await self._require_accounts(old.account_ids() | tx.account_ids())

            await self._adjust_balances(old.lines, sign=-1)
            await self.repo.put_transaction(tx)
            await self._adjust_balances(tx.lines, sign=1)

        logger.info("거래 수정", extra={"transaction_id": tx.transaction_id, "mode": mode.value})
        return tx

    async def delete_transaction(self, transaction_id: str) -> bool:
        """거래 삭제 (잔액 롤백)

        Returns:
            삭제 여부 (없으면 False, no-op)
        """
        async with self.atomic():
            tx = await self.repo.get_transaction(transaction_id)
            if tx is None:
                return False
            await self.remove_postings(tx)

        logger.info("거래 삭제", extra={"transaction_id": transaction_id})
        return True

    async def recompute_account_balance(self, account_id: str) -> BalanceAudit:
        """잔액 감사 (읽기 전용)

        모든 거래를 스캔하여 계좌 잔액을 재계산하고 캐시 값과 비교.

        Raises:
            NotFoundError: 계좌가 없는 경우
        """
        async with self._lock:
            return await self._audit(account_id)

    async def audit_all(self) -> list[BalanceAudit]:
        """전체 계좌 잔액 감사"""
        async with self._lock:
            accounts = await self.repo.list_accounts()
            transactions = await self.repo.list_transactions()
            return [
                BalanceAudit(
                    account_id=account.account_id,
                    computed=self._sum_for(transactions, account.account_id),
                    cached=account.balance,
                )
                for account in accounts
            ]

    async def apply_balance_correction(self, account_id: str) -> BalanceAudit:
        """캐시 잔액을 재계산 값으로 덮어쓰기 (명시적 보정 단계)

        Returns:
            보정 전 감사 결과
        """
        async with self.atomic():
            audit = await self._audit(account_id)
            if audit.difference != 0:
                account = await self.repo.get_account(account_id)
                assert account is not None
                await self.repo.put_account(replace(account, balance=audit.computed))
                logger.warning(
                    "잔액 보정",
                    extra={
                        "account_id": account_id,
                        "cached": str(audit.cached),
                        "computed": str(audit.computed),
                    },
                )
        return audit

    # -------------------------------------------------------------------------
    # 하위 경로 (atomic() 안에서만 호출)
    # -------------------------------------------------------------------------

    async def apply_postings(self, tx: Transaction) -> None:
        """거래 저장 + 잔액 반영

        잔액 규칙(균형) 검증은 호출자 책임. ID 중복과 참조 계좌 존재만 확인한다.

        Raises:
            DuplicateIdError: 같은 ID의 거래가 이미 저장된 경우
            DanglingAccountReferenceError: 없는 계좌를 참조하는 경우
        """
        self._require_atomic()
        if await self.repo.get_transaction(tx.transaction_id) is not None:
            raise DuplicateIdError("Transaction", tx.transaction_id)
        await self._require_accounts(tx.account_ids())
        await self.repo.put_transaction(tx)
        await self._adjust_balances(tx.lines, sign=1)

    async def remove_postings(self, tx: Transaction) -> None:
        """잔액 롤백 + 거래 레코드 삭제

        이미 삭제된 계좌의 line은 되돌릴 잔액이 없으므로 건너뛴다.
        """
        self._require_atomic()
        await self._adjust_balances(tx.lines, sign=-1, skip_missing=True)
        await self.repo.delete_transaction(tx.transaction_id)

    async def set_reported_balance(self, account_id: str, balance: Decimal) -> Account:
        """정합 커밋 시 보고된 잔액으로 캐시 잔액 확정"""
        self._require_atomic()
        account = await self.repo.get_account(account_id)
        if account is None:
            raise NotFoundError("Account", account_id)
        updated = replace(account, balance=balance)
        await self.repo.put_account(updated)
        return updated

    # -------------------------------------------------------------------------
    # 내부 헬퍼
    # -------------------------------------------------------------------------

    async def _require_accounts(self, account_ids: set[str]) -> None:
        missing = {
            account_id for account_id in account_ids
            if await self.repo.get_account(account_id) is None
        }
        if missing:
            raise DanglingAccountReferenceError(missing)

    async def _adjust_balances(
        self,
        lines: list[PostingLine],
        sign: int,
        skip_missing: bool = False,
    ) -> None:
        """line 금액을 계좌별로 합산하여 잔액에 반영"""
        deltas: dict[str, Decimal] = {}
        for line in lines:
            deltas[line.account_id] = deltas.get(line.account_id, Decimal("0")) + line.amount * sign

        for account_id, delta in deltas.items():
            account = await self.repo.get_account(account_id)
            if account is None:
                if skip_missing:
                    logger.warning(
                        "삭제된 계좌의 line 롤백 건너뜀",
                        extra={"account_id": account_id, "delta": str(delta)},
                    )
                    continue
                raise DanglingAccountReferenceError({account_id})
            await self.repo.put_account(replace(account, balance=account.balance + delta))

    async def _audit(self, account_id: str) -> BalanceAudit:
        account = await self.repo.get_account(account_id)
        if account is None:
            raise NotFoundError("Account", account_id)
        transactions = await self.repo.list_transactions()
        return BalanceAudit(
            account_id=account_id,
            computed=self._sum_for(transactions, account_id),
            cached=account.balance,
        )

    @staticmethod
    def _sum_for(transactions: list[Transaction], account_id: str) -> Decimal:
        return sum(
            (amount_for(tx.lines, account_id) for tx in transactions),
            Decimal("0"),
        )
