"""
대기 거래 & 정합 워크플로

계좌 하나에 여러 거래를 대기시켜 두었다가,
실제 잔액(reported_balance)과 함께 한 번에 커밋한다.
차이가 있으면 정합 조정 거래를 추가하여 캐시 잔액을 실제 잔액에 맞춘다.

복식 모드 정합:
    조정 금액을 대상 계좌(+)와 정합 상대 계좌 system:reconciliation(-)에
    나누어 기록하여 거래 합계 0을 유지한다.
단식 모드 정합:
    대상 계좌에 단일 line으로 기록한다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import uuid4

from core.constants import BALANCE_TOLERANCE, Defaults
from core.ledger.errors import AccountNotFoundError, DuplicateIdError, NothingStagedError
from core.ledger.models import Account, PostingLine, StagedTransaction, Transaction
from core.ledger.posting import validate_postings
from core.types import AccountType, LedgerMode, TransactionKind

if TYPE_CHECKING:
    from core.ledger.posting import PostingEngine
    from core.ledger.repository import LedgerRepository

logger = logging.getLogger(__name__)


@dataclass
class CommitResult:
    """정합 커밋 결과

    expected: 캐시 잔액 + 대기 거래 중 대상 계좌 금액 합계
    discrepancy: reported - expected (허용 오차 이내면 조정 없음)
    """

    account_id: str
    expected: Decimal
    reported: Decimal
    transaction_ids: list[str] = field(default_factory=list)
    adjustment: Transaction | None = None

    @property
    def discrepancy(self) -> Decimal:
        return self.reported - self.expected


class StagingArea:
    """계좌별 대기 거래 관리 및 정합 커밋

    Args:
        engine: 분개 적용 엔진
        repo: 도메인 모델 저장소
    """

    def __init__(self, engine: PostingEngine, repo: LedgerRepository):
        self.engine = engine
        self.repo = repo

    async def stage(self, staged: StagedTransaction, mode: LedgerMode) -> StagedTransaction:
        """대기 거래 추가 (잔액 영향 없음)

        커밋 시 재검증하지 않으므로 여기서 line을 검증한다.

        Raises:
            DuplicateIdError: 같은 staged_id가 이미 대기 중인 경우 (계좌 무관)
        """
        validate_postings(staged.lines, mode, staged.staged_id)
        async with self.engine.atomic():
            if await self.repo.get_staged(staged.staged_id) is not None:
                raise DuplicateIdError("StagedTransaction", staged.staged_id)
            await self.repo.put_staged(staged)
        logger.debug(f"Staged {staged.staged_id} for account {staged.account_id}")
        return staged

    async def unstage(self, staged_id: str) -> bool:
        """대기 거래 1건 제거"""
        async with self.engine.atomic():
            return await self.repo.delete_staged(staged_id)

    async def clear_all(self, account_id: str) -> int:
        """계좌의 대기 거래 전체 제거

        Returns:
            제거된 건수
        """
        async with self.engine.atomic():
            return await self._clear(account_id)

    async def list_staged(self, account_id: str) -> list[StagedTransaction]:
        return await self.repo.list_staged(account_id)

    async def commit(
        self,
        account_id: str,
        reported_balance: Decimal,
        mode: LedgerMode,
        as_of: date | None = None,
    ) -> CommitResult:
        """대기 거래 커밋 + 정합

        대기 거래 적용부터 대기 목록 정리까지 하나의 atomic 단위.
        중간 실패 시 모두 롤백되어 일부만 커밋되거나 대기 목록이 어긋나는 상태가 남지 않는다.

        Args:
            account_id: 정합 대상 계좌
            reported_balance: 사용자가 입력한 실제 잔액
            mode: 기장 모드 (정합 조정 거래 형태 결정)
            as_of: 정합 조정 거래 날짜 (None이면 오늘)

        Raises:
            NothingStagedError: 대기 거래가 없는 경우
            AccountNotFoundError: 계좌가 없는 경우
            DanglingAccountReferenceError: 대기 거래 line의 계좌가 없는 경우
        """
        async with self.engine.atomic():
            staged = await self.repo.list_staged(account_id)
            if not staged:
                raise NothingStagedError(account_id)

            account = await self.repo.get_account(account_id)
            if account is None:
                raise AccountNotFoundError(account_id)

            expected = account.balance + sum(
                (item.amount_for_account() for item in staged),
                Decimal("0"),
            )
            result = CommitResult(account_id=account_id, expected=expected, reported=reported_balance)

            for item in staged:
                tx = item.to_transaction(str(uuid4()))
                await self.engine.apply_postings(tx)
                result.transaction_ids.append(tx.transaction_id)

            if abs(result.discrepancy) > BALANCE_TOLERANCE:
                adjustment = await self._reconcile(
                    account_id, result.discrepancy, mode, as_of or date.today()
                )
                result.adjustment = adjustment

            # 보고된 잔액이 이 시점 계좌 잔액의 기준
            await self.engine.set_reported_balance(account_id, reported_balance)
            await self._clear(account_id)

        logger.info(
            "정합 커밋 완료",
            extra={
                "account_id": account_id,
                "committed": len(result.transaction_ids),
                "expected": str(result.expected),
                "reported": str(result.reported),
                "adjusted": result.adjustment is not None,
            },
        )
        return result

    async def _reconcile(
        self,
        account_id: str,
        discrepancy: Decimal,
        mode: LedgerMode,
        booked_on: date,
    ) -> Transaction:
        """정합 조정 거래 생성 (atomic 안에서 호출)"""
        lines = [PostingLine(account_id=account_id, amount=discrepancy)]

        if mode == LedgerMode.DOUBLE_ENTRY:
            await self._ensure_contra_account()
            lines.append(
                PostingLine(account_id=Defaults.RECONCILIATION_ACCOUNT_ID, amount=-discrepancy)
            )

        tx = Transaction(
            transaction_id=str(uuid4()),
            booked_on=booked_on,
            lines=lines,
            description=Defaults.RECONCILIATION_DESCRIPTION,
            tags=[Defaults.RECONCILIATION_TAG],
            kind=TransactionKind.RECONCILIATION,
        )
        await self.engine.apply_postings(tx)

        logger.warning(
            "정합 조정 거래 생성",
            extra={
                "account_id": account_id,
                "discrepancy": str(discrepancy),
                "transaction_id": tx.transaction_id,
            },
        )
        return tx

    async def _ensure_contra_account(self) -> None:
        """정합 상대 계좌가 없으면 생성"""
        contra_id = Defaults.RECONCILIATION_ACCOUNT_ID
        if await self.repo.get_account(contra_id) is None:
            await self.repo.put_account(
                Account(
                    account_id=contra_id,
                    name=Defaults.RECONCILIATION_ACCOUNT_NAME,
                    account_type=AccountType.OTHER,
                )
            )
            logger.info("정합 상대 계좌 생성", extra={"account_id": contra_id})

    async def _clear(self, account_id: str) -> int:
        staged = await self.repo.list_staged(account_id)
        for item in staged:
            await self.repo.delete_staged(item.staged_id)
        return len(staged)
