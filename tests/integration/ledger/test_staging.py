"""StagingArea 통합 테스트

대기 거래 커밋과 잔액 정합
"""

from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio

from core.constants import Defaults
from core.ledger import (
    AccountNotFoundError,
    DanglingAccountReferenceError,
    DuplicateIdError,
    Ledger,
    NothingStagedError,
    PostingLine,
    StagedTransaction,
    UnbalancedTransactionError,
)
from core.types import AccountType, LedgerMode, TransactionKind


SIMPLE = LedgerMode.SIMPLE
DE = LedgerMode.DOUBLE_ENTRY


def _staged(staged_id: str, account_id: str, *pairs: tuple[str, str]) -> StagedTransaction:
    return StagedTransaction(
        staged_id=staged_id,
        account_id=account_id,
        booked_on=date(2024, 5, 10),
        lines=[PostingLine(acc, Decimal(amount)) for acc, amount in pairs],
    )


async def _balance(ledger: Ledger, account_id: str) -> Decimal:
    return (await ledger.accounts.get_account(account_id)).balance


@pytest_asyncio.fixture
async def checking(ledger: Ledger, fund) -> Ledger:
    """C=50 (단식 개시)"""
    await ledger.accounts.open_account("Checking", account_id="C")
    await fund("C", "50", SIMPLE)
    return ledger


@pytest_asyncio.fixture
async def checking_de(ledger: Ledger, fund) -> Ledger:
    """C=50, E=-50, S=0 (복식 개시)"""
    await ledger.accounts.open_account("Checking", account_id="C")
    await ledger.accounts.open_account("Savings", account_id="S")
    await ledger.accounts.open_account("Equity", AccountType.OTHER, account_id="E")
    await fund("C", "50", DE, counter_account_id="E")
    return ledger


class TestStage:
    """대기 거래 추가 / 제거"""

    @pytest.mark.asyncio
    async def test_stage_does_not_touch_balance(self, checking: Ledger) -> None:
        """대기 거래는 커밋 전까지 잔액에 영향 없음"""
        await checking.staging.stage(_staged("s1", "C", ("C", "20")), SIMPLE)

        assert await _balance(checking, "C") == Decimal("50")
        assert len(await checking.staging.list_staged("C")) == 1

    @pytest.mark.asyncio
    async def test_stage_validates_lines(self, checking: Ledger) -> None:
        """복식 모드에서 단일 line 대기 거래는 거부"""
        with pytest.raises(UnbalancedTransactionError):
            await checking.staging.stage(_staged("s1", "C", ("C", "20")), DE)

        assert await checking.staging.list_staged("C") == []

    @pytest.mark.asyncio
    async def test_existing_staged_id_rejected(self, checking: Ledger) -> None:
        """대기 중인 ID 재사용은 거부, 다른 계좌로도 이동하지 않음"""
        await checking.staging.stage(_staged("s1", "C", ("C", "20")), SIMPLE)

        with pytest.raises(DuplicateIdError):
            await checking.staging.stage(_staged("s1", "C", ("C", "-5")), SIMPLE)
        with pytest.raises(DuplicateIdError):
            await checking.staging.stage(_staged("s1", "X", ("X", "1")), SIMPLE)

        pending = await checking.staging.list_staged("C")
        assert [item.lines for item in pending] == [[PostingLine("C", Decimal("20"))]]
        assert await checking.staging.list_staged("X") == []

    @pytest.mark.asyncio
    async def test_unstage(self, checking: Ledger) -> None:
        await checking.staging.stage(_staged("s1", "C", ("C", "20")), SIMPLE)

        assert await checking.staging.unstage("s1") is True
        assert await checking.staging.unstage("s1") is False
        assert await checking.staging.list_staged("C") == []

    @pytest.mark.asyncio
    async def test_clear_all_only_target_account(self, checking: Ledger) -> None:
        await checking.staging.stage(_staged("s1", "C", ("C", "20")), SIMPLE)
        await checking.staging.stage(_staged("s2", "C", ("C", "-5")), SIMPLE)
        await checking.staging.stage(_staged("s3", "X", ("X", "1")), SIMPLE)

        assert await checking.staging.clear_all("C") == 2
        assert len(await checking.staging.list_staged("X")) == 1


class TestCommitSimple:
    """단식 모드 커밋"""

    @pytest.mark.asyncio
    async def test_commit_with_discrepancy(self, checking: Ledger) -> None:
        """C=50, +20, -5, 실제 70 → 조정 +5"""
        await checking.staging.stage(_staged("s1", "C", ("C", "20")), SIMPLE)
        await checking.staging.stage(_staged("s2", "C", ("C", "-5")), SIMPLE)

        result = await checking.staging.commit("C", Decimal("70"), SIMPLE, as_of=date(2024, 5, 31))

        assert result.expected == Decimal("65")
        assert result.discrepancy == Decimal("5")
        assert len(result.transaction_ids) == 2

        adjustment = result.adjustment
        assert adjustment is not None
        assert adjustment.lines == [PostingLine("C", Decimal("5"))]
        assert adjustment.tags == [Defaults.RECONCILIATION_TAG]
        assert adjustment.kind == TransactionKind.RECONCILIATION
        assert adjustment.booked_on == date(2024, 5, 31)

        assert await _balance(checking, "C") == Decimal("70")
        assert await checking.staging.list_staged("C") == []
        # 원래 거래 1 + 커밋 2 + 조정 1
        assert len(await checking.repo.list_transactions()) == 4

    @pytest.mark.asyncio
    async def test_commit_without_discrepancy(self, checking: Ledger) -> None:
        """실제 잔액 = 예상 잔액이면 조정 없음"""
        await checking.staging.stage(_staged("s1", "C", ("C", "20")), SIMPLE)
        await checking.staging.stage(_staged("s2", "C", ("C", "-5")), SIMPLE)

        result = await checking.staging.commit("C", Decimal("65"), SIMPLE)

        assert result.adjustment is None
        assert await _balance(checking, "C") == Decimal("65")

    @pytest.mark.asyncio
    async def test_negative_discrepancy(self, checking: Ledger) -> None:
        await checking.staging.stage(_staged("s1", "C", ("C", "20")), SIMPLE)

        result = await checking.staging.commit("C", Decimal("60"), SIMPLE)

        assert result.adjustment.lines == [PostingLine("C", Decimal("-10"))]
        assert await _balance(checking, "C") == Decimal("60")

    @pytest.mark.asyncio
    async def test_balance_audit_after_commit(self, checking: Ledger) -> None:
        """커밋 후 재계산 잔액 = 보고된 잔액"""
        await checking.staging.stage(_staged("s1", "C", ("C", "20")), SIMPLE)
        await checking.staging.stage(_staged("s2", "C", ("C", "-5")), SIMPLE)
        await checking.staging.commit("C", Decimal("70"), SIMPLE)

        audit = await checking.engine.recompute_account_balance("C")

        assert audit.computed == Decimal("70")
        assert audit.is_consistent


class TestCommitDoubleEntry:
    """복식 모드 커밋"""

    @pytest.mark.asyncio
    async def test_adjustment_balanced_with_contra_account(self, checking_de: Ledger) -> None:
        """조정 거래는 정합 상대 계좌로 균형 유지"""
        await checking_de.staging.stage(_staged("s1", "C", ("C", "20"), ("E", "-20")), DE)
        await checking_de.staging.stage(_staged("s2", "C", ("C", "-5"), ("S", "5")), DE)

        result = await checking_de.staging.commit("C", Decimal("70"), DE)

        assert result.discrepancy == Decimal("5")
        assert result.adjustment.is_balanced()
        assert result.adjustment.lines == [
            PostingLine("C", Decimal("5")),
            PostingLine(Defaults.RECONCILIATION_ACCOUNT_ID, Decimal("-5")),
        ]

        contra = await checking_de.accounts.get_account(Defaults.RECONCILIATION_ACCOUNT_ID)
        assert contra.account_type == AccountType.OTHER
        assert contra.balance == Decimal("-5")

        assert await _balance(checking_de, "C") == Decimal("70")
        assert await _balance(checking_de, "S") == Decimal("5")
        assert await _balance(checking_de, "E") == Decimal("-70")

        audits = await checking_de.engine.audit_all()
        assert all(audit.is_consistent for audit in audits)

    @pytest.mark.asyncio
    async def test_contra_account_reused(self, checking_de: Ledger) -> None:
        for n in range(2):
            await checking_de.staging.stage(_staged(f"s{n}", "C", ("C", "1"), ("E", "-1")), DE)
            await checking_de.staging.commit("C", Decimal("100") + n, DE)

        contra = await checking_de.accounts.get_account(Defaults.RECONCILIATION_ACCOUNT_ID)
        # 1차: 예상 51, 실제 100 → -49 / 2차: 예상 101, 실제 101 → 조정 없음
        assert contra.balance == Decimal("-49")


class TestCommitErrors:
    """커밋 실패"""

    @pytest.mark.asyncio
    async def test_nothing_staged(self, checking: Ledger) -> None:
        with pytest.raises(NothingStagedError):
            await checking.staging.commit("C", Decimal("50"), SIMPLE)

    @pytest.mark.asyncio
    async def test_account_not_found(self, checking: Ledger) -> None:
        """대상 계좌가 없으면 실패, 대기 거래 유지"""
        await checking.staging.stage(_staged("s1", "ghost", ("ghost", "1")), SIMPLE)

        with pytest.raises(AccountNotFoundError):
            await checking.staging.commit("ghost", Decimal("1"), SIMPLE)

        assert len(await checking.staging.list_staged("ghost")) == 1

    @pytest.mark.asyncio
    async def test_partial_failure_rolls_back_everything(self, checking: Ledger) -> None:
        """중간 대기 거래 실패 시 이미 적용한 거래까지 모두 롤백"""
        await checking.staging.stage(_staged("s1", "C", ("C", "20")), SIMPLE)
        await checking.staging.stage(_staged("s2", "C", ("C", "-5"), ("deleted", "5")), SIMPLE)

        with pytest.raises(DanglingAccountReferenceError):
            await checking.staging.commit("C", Decimal("70"), SIMPLE)

        assert await _balance(checking, "C") == Decimal("50")
        assert len(await checking.staging.list_staged("C")) == 2
        assert len(await checking.repo.list_transactions()) == 1
