"""
계좌 / 예산 관리

계좌 생성, 이름·유형 변경, 삭제(참조 거래 cascade)와 예산 CRUD.
계좌 잔액은 여기서 바꾸지 않는다 (PostingEngine 전담).
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING
from uuid import uuid4

from core.ledger.errors import AccountInUseError, NotFoundError
from core.ledger.models import Account, Budget
from core.types import AccountType

if TYPE_CHECKING:
    from decimal import Decimal

    from core.ledger.posting import PostingEngine
    from core.ledger.repository import LedgerRepository

logger = logging.getLogger(__name__)


class AccountRegistry:
    """계좌 관리

    Args:
        engine: 분개 적용 엔진 (cascade 삭제 시 잔액 롤백)
        repo: 도메인 모델 저장소
    """

    def __init__(self, engine: PostingEngine, repo: LedgerRepository):
        self.engine = engine
        self.repo = repo

    async def open_account(
        self,
        name: str,
        account_type: AccountType = AccountType.BANK,
        account_id: str | None = None,
    ) -> Account:
        """계좌 생성 (잔액 0에서 시작)"""
        account = Account(
            account_id=account_id or f"acc:{uuid4()}",
            name=name,
            account_type=account_type,
        )
        async with self.engine.atomic():
            if await self.repo.get_account(account.account_id) is not None:
                raise ValueError(f"Account {account.account_id} already exists")
            await self.repo.put_account(account)

        logger.info("계좌 생성", extra={"account_id": account.account_id, "account_type": account_type.value})
        return account

    async def get_account(self, account_id: str) -> Account:
        account = await self.repo.get_account(account_id)
        if account is None:
            raise NotFoundError("Account", account_id)
        return account

    async def list_accounts(self) -> list[Account]:
        return await self.repo.list_accounts()

    async def rename_account(
        self,
        account_id: str,
        name: str | None = None,
        account_type: AccountType | None = None,
    ) -> Account:
        """이름 / 유형 변경 (잔액 유지)"""
        async with self.engine.atomic():
            account = await self.get_account(account_id)
            account = replace(
                account,
                name=name if name is not None else account.name,
                account_type=account_type if account_type is not None else account.account_type,
            )
            await self.repo.put_account(account)
        return account

    async def delete_account(self, account_id: str, cascade: bool = False) -> int:
        """계좌 삭제

        참조 거래가 있으면 cascade=True일 때만 거래를 먼저 삭제(잔액 롤백)한다.
        해당 계좌의 대기 거래도 함께 제거.

        Returns:
            함께 삭제된 거래 수

        Raises:
            NotFoundError: 계좌가 없는 경우
            AccountInUseError: 참조 거래가 있는데 cascade=False인 경우
        """
        async with self.engine.atomic():
            await self.get_account(account_id)

            referencing = await self.repo.transactions_for_account(account_id)
            if referencing and not cascade:
                raise AccountInUseError(account_id, len(referencing))

            for tx in referencing:
                await self.engine.remove_postings(tx)

            for staged in await self.repo.list_staged(account_id):
                await self.repo.delete_staged(staged.staged_id)

            await self.repo.delete_account(account_id)

        logger.info(
            "계좌 삭제",
            extra={"account_id": account_id, "cascaded_transactions": len(referencing)},
        )
        return len(referencing)


class BudgetRegistry:
    """예산 관리

    예산은 거래 / 템플릿이 ID로 느슨하게 참조하는 태그.
    삭제해도 참조하는 거래는 그대로 남는다.
    """

    def __init__(self, engine: PostingEngine, repo: LedgerRepository):
        self.engine = engine
        self.repo = repo

    async def save_budget(self, name: str, amount: Decimal, budget_id: str | None = None) -> Budget:
        budget = Budget(budget_id=budget_id or f"bud:{uuid4()}", name=name, amount=amount)
        async with self.engine.atomic():
            await self.repo.put_budget(budget)
        return budget

    async def list_budgets(self) -> list[Budget]:
        return await self.repo.list_budgets()

    async def delete_budget(self, budget_id: str) -> bool:
        async with self.engine.atomic():
            return await self.repo.delete_budget(budget_id)
