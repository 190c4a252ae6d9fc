"""
원장 저장소 (타입 지정)

RecordStore 위에서 도메인 모델 단위로 읽고 쓰는 계층.
읽을 때마다 records 스키마로 검증하므로
잘못된 형태의 레코드는 PostingEngine에 도달하지 못한다.
"""

from __future__ import annotations

import logging
from typing import Any

from core.ledger.models import (
    Account,
    Budget,
    RecurringTemplate,
    StagedTransaction,
    Transaction,
)
from core.ledger.records import (
    AccountRecord,
    BudgetRecord,
    RecurringRecord,
    StagedRecord,
    TransactionRecord,
    parse_record,
)
from core.storage.record_store import RecordStore
from core.types import Collection

logger = logging.getLogger(__name__)


class LedgerRepository:
    """도메인 모델 저장소

    Args:
        store: 키-레코드 저장소
    """

    def __init__(self, store: RecordStore):
        self.store = store

    async def _get(self, collection: Collection, key: str) -> Any:
        payload = await self.store.get(collection, key)
        if payload is None:
            return None
        return parse_record(collection, payload).to_entity()

    async def _list(self, collection: Collection) -> list[Any]:
        payloads = await self.store.list_all(collection)
        return [parse_record(collection, payload).to_entity() for payload in payloads]

    async def _put(self, collection: Collection, key: str, record: Any) -> None:
        await self.store.put(collection, key, record.model_dump(mode="json"))

    # -------------------------------------------------------------------------
    # 계좌
    # -------------------------------------------------------------------------

    async def get_account(self, account_id: str) -> Account | None:
        return await self._get(Collection.ACCOUNTS, account_id)

    async def list_accounts(self) -> list[Account]:
        return await self._list(Collection.ACCOUNTS)

    async def put_account(self, account: Account) -> None:
        await self._put(Collection.ACCOUNTS, account.account_id, AccountRecord.from_entity(account))

    async def delete_account(self, account_id: str) -> bool:
        return await self.store.delete(Collection.ACCOUNTS, account_id)

    # -------------------------------------------------------------------------
    # 예산
    # -------------------------------------------------------------------------

    async def get_budget(self, budget_id: str) -> Budget | None:
        return await self._get(Collection.BUDGETS, budget_id)

    async def list_budgets(self) -> list[Budget]:
        return await self._list(Collection.BUDGETS)

    async def put_budget(self, budget: Budget) -> None:
        await self._put(Collection.BUDGETS, budget.budget_id, BudgetRecord.from_entity(budget))

    async def delete_budget(self, budget_id: str) -> bool:
        return await self.store.delete(Collection.BUDGETS, budget_id)

    # -------------------------------------------------------------------------
    # 거래
    # -------------------------------------------------------------------------

    async def get_transaction(self, transaction_id: str) -> Transaction | None:
        return await self._get(Collection.TRANSACTIONS, transaction_id)

    async def list_transactions(self) -> list[Transaction]:
        return await self._list(Collection.TRANSACTIONS)

    async def put_transaction(self, tx: Transaction) -> None:
        await self._put(Collection.TRANSACTIONS, tx.transaction_id, TransactionRecord.from_entity(tx))

    async def delete_transaction(self, transaction_id: str) -> bool:
        return await self.store.delete(Collection.TRANSACTIONS, transaction_id)

    async def transactions_for_account(self, account_id: str) -> list[Transaction]:
        """특정 계좌를 참조하는 거래 목록"""
        return [
            tx for tx in await self.list_transactions()
            if account_id in tx.account_ids()
        ]

    # -------------------------------------------------------------------------
    # 반복 거래 템플릿
    # -------------------------------------------------------------------------

    async def get_template(self, template_id: str) -> RecurringTemplate | None:
        return await self._get(Collection.RECURRING_TRANSACTIONS, template_id)

    async def list_templates(self) -> list[RecurringTemplate]:
        return await self._list(Collection.RECURRING_TRANSACTIONS)

    async def put_template(self, template: RecurringTemplate) -> None:
        await self._put(
            Collection.RECURRING_TRANSACTIONS,
            template.template_id,
            RecurringRecord.from_entity(template),
        )

    async def delete_template(self, template_id: str) -> bool:
        return await self.store.delete(Collection.RECURRING_TRANSACTIONS, template_id)

    # -------------------------------------------------------------------------
    # 대기 거래
    # -------------------------------------------------------------------------

    async def get_staged(self, staged_id: str) -> StagedTransaction | None:
        return await self._get(Collection.STAGED_TRANSACTIONS, staged_id)

    async def list_staged(self, account_id: str | None = None) -> list[StagedTransaction]:
        """대기 거래 목록 (account_id 지정 시 해당 계좌만)"""
        staged = await self._list(Collection.STAGED_TRANSACTIONS)
        if account_id is None:
            return staged
        return [item for item in staged if item.account_id == account_id]

    async def put_staged(self, staged: StagedTransaction) -> None:
        await self._put(Collection.STAGED_TRANSACTIONS, staged.staged_id, StagedRecord.from_entity(staged))

    async def delete_staged(self, staged_id: str) -> bool:
        return await self.store.delete(Collection.STAGED_TRANSACTIONS, staged_id)
