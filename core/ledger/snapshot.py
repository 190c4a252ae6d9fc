"""
원장 스냅샷 (JSON 내보내기 / 가져오기)

모든 엔티티의 모든 필드(last_processed, 대기 거래 포함)를 보존한다.
가져오기는 레코드 그대로 저장하며 잔액을 재계산하지 않는다.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, ValidationError

from core.constants import Defaults
from core.ledger.errors import InvalidRecordError
from core.ledger.records import (
    AccountRecord,
    BudgetRecord,
    RecurringRecord,
    StagedRecord,
    TransactionRecord,
)
from core.types import Collection

if TYPE_CHECKING:
    from core.ledger.posting import PostingEngine
    from core.ledger.repository import LedgerRepository

logger = logging.getLogger(__name__)


class LedgerSnapshot(BaseModel):
    """원장 전체 스냅샷"""

    version: int = Field(default=Defaults.SNAPSHOT_VERSION, description="스냅샷 형식 버전")
    exported_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    accounts: list[AccountRecord] = Field(default_factory=list)
    budgets: list[BudgetRecord] = Field(default_factory=list)
    transactions: list[TransactionRecord] = Field(default_factory=list)
    recurring_transactions: list[RecurringRecord] = Field(default_factory=list)
    staged_transactions: list[StagedRecord] = Field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            Collection.ACCOUNTS.value: len(self.accounts),
            Collection.BUDGETS.value: len(self.budgets),
            Collection.TRANSACTIONS.value: len(self.transactions),
            Collection.RECURRING_TRANSACTIONS.value: len(self.recurring_transactions),
            Collection.STAGED_TRANSACTIONS.value: len(self.staged_transactions),
        }


def dump_json(snapshot: LedgerSnapshot, path: Path) -> Path:
    """스냅샷을 JSON 파일로 저장"""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(snapshot.model_dump_json(indent=2), encoding="utf-8")
    return path


def load_json(path: Path) -> LedgerSnapshot:
    """JSON 파일에서 스냅샷 로드

    Raises:
        InvalidRecordError: 형식이 잘못된 경우
    """
    try:
        return LedgerSnapshot.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as e:
        raise InvalidRecordError(f"Invalid snapshot {path}: {e}") from e


class SnapshotService:
    """스냅샷 내보내기 / 가져오기

    Args:
        engine: atomic 경계 제공
        repo: 도메인 모델 저장소
    """

    def __init__(self, engine: PostingEngine, repo: LedgerRepository):
        self.engine = engine
        self.repo = repo

    async def export_snapshot(self) -> LedgerSnapshot:
        """현재 원장 전체를 스냅샷으로 변환"""
        async with self.engine.atomic():
            snapshot = LedgerSnapshot(
                accounts=[AccountRecord.from_entity(a) for a in await self.repo.list_accounts()],
                budgets=[BudgetRecord.from_entity(b) for b in await self.repo.list_budgets()],
                transactions=[
                    TransactionRecord.from_entity(t) for t in await self.repo.list_transactions()
                ],
                recurring_transactions=[
                    RecurringRecord.from_entity(r) for r in await self.repo.list_templates()
                ],
                staged_transactions=[
                    StagedRecord.from_entity(s) for s in await self.repo.list_staged()
                ],
            )
        logger.info("스냅샷 내보내기", extra={"counts": snapshot.counts()})
        return snapshot

    async def import_snapshot(self, snapshot: LedgerSnapshot, clear_before: bool = False) -> dict[str, int]:
        """스냅샷을 저장소에 기록

        같은 ID는 덮어쓴다. clear_before=True면 모든 컬렉션을 비운 뒤 기록.
        전체가 하나의 atomic 단위.

        Returns:
            컬렉션별 기록 건수
        """
        store = self.repo.store
        async with self.engine.atomic():
            if clear_before:
                for collection in Collection:
                    await store.clear(collection)

            for account in snapshot.accounts:
                await store.put(Collection.ACCOUNTS, account.id, account.model_dump(mode="json"))
            for budget in snapshot.budgets:
                await store.put(Collection.BUDGETS, budget.id, budget.model_dump(mode="json"))
            for tx in snapshot.transactions:
                await store.put(Collection.TRANSACTIONS, tx.id, tx.model_dump(mode="json"))
            for template in snapshot.recurring_transactions:
                await store.put(
                    Collection.RECURRING_TRANSACTIONS, template.id, template.model_dump(mode="json")
                )
            for staged in snapshot.staged_transactions:
                await store.put(
                    Collection.STAGED_TRANSACTIONS, staged.id, staged.model_dump(mode="json")
                )

        counts = snapshot.counts()
        logger.info("스냅샷 가져오기", extra={"counts": counts, "clear_before": clear_before})
        return counts
