"""
원장 조립

하나의 SQLiteAdapter 위에 저장소, 분개 엔진, 스케줄러, 대기 거래,
계좌/예산 관리, 스냅샷을 묶는다.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.ledger.posting import PostingEngine
from core.ledger.recurring import RecurrenceScheduler
from core.ledger.registry import AccountRegistry, BudgetRegistry
from core.ledger.repository import LedgerRepository
from core.ledger.schema import init_ledger_schema
from core.ledger.snapshot import SnapshotService
from core.ledger.staging import StagingArea
from core.storage.record_store import RecordStore

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter


class Ledger:
    """원장 컴포넌트 묶음

    Args:
        db: 연결된 SQLiteAdapter

    사용 예시:
    ```python
    async with SQLiteAdapter(db_path) as db:
        ledger = await Ledger.open(db)
        await ledger.engine.create_transaction(tx, LedgerMode.DOUBLE_ENTRY)
        report = await ledger.scheduler.process_due(date.today(), LedgerMode.DOUBLE_ENTRY)
    ```
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self.store = RecordStore(db)
        self.repo = LedgerRepository(self.store)
        self.engine = PostingEngine(db, self.repo)
        self.accounts = AccountRegistry(self.engine, self.repo)
        self.budgets = BudgetRegistry(self.engine, self.repo)
        self.scheduler = RecurrenceScheduler(self.engine, self.repo)
        self.staging = StagingArea(self.engine, self.repo)
        self.snapshots = SnapshotService(self.engine, self.repo)

    @classmethod
    async def open(cls, db: SQLiteAdapter) -> "Ledger":
        """스키마 초기화 후 원장 생성"""
        await init_ledger_schema(db)
        return cls(db)
