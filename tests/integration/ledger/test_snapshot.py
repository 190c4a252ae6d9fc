"""스냅샷 내보내기 / 가져오기 통합 테스트"""

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from adapters.db.sqlite_adapter import MEMORY_DB, SQLiteAdapter
from core.ledger import (
    InvalidRecordError,
    Ledger,
    PostingLine,
    RecurringTemplate,
    StagedTransaction,
)
from core.ledger.snapshot import dump_json, load_json
from core.types import Frequency, LedgerMode


DE = LedgerMode.DOUBLE_ENTRY


async def _populate(ledger: Ledger, fund) -> None:
    await ledger.accounts.open_account("Checking", account_id="C")
    await ledger.accounts.open_account("Equity", account_id="E")
    await ledger.budgets.save_budget("Bills", Decimal("1200"), budget_id="bud:bills")
    await fund("C", "2500.75", DE, counter_account_id="E")
    await ledger.scheduler.save_template(
        RecurringTemplate(
            template_id="rec:phone",
            description="Phone",
            frequency=Frequency.MONTHLY,
            start_date=date(2024, 1, 1),
            lines=[PostingLine("C", Decimal("-45.50")), PostingLine("E", Decimal("45.50"))],
            budget_id="bud:bills",
        ),
        DE,
    )
    await ledger.scheduler.process_due(date(2024, 2, 1), DE)
    await ledger.staging.stage(
        StagedTransaction(
            "s1", "C", date(2024, 2, 3),
            [PostingLine("C", Decimal("-8")), PostingLine("E", Decimal("8"))],
        ),
        DE,
    )


class TestSnapshot:
    """스냅샷 왕복"""

    @pytest.mark.asyncio
    async def test_export_counts(self, ledger: Ledger, fund) -> None:
        await _populate(ledger, fund)

        snapshot = await ledger.snapshots.export_snapshot()

        assert snapshot.counts() == {
            "accounts": 2,
            "budgets": 1,
            "transactions": 2,
            "recurring_transactions": 1,
            "staged_transactions": 1,
        }

    @pytest.mark.asyncio
    async def test_file_roundtrip_into_fresh_ledger(self, ledger: Ledger, fund, tmp_path: Path) -> None:
        """JSON 파일로 옮긴 원장은 잔액 / last_processed / 대기 거래 보존"""
        await _populate(ledger, fund)
        path = dump_json(await ledger.snapshots.export_snapshot(), tmp_path / "backup.json")

        async with SQLiteAdapter(MEMORY_DB) as other_db:
            restored = await Ledger.open(other_db)
            await restored.snapshots.import_snapshot(load_json(path))

            assert (await restored.accounts.get_account("C")).balance == Decimal("2455.25")
            template = await restored.scheduler.get_template("rec:phone")
            assert template.last_processed == date(2024, 2, 1)
            assert [s.staged_id for s in await restored.staging.list_staged("C")] == ["s1"]
            assert all(a.is_consistent for a in await restored.engine.audit_all())

            # 이미 처리된 주기는 다시 생성하지 않음
            report = await restored.scheduler.process_due(date(2024, 2, 1), DE)
            assert report.processed == []

    @pytest.mark.asyncio
    async def test_import_does_not_recompute(self, ledger: Ledger, fund) -> None:
        """가져오기는 레코드를 그대로 기록"""
        await _populate(ledger, fund)
        snapshot = await ledger.snapshots.export_snapshot()
        snapshot.accounts[0].balance = Decimal("1")

        await ledger.snapshots.import_snapshot(snapshot)

        assert (await ledger.accounts.get_account("C")).balance == Decimal("1")

    @pytest.mark.asyncio
    async def test_clear_before(self, ledger: Ledger, fund) -> None:
        """clear_before=True면 기존 데이터 제거 후 기록"""
        await _populate(ledger, fund)
        empty = (await ledger.snapshots.export_snapshot()).model_copy(
            update={"transactions": [], "staged_transactions": [], "recurring_transactions": []}
        )

        await ledger.snapshots.import_snapshot(empty, clear_before=True)

        assert await ledger.repo.list_transactions() == []
        assert await ledger.repo.list_staged() == []
        assert len(await ledger.accounts.list_accounts()) == 2

    @pytest.mark.asyncio
    async def test_load_invalid_file(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text('{"accounts": [{"id": "C"}]}', encoding="utf-8")

        with pytest.raises(InvalidRecordError):
            load_json(path)
