"""
pytest 공통 fixture 정의

인메모리 SQLite 원장과 임시 설정 파일.
"""

import tempfile
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import MEMORY_DB, SQLiteAdapter
from core.config.loader import Settings
from core.ledger import Ledger, PostingLine, Transaction
from core.types import LedgerMode


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_settings_file(temp_dir: Path) -> Path:
    """테스트용 settings.yaml 파일 생성"""
    content = """# 테스트용 settings.yaml
ledger:
  mode: simple
  db_path: data/test_ledger.db

logging:
  level: debug
"""
    path = temp_dir / "settings.yaml"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def temp_settings_file_invalid_mode(temp_dir: Path) -> Path:
    """잘못된 모드의 settings.yaml 파일 생성"""
    path = temp_dir / "settings_invalid.yaml"
    path.write_text("ledger:\n  mode: triple_entry\n", encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def reset_settings_singleton():
    """테스트 간 Settings 싱글턴 초기화"""
    Settings.reset()
    yield
    Settings.reset()


@pytest_asyncio.fixture
async def db() -> SQLiteAdapter:
    """인메모리 SQLite 어댑터"""
    adapter = SQLiteAdapter(MEMORY_DB)
    await adapter.connect()
    yield adapter
    await adapter.close()


@pytest_asyncio.fixture
async def ledger(db: SQLiteAdapter) -> Ledger:
    """스키마가 초기화된 원장"""
    return await Ledger.open(db)


@pytest.fixture
def fund(ledger: Ledger):
    """개시 잔액 거래 생성 헬퍼

    단식: [account:+amount]
    복식: [account:+amount, counter:-amount]
    """

    async def _fund(
        account_id: str,
        amount: str,
        mode: LedgerMode = LedgerMode.SIMPLE,
        counter_account_id: str | None = None,
        tx_id: str | None = None,
    ) -> Transaction:
        lines = [PostingLine(account_id, Decimal(amount))]
        if counter_account_id is not None:
            lines.append(PostingLine(counter_account_id, -Decimal(amount)))
        tx = Transaction(
            transaction_id=tx_id or f"tx:open:{account_id}",
            booked_on=date(2024, 1, 1),
            lines=lines,
            description="Opening balance",
        )
        return await ledger.engine.create_transaction(tx, mode)

    return _fund
