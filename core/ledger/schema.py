"""
원장 스키마 초기화

CLI / 테스트 시작 시 자동으로 원장 테이블 생성.
CREATE IF NOT EXISTS 패턴으로 여러 번 호출해도 안전하게 동작.
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


async def init_ledger_schema(db: "SQLiteAdapter") -> None:
    """원장 스키마 초기화

    모든 엔티티는 컬렉션별 키-레코드 형태로 ledger_record 하나에 저장.
    payload_json은 core.ledger.records 스키마로 검증된 JSON.

    Args:
        db: SQLiteAdapter 인스턴스
    """
    await db.execute("""
        CREATE TABLE IF NOT EXISTS ledger_record (
            collection       TEXT NOT NULL,
            record_id        TEXT NOT NULL,
            payload_json     TEXT NOT NULL,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now')),
            PRIMARY KEY (collection, record_id)
        )
    """)

    await db.execute(
        "CREATE INDEX IF NOT EXISTS idx_ledger_record_collection ON ledger_record(collection)"
    )

    await db.commit()
    logger.info("원장 스키마 초기화 완료")
