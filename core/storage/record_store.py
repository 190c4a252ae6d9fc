"""
RecordStore - 키-레코드 저장소

ledger_record 테이블을 통해 컬렉션별 레코드를 저장/조회.
get / put / delete / list_all (+ 컬렉션 단위 clear)만 제공하는 범용 저장소.

주의: 커밋하지 않는다. 여러 레코드를 묶는 작업은
호출자가 SQLiteAdapter.transaction() 안에서 실행해야 한다.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.types import Collection

logger = logging.getLogger(__name__)


class RecordStore:
    """키-레코드 저장소

    Args:
        db: SQLiteAdapter 인스턴스

    사용 예시:
    ```python
    async with SQLiteAdapter(db_path) as db:
        await init_ledger_schema(db)
        store = RecordStore(db)

        async with db.transaction():
            await store.put(Collection.ACCOUNTS, "acc:1", {"id": "acc:1", ...})

        payload = await store.get(Collection.ACCOUNTS, "acc:1")
    ```
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def get(self, collection: Collection, key: str) -> dict[str, Any] | None:
        """레코드 단건 조회

        Returns:
            payload dict (없으면 None)
        """
        row = await self.db.fetchone(
            """
            SELECT payload_json FROM ledger_record
            WHERE collection = ? AND record_id = ?
            """,
            (collection.value, key),
        )
        if row is None:
            return None
        return json.loads(row[0])

    async def put(self, collection: Collection, key: str, payload: dict[str, Any]) -> None:
        """레코드 저장 (UPSERT)"""
        now = datetime.now(timezone.utc).isoformat()
        await self.db.execute(
            """
            INSERT INTO ledger_record (collection, record_id, payload_json, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(collection, record_id) DO UPDATE SET
                payload_json = excluded.payload_json,
                updated_at = excluded.updated_at
            """,
            (collection.value, key, json.dumps(payload, ensure_ascii=False), now, now),
        )

    async def delete(self, collection: Collection, key: str) -> bool:
        """레코드 삭제

        Returns:
            삭제된 레코드가 있었는지 여부
        """
        cursor = await self.db.execute(
            "DELETE FROM ledger_record WHERE collection = ? AND record_id = ?",
            (collection.value, key),
        )
        return cursor.rowcount > 0

    async def list_all(self, collection: Collection) -> list[dict[str, Any]]:
        """컬렉션 전체 조회 (생성 순)"""
        rows = await self.db.fetchall(
            """
            SELECT payload_json FROM ledger_record
            WHERE collection = ?
            ORDER BY created_at, rowid
            """,
            (collection.value,),
        )
        return [json.loads(row[0]) for row in rows]

    async def clear(self, collection: Collection) -> int:
        """컬렉션 전체 삭제

        Returns:
            삭제된 레코드 수
        """
        cursor = await self.db.execute(
            "DELETE FROM ledger_record WHERE collection = ?",
            (collection.value,),
        )
        logger.debug(f"Cleared collection {collection.value}: {cursor.rowcount} record(s)")
        return cursor.rowcount
