"""
SQLite 어댑터

원장 DB 하나에 대한 단일 aiosqlite 연결.
쓰기는 transaction() 경계 안에서만 커밋/롤백되고,
개별 execute는 커밋하지 않는다.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

from core.config.loader import LedgerSettings, load_settings

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"

# 연결 직후 적용하는 PRAGMA
CONNECTION_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA busy_timeout=30000",  # 30초 대기
    "PRAGMA foreign_keys=ON",
)


def get_db_path(settings: LedgerSettings | None = None) -> Path:
    """원장 DB 경로

    Args:
        settings: 원장 설정 (None이면 settings.yaml / 기본값)
    """
    if settings is None:
        settings = load_settings()
    return settings.db_path


async def create_connection(db_path: Path | str) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)

    파일 DB는 상위 디렉토리를 만든 뒤 연결한다.
    ":memory:"는 연결마다 독립된 DB (테스트용).
    """
    target = str(db_path)
    if target != MEMORY_DB:
        Path(target).parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(target)
    for pragma in CONNECTION_PRAGMAS:
        await conn.execute(pragma)

    logger.info("원장 DB 연결", extra={"db_path": target})
    return conn


class SQLiteAdapter:
    """원장 DB 어댑터

    Args:
        db_path: DB 파일 경로 또는 ":memory:"

    사용 예시:
    ```python
    async with SQLiteAdapter(settings.db_path) as db:
        await init_ledger_schema(db)

        async with db.transaction():
            await db.execute("INSERT INTO ledger_record ...")
    ```
    """

    def __init__(self, db_path: Path | str):
        self.db_path: Path | str = db_path if str(db_path) == MEMORY_DB else Path(db_path)
        self._conn: aiosqlite.Connection | None = None

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        """커밋되지 않은 쓰기가 있는지 여부"""
        return self._conn is not None and self._conn.in_transaction

    def _connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Not connected to database")
        return self._conn

    async def connect(self) -> None:
        if self._conn is None:
            self._conn = await create_connection(self.db_path)

    async def close(self) -> None:
        if self._conn is None:
            return
        if self._conn.in_transaction:
            logger.warning("커밋되지 않은 쓰기를 버리고 연결 종료", extra={"db_path": str(self.db_path)})
        await self._conn.close()
        self._conn = None
        logger.info("원장 DB 연결 종료")

    # -------------------------------------------------------------------------
    # 쿼리
    # -------------------------------------------------------------------------

    async def execute(self, sql: str, parameters: tuple[Any, ...] = ()) -> aiosqlite.Cursor:
        return await self._connection().execute(sql, parameters)

    async def executemany(self, sql: str, parameters: list[tuple[Any, ...]]) -> aiosqlite.Cursor:
        return await self._connection().executemany(sql, parameters)

    async def fetchone(self, sql: str, parameters: tuple[Any, ...] = ()) -> tuple[Any, ...] | None:
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(self, sql: str, parameters: tuple[Any, ...] = ()) -> list[tuple[Any, ...]]:
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    async def table_exists(self, table_name: str) -> bool:
        row = await self.fetchone(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
            (table_name,),
        )
        return row is not None

    # -------------------------------------------------------------------------
    # 트랜잭션
    # -------------------------------------------------------------------------

    async def commit(self) -> None:
        await self._connection().commit()

    async def rollback(self) -> None:
        await self._connection().rollback()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """쓰기 경계

        블록이 정상 종료하면 커밋, 예외(취소 포함)면 롤백 후 재발생.
        """
        conn = self._connection()
        try:
            yield conn
        except BaseException:
            await conn.rollback()
            raise
        await conn.commit()

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
