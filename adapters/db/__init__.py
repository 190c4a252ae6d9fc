"""
데이터베이스 어댑터

원장 DB(SQLite, WAL 모드) 연결과 트랜잭션 경계 관리.
"""

from adapters.db.sqlite_adapter import (
    MEMORY_DB,
    SQLiteAdapter,
    create_connection,
    get_db_path,
)

__all__ = [
    "MEMORY_DB",
    "SQLiteAdapter",
    "create_connection",
    "get_db_path",
]
