"""
어댑터 레이어

외부 자원(SQLite DB)과의 연동을 담당.
"""

from adapters.db.sqlite_adapter import SQLiteAdapter

__all__ = [
    "SQLiteAdapter",
]
