"""
DB 어댑터

SQLite WAL 모드 연결 관리.
"""

from adapters.db.sqlite_adapter import (
    SQLiteAdapter,
    get_db_path,
    create_connection,
)

__all__ = [
    "SQLiteAdapter",
    "get_db_path",
    "create_connection",
]
