"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리. 장부 엔진들이 하나의 연결을 공유.

쓰기는 프로세스 내에서는 asyncio.Lock으로, 프로세스 간에는 SQLite 쓰기 락
(BEGIN IMMEDIATE + busy_timeout)으로 직렬화. 연결은 autocommit 모드이며
여러 문장에 걸친 쓰기는 모두 transaction()을 거침.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

from core.constants import Paths

logger = logging.getLogger(__name__)


def get_db_path(db_path: Path | str | None = None) -> Path:
    """Ledger DB 경로 반환

    Args:
        db_path: 명시 경로 (기본: Paths.LEDGER_DB)

    Returns:
        DB 파일 경로
    """
    if db_path is None:
        return Paths.LEDGER_DB
    return Path(db_path)


async def create_connection(db_path: Path | str) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)

    Args:
        db_path: DB 파일 경로

    Returns:
        aiosqlite 연결
    """
    db_path_str = str(db_path)

    # 디렉토리가 없으면 생성
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    # isolation_level=None: 트랜잭션은 명시적으로 시작
    conn = await aiosqlite.connect(db_path_str, isolation_level=None)

    await conn.execute("PRAGMA journal_mode=WAL")

    # 다른 프로세스가 쓰기 락을 잡고 있으면 최대 30초 대기
    await conn.execute("PRAGMA busy_timeout=30000")

    await conn.execute("PRAGMA foreign_keys=ON")

    logger.info(
        "SQLite connection created",
        extra={"db_path": db_path_str},
    )

    return conn


class SQLiteAdapter:
    """SQLite 어댑터

    연결 관리 및 트랜잭션/스냅샷 컨텍스트 매니저 제공.

    Args:
        db_path: DB 파일 경로

    사용 예:
    ```python
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()

    async with adapter.transaction():
        await adapter.execute("INSERT INTO ...")

    await adapter.close()
    ```
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()
        self._owner: asyncio.Task[Any] | None = None

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        self._conn = await create_connection(self.db_path)

    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite connection closed")

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Not connected to database")
        return self._conn

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행"""
        conn = self._require_conn()

        if parameters:
            return await conn.execute(sql, parameters)
        return await conn.execute(sql)

    async def executemany(
        self,
        sql: str,
        parameters: list[tuple[Any, ...]],
    ) -> aiosqlite.Cursor:
        """SQL 다중 실행"""
        conn = self._require_conn()

        return await conn.executemany(sql, parameters)

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회"""
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    async def fetchone_dict(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> dict[str, Any] | None:
        """단일 행을 컬럼명 dict로 조회"""
        cursor = await self.execute(sql, parameters)
        row = await cursor.fetchone()
        if row is None:
            return None
        columns = [desc[0] for desc in cursor.description]
        return dict(zip(columns, row))

    async def fetchall_dict(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[dict[str, Any]]:
        """전체 행을 컬럼명 dict 목록으로 조회"""
        cursor = await self.execute(sql, parameters)
        rows = await cursor.fetchall()
        columns = [desc[0] for desc in cursor.description]
        return [dict(zip(columns, row)) for row in rows]

    async def commit(self) -> None:
        """커밋"""
        if self._conn is not None:
            await self._conn.commit()

    async def rollback(self) -> None:
        """롤백"""
        if self._conn is not None:
            await self._conn.rollback()

    @property
    def in_transaction(self) -> bool:
        """현재 task가 열린 트랜잭션을 소유 중인지 여부"""
        return self._owner is not None and self._owner is asyncio.current_task()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """트랜잭션 컨텍스트 매니저

        성공 시 커밋, 예외(취소 포함) 발생 시 롤백.
        이미 트랜잭션을 소유한 task의 중첩 호출은 새로 열지 않고 합류.

        사용 예:
        ```python
        async with adapter.transaction() as conn:
            await conn.execute("INSERT INTO ...")
        ```
        """
        conn = self._require_conn()

        if self.in_transaction:
            yield conn
            return

        async with self._lock:
            self._owner = asyncio.current_task()
            try:
                await conn.execute("BEGIN IMMEDIATE")
                try:
                    yield conn
                except BaseException:
                    await conn.rollback()
                    raise
                await conn.commit()
            finally:
                self._owner = None

    @asynccontextmanager
    async def snapshot(self) -> AsyncIterator[aiosqlite.Connection]:
        """일관된 읽기 컨텍스트

        writer 락 아래에서 deferred 읽기 트랜잭션을 열어 여러 쿼리에 걸친
        읽기가 다른 코루틴의 미커밋 행을 보지 않도록 함.
        """
        conn = self._require_conn()

        if self.in_transaction:
            yield conn
            return

        async with self._lock:
            self._owner = asyncio.current_task()
            try:
                await conn.execute("BEGIN")
                try:
                    yield conn
                finally:
                    await conn.rollback()
            finally:
                self._owner = None

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
