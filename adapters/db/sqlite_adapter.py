"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
CLI 수입/정합 작업과 조회 작업이 동시에 접근 가능하도록 설정.

주의:
- 금액/수량은 Decimal 정밀도 보존을 위해 TEXT로 저장
- 일자는 ISO 형식(YYYY-MM-DD) TEXT로 저장
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

logger = logging.getLogger(__name__)


async def create_connection(
    db_path: Path | str,
    readonly: bool = False,
) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부

    Returns:
        aiosqlite 연결 객체
    """
    db_path_str = str(db_path)

    if readonly:
        conn = await aiosqlite.connect(f"file:{db_path_str}?mode=ro", uri=True)
    else:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(db_path_str)
        await conn.execute("PRAGMA journal_mode=WAL")

    await conn.execute("PRAGMA busy_timeout=30000")  # 30초 대기

    logger.info(
        "SQLite 연결 생성",
        extra={"db_path": db_path_str, "readonly": readonly},
    )

    return conn


class SQLiteAdapter:
    """SQLite 어댑터

    WAL 모드로 SQLite 연결 관리.
    트랜잭션 컨텍스트 매니저 제공.

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부 (조회 전용 CLI 명령용)

    사용 예시:
    ```python
    async with SQLiteAdapter(db_path) as adapter:
        await init_schema(adapter)
        async with adapter.transaction() as conn:
            await conn.execute("DELETE FROM corrected_transactions")
    ```
    """

    def __init__(self, db_path: Path | str, readonly: bool = False):
        self.db_path = Path(db_path)
        self.readonly = readonly
        self._conn: aiosqlite.Connection | None = None

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Not connected to database")
        return self._conn

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        self._conn = await create_connection(self.db_path, self.readonly)

    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite 연결 종료")

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

    async def commit(self) -> None:
        """커밋"""
        if self._conn is not None:
            await self._conn.commit()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """트랜잭션 컨텍스트 매니저

        성공 시 자동 커밋, 예외(취소 포함) 시 자동 롤백.
        전체 교체 쓰기는 반드시 이 안에서 수행해야 중간 상태가 노출되지 않는다.
        """
        conn = self._require_conn()

        try:
            yield conn
            await conn.commit()
        except BaseException:
            await conn.rollback()
            raise

    async def table_exists(self, table_name: str) -> bool:
        """테이블 존재 여부 확인"""
        result = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return result is not None

    async def count_rows(self, table_name: str) -> int:
        """테이블 행 수 조회 (내부 테이블명 전용)"""
        if table_name not in ALL_TABLES:
            raise ValueError(f"알 수 없는 테이블: {table_name}")
        row = await self.fetchone(f"SELECT COUNT(*) FROM {table_name}")
        return int(row[0]) if row else 0

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


# =========================================================================
# 스키마
# =========================================================================

RAW_TABLES = ("raw_transactions", "raw_trade_logs", "raw_overseas_trade_logs")
MASTER_TABLES = ("stocks", "portfolio_targets")
RESULT_TABLES = ("corrected_transactions", "account_stock_statuses", "account_statuses")
ALL_TABLES = RAW_TABLES + MASTER_TABLES + RESULT_TABLES

_SCHEMA: tuple[str, ...] = (
    # 전체거래내역 원장
    """
    CREATE TABLE IF NOT EXISTS raw_transactions (
        id                        INTEGER PRIMARY KEY AUTOINCREMENT,
        account                   TEXT NOT NULL,
        transaction_date          TEXT NOT NULL,
        sequence_no               INTEGER NOT NULL,
        original_no               TEXT NOT NULL DEFAULT '',
        type_code                 TEXT NOT NULL,
        name                      TEXT NOT NULL DEFAULT '',
        quantity                  TEXT NOT NULL DEFAULT '0',
        unit_price                TEXT NOT NULL DEFAULT '0',
        amount                    TEXT NOT NULL DEFAULT '0',
        deposit_withdrawal_amount TEXT NOT NULL DEFAULT '0',
        balance                   TEXT NOT NULL DEFAULT '0',
        fee                       TEXT NOT NULL DEFAULT '0',
        tax                       TEXT NOT NULL DEFAULT '0',
        foreign_amount            TEXT NOT NULL DEFAULT '0',
        foreign_dw_amount         TEXT NOT NULL DEFAULT '0',
        foreign_balance           TEXT NOT NULL DEFAULT '0',
        currency_code             TEXT NOT NULL DEFAULT '',
        counterparty_agency       TEXT NOT NULL DEFAULT '',
        counterparty_name         TEXT NOT NULL DEFAULT '',
        counterparty_account      TEXT NOT NULL DEFAULT ''
    )
    """,
    # 국내 매매일지
    """
    CREATE TABLE IF NOT EXISTS raw_trade_logs (
        account        TEXT NOT NULL,
        trade_date     TEXT NOT NULL,
        name           TEXT NOT NULL,
        buy_quantity   TEXT NOT NULL DEFAULT '0',
        buy_price      TEXT NOT NULL DEFAULT '0',
        buy_amount     TEXT NOT NULL DEFAULT '0',
        sell_quantity  TEXT NOT NULL DEFAULT '0',
        sell_price     TEXT NOT NULL DEFAULT '0',
        sell_amount    TEXT NOT NULL DEFAULT '0',
        trade_fee      TEXT NOT NULL DEFAULT '0',
        profit_loss    TEXT NOT NULL DEFAULT '0',
        yield_rate     TEXT NOT NULL DEFAULT '0',
        PRIMARY KEY (account, trade_date, name)
    )
    """,
    # 해외 매매일지
    """
    CREATE TABLE IF NOT EXISTS raw_overseas_trade_logs (
        account                 TEXT NOT NULL,
        trade_date              TEXT NOT NULL,
        stock_code              TEXT NOT NULL,
        name                    TEXT NOT NULL DEFAULT '',
        currency                TEXT NOT NULL DEFAULT 'USD',
        balance_quantity        TEXT NOT NULL DEFAULT '0',
        buy_avg_exchange_rate   TEXT NOT NULL DEFAULT '0',
        trade_exchange_rate     TEXT NOT NULL DEFAULT '0',
        buy_quantity            TEXT NOT NULL DEFAULT '0',
        buy_price               TEXT NOT NULL DEFAULT '0',
        buy_amount              TEXT NOT NULL DEFAULT '0',
        krw_buy_amount          TEXT NOT NULL DEFAULT '0',
        sell_quantity           TEXT NOT NULL DEFAULT '0',
        sell_price              TEXT NOT NULL DEFAULT '0',
        sell_amount             TEXT NOT NULL DEFAULT '0',
        krw_sell_amount         TEXT NOT NULL DEFAULT '0',
        fee                     TEXT NOT NULL DEFAULT '0',
        tax                     TEXT NOT NULL DEFAULT '0',
        krw_total_cost          TEXT NOT NULL DEFAULT '0',
        original_buy_avg_price  TEXT NOT NULL DEFAULT '0',
        trading_profit          TEXT NOT NULL DEFAULT '0',
        krw_trading_profit      TEXT NOT NULL DEFAULT '0',
        exchange_profit         TEXT NOT NULL DEFAULT '0',
        total_evaluation_profit TEXT NOT NULL DEFAULT '0',
        yield_rate              TEXT NOT NULL DEFAULT '0',
        converted_yield_rate    TEXT NOT NULL DEFAULT '0',
        PRIMARY KEY (account, trade_date, stock_code)
    )
    """,
    # 종목 마스터
    """
    CREATE TABLE IF NOT EXISTS stocks (
        code           TEXT PRIMARY KEY,
        name           TEXT NOT NULL,
        short_name     TEXT NOT NULL DEFAULT '',
        stock_type     TEXT NOT NULL DEFAULT 'KOREA',
        market_type    TEXT NOT NULL DEFAULT 'KOREA',
        currency       TEXT NOT NULL DEFAULT 'KRW',
        current_price  TEXT NOT NULL DEFAULT '0',
        updated_at     TEXT NOT NULL DEFAULT (datetime('now'))
    )
    """,
    # 포트폴리오 목표 비중
    """
    CREATE TABLE IF NOT EXISTS portfolio_targets (
        stock_code     TEXT PRIMARY KEY,
        target_weight  TEXT NOT NULL
    )
    """,
    # 보정 거래내역
    """
    CREATE TABLE IF NOT EXISTS corrected_transactions (
        id               INTEGER PRIMARY KEY AUTOINCREMENT,
        account          TEXT NOT NULL,
        trade_date       TEXT NOT NULL,
        settlement_date  TEXT NOT NULL,
        sequence_no      INTEGER NOT NULL,
        kind             TEXT NOT NULL,
        type_code        TEXT NOT NULL,
        raw_type_code    TEXT NOT NULL,
        name             TEXT NOT NULL,
        raw_name         TEXT NOT NULL,
        stock_code       TEXT NOT NULL DEFAULT '',
        unit_price       TEXT NOT NULL,
        quantity         TEXT NOT NULL,
        fee              TEXT NOT NULL,
        tax              TEXT NOT NULL,
        amount           TEXT NOT NULL,
        currency_code    TEXT NOT NULL,
        fx_rate          TEXT NOT NULL,
        krw_amount       TEXT NOT NULL,
        profit_loss      TEXT,
        yield_rate       TEXT
    )
    """,
    # 계좌별 종목 현황
    """
    CREATE TABLE IF NOT EXISTS account_stock_statuses (
        account                    TEXT NOT NULL,
        stock_code                 TEXT NOT NULL,
        stock_name                 TEXT NOT NULL,
        quantity                   TEXT NOT NULL,
        average_price              TEXT NOT NULL,
        investment_amount          TEXT NOT NULL,
        realized_profit_loss       TEXT NOT NULL,
        realized_profit_loss_rate  TEXT NOT NULL,
        currency_code              TEXT NOT NULL,
        sale_cost                  TEXT NOT NULL DEFAULT '0',
        PRIMARY KEY (account, stock_code)
    )
    """,
    # 계좌 현황
    """
    CREATE TABLE IF NOT EXISTS account_statuses (
        account                    TEXT PRIMARY KEY,
        total_deposit              TEXT NOT NULL,
        total_withdrawal           TEXT NOT NULL,
        principal                  TEXT NOT NULL,
        operating_funds            TEXT NOT NULL,
        realized_profit_loss       TEXT NOT NULL,
        realized_profit_loss_rate  TEXT NOT NULL,
        deposits_json              TEXT NOT NULL DEFAULT '{}'
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS ix_raw_transactions_account_date
    ON raw_transactions(account, transaction_date, sequence_no)
    """,
    """
    CREATE INDEX IF NOT EXISTS ix_corrected_transactions_order
    ON corrected_transactions(account, trade_date, sequence_no)
    """,
)


async def init_schema(adapter: SQLiteAdapter) -> None:
    """스키마 초기화 (테이블 생성)

    Args:
        adapter: 연결된 SQLiteAdapter

    이미 존재하는 테이블은 건드리지 않는다.
    """
    for statement in _SCHEMA:
        await adapter.execute(statement)

    await adapter.commit()

    logger.info("스키마 초기화 완료")
