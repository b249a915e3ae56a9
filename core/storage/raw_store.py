"""
RawStore - 원천 데이터 저장소

전체거래내역, 매매일지, 해외매매일지 세 원천 데이터를 보관한다.
수입 시 세 테이블을 한 트랜잭션에서 전체 교체하며, 이후 행은 변경하지 않는다.
"""

import logging
from typing import Iterable

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.models import (
    OverseasTradeLogEntry,
    RawBatch,
    RawTransaction,
    TradeLogEntry,
)
from core.storage.columns import dec, iso, parse_dec, parse_iso

logger = logging.getLogger(__name__)


_RAW_TX_COLUMNS = (
    "account, transaction_date, sequence_no, original_no, type_code, name, "
    "quantity, unit_price, amount, deposit_withdrawal_amount, balance, fee, tax, "
    "foreign_amount, foreign_dw_amount, foreign_balance, currency_code, "
    "counterparty_agency, counterparty_name, counterparty_account"
)

_TRADE_LOG_COLUMNS = (
    "account, trade_date, name, buy_quantity, buy_price, buy_amount, "
    "sell_quantity, sell_price, sell_amount, trade_fee, profit_loss, yield_rate"
)

_OVERSEAS_LOG_COLUMNS = (
    "account, trade_date, stock_code, name, currency, balance_quantity, "
    "buy_avg_exchange_rate, trade_exchange_rate, buy_quantity, buy_price, "
    "buy_amount, krw_buy_amount, sell_quantity, sell_price, sell_amount, "
    "krw_sell_amount, fee, tax, krw_total_cost, original_buy_avg_price, "
    "trading_profit, krw_trading_profit, exchange_profit, "
    "total_evaluation_profit, yield_rate, converted_yield_rate"
)


def _placeholders(columns: str) -> str:
    return ", ".join("?" for _ in columns.split(","))


class RawStore:
    """원천 데이터 저장소

    Args:
        db: SQLiteAdapter 인스턴스

    사용 예시:
    ```python
    store = RawStore(db)
    await store.replace_all(transactions, trade_logs, overseas_logs)
    batch = await store.load_batch()
    ```
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def replace_all(
        self,
        transactions: Iterable[RawTransaction],
        trade_logs: Iterable[TradeLogEntry],
        overseas_trade_logs: Iterable[OverseasTradeLogEntry],
    ) -> tuple[int, int, int]:
        """세 원천 데이터 전체 교체 (단일 트랜잭션)

        Returns:
            (원장 행 수, 매매일지 행 수, 해외매매일지 행 수)
        """
        tx_rows = [_raw_tx_params(tx) for tx in transactions]
        log_rows = [_trade_log_params(entry) for entry in trade_logs]
        overseas_rows = [_overseas_log_params(entry) for entry in overseas_trade_logs]

        async with self.db.transaction() as conn:
            await conn.execute("DELETE FROM raw_transactions")
            await conn.execute("DELETE FROM raw_trade_logs")
            await conn.execute("DELETE FROM raw_overseas_trade_logs")

            await conn.executemany(
                f"INSERT INTO raw_transactions ({_RAW_TX_COLUMNS}) "
                f"VALUES ({_placeholders(_RAW_TX_COLUMNS)})",
                tx_rows,
            )
            # 같은 키가 중복되면 마지막 행 우선
            await conn.executemany(
                f"INSERT OR REPLACE INTO raw_trade_logs ({_TRADE_LOG_COLUMNS}) "
                f"VALUES ({_placeholders(_TRADE_LOG_COLUMNS)})",
                log_rows,
            )
            await conn.executemany(
                f"INSERT OR REPLACE INTO raw_overseas_trade_logs ({_OVERSEAS_LOG_COLUMNS}) "
                f"VALUES ({_placeholders(_OVERSEAS_LOG_COLUMNS)})",
                overseas_rows,
            )

        logger.info(
            f"원천 데이터 교체 완료: 원장 {len(tx_rows)}건, "
            f"매매일지 {len(log_rows)}건, 해외매매일지 {len(overseas_rows)}건"
        )
        return len(tx_rows), len(log_rows), len(overseas_rows)

    async def load_transactions(self) -> list[RawTransaction]:
        """원장 전체 조회 (수입 순서)"""
        rows = await self.db.fetchall(
            f"SELECT {_RAW_TX_COLUMNS} FROM raw_transactions ORDER BY id"
        )
        return [_row_to_raw_tx(row) for row in rows]

    async def load_trade_logs(self) -> list[TradeLogEntry]:
        """국내 매매일지 전체 조회"""
        rows = await self.db.fetchall(
            f"SELECT {_TRADE_LOG_COLUMNS} FROM raw_trade_logs "
            "ORDER BY account, trade_date, name"
        )
        return [_row_to_trade_log(row) for row in rows]

    async def load_overseas_trade_logs(self) -> list[OverseasTradeLogEntry]:
        """해외 매매일지 전체 조회"""
        rows = await self.db.fetchall(
            f"SELECT {_OVERSEAS_LOG_COLUMNS} FROM raw_overseas_trade_logs "
            "ORDER BY account, trade_date, stock_code"
        )
        return [_row_to_overseas_log(row) for row in rows]

    async def load_batch(self) -> RawBatch:
        """원천 데이터 전체 스냅샷 조회 (종목 마스터 제외)"""
        return RawBatch(
            transactions=tuple(await self.load_transactions()),
            trade_logs=tuple(await self.load_trade_logs()),
            overseas_trade_logs=tuple(await self.load_overseas_trade_logs()),
        )


# -------------------------------------------------------------------------
# 행 변환
# -------------------------------------------------------------------------


def _raw_tx_params(tx: RawTransaction) -> tuple:
    return (
        tx.account,
        iso(tx.transaction_date),
        tx.sequence_no,
        tx.original_no,
        tx.type_code,
        tx.name,
        dec(tx.quantity),
        dec(tx.unit_price),
        dec(tx.amount),
        dec(tx.deposit_withdrawal_amount),
        dec(tx.balance),
        dec(tx.fee),
        dec(tx.tax),
        dec(tx.foreign_amount),
        dec(tx.foreign_dw_amount),
        dec(tx.foreign_balance),
        tx.currency_code,
        tx.counterparty_agency,
        tx.counterparty_name,
        tx.counterparty_account,
    )


def _row_to_raw_tx(row: tuple) -> RawTransaction:
    return RawTransaction(
        account=row[0],
        transaction_date=parse_iso(row[1]),
        sequence_no=int(row[2]),
        original_no=row[3],
        type_code=row[4],
        name=row[5],
        quantity=parse_dec(row[6]),
        unit_price=parse_dec(row[7]),
        amount=parse_dec(row[8]),
        deposit_withdrawal_amount=parse_dec(row[9]),
        balance=parse_dec(row[10]),
        fee=parse_dec(row[11]),
        tax=parse_dec(row[12]),
        foreign_amount=parse_dec(row[13]),
        foreign_dw_amount=parse_dec(row[14]),
        foreign_balance=parse_dec(row[15]),
        currency_code=row[16],
        counterparty_agency=row[17],
        counterparty_name=row[18],
        counterparty_account=row[19],
    )


def _trade_log_params(entry: TradeLogEntry) -> tuple:
    return (
        entry.account,
        iso(entry.trade_date),
        entry.name,
        dec(entry.buy_quantity),
        dec(entry.buy_price),
        dec(entry.buy_amount),
        dec(entry.sell_quantity),
        dec(entry.sell_price),
        dec(entry.sell_amount),
        dec(entry.trade_fee),
        dec(entry.profit_loss),
        dec(entry.yield_rate),
    )


def _row_to_trade_log(row: tuple) -> TradeLogEntry:
    return TradeLogEntry(
        account=row[0],
        trade_date=parse_iso(row[1]),
        name=row[2],
        buy_quantity=parse_dec(row[3]),
        buy_price=parse_dec(row[4]),
        buy_amount=parse_dec(row[5]),
        sell_quantity=parse_dec(row[6]),
        sell_price=parse_dec(row[7]),
        sell_amount=parse_dec(row[8]),
        trade_fee=parse_dec(row[9]),
        profit_loss=parse_dec(row[10]),
        yield_rate=parse_dec(row[11]),
    )


_OVERSEAS_DECIMAL_FIELDS = (
    "balance_quantity",
    "buy_avg_exchange_rate",
    "trade_exchange_rate",
    "buy_quantity",
    "buy_price",
    "buy_amount",
    "krw_buy_amount",
    "sell_quantity",
    "sell_price",
    "sell_amount",
    "krw_sell_amount",
    "fee",
    "tax",
    "krw_total_cost",
    "original_buy_avg_price",
    "trading_profit",
    "krw_trading_profit",
    "exchange_profit",
    "total_evaluation_profit",
    "yield_rate",
    "converted_yield_rate",
)


def _overseas_log_params(entry: OverseasTradeLogEntry) -> tuple:
    head = (entry.account, iso(entry.trade_date), entry.stock_code, entry.name, entry.currency)
    return head + tuple(dec(getattr(entry, name)) for name in _OVERSEAS_DECIMAL_FIELDS)


def _row_to_overseas_log(row: tuple) -> OverseasTradeLogEntry:
    values = {
        name: parse_dec(row[5 + index])
        for index, name in enumerate(_OVERSEAS_DECIMAL_FIELDS)
    }
    return OverseasTradeLogEntry(
        account=row[0],
        trade_date=parse_iso(row[1]),
        stock_code=row[2],
        name=row[3],
        currency=row[4],
        **values,
    )
