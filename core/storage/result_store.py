"""
ResultStore - 정합 결과 저장소

보정 거래내역, 계좌별 종목 현황, 계좌 현황을 한 트랜잭션에서 전체 교체한다.
실패/취소 시 롤백되어 이전 실행 결과가 그대로 남는다.
"""

import json
import logging

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.models import AccountStatus, AccountStockStatus, CorrectedTransaction
from core.domain.results import ReconciliationResult
from core.types import TransactionKind
from core.storage.columns import (
    dec,
    dec_or_none,
    iso,
    parse_dec,
    parse_dec_or_none,
    parse_iso,
)

logger = logging.getLogger(__name__)


_TX_COLUMNS = (
    "account, trade_date, settlement_date, sequence_no, kind, type_code, "
    "raw_type_code, name, raw_name, stock_code, unit_price, quantity, fee, tax, "
    "amount, currency_code, fx_rate, krw_amount, profit_loss, yield_rate"
)

_STOCK_STATUS_COLUMNS = (
    "account, stock_code, stock_name, quantity, average_price, investment_amount, "
    "realized_profit_loss, realized_profit_loss_rate, currency_code, sale_cost"
)

_ACCOUNT_STATUS_COLUMNS = (
    "account, total_deposit, total_withdrawal, principal, operating_funds, "
    "realized_profit_loss, realized_profit_loss_rate, deposits_json"
)


class ResultStore:
    """정합 결과 저장소

    Args:
        db: SQLiteAdapter 인스턴스
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def replace_all(self, result: ReconciliationResult) -> None:
        """정합 결과 전체 교체 (단일 트랜잭션)

        Raises:
            aiosqlite.Error: 저장 실패 (롤백 후 전파)
        """
        tx_rows = [_tx_params(tx) for tx in result.transactions]
        stock_rows = [_stock_status_params(s) for s in result.stock_statuses]
        account_rows = [_account_status_params(a) for a in result.account_statuses]

        async with self.db.transaction() as conn:
            await conn.execute("DELETE FROM corrected_transactions")
            await conn.execute("DELETE FROM account_stock_statuses")
            await conn.execute("DELETE FROM account_statuses")

            await conn.executemany(
                f"INSERT INTO corrected_transactions ({_TX_COLUMNS}) "
                f"VALUES ({', '.join('?' * 20)})",
                tx_rows,
            )
            await conn.executemany(
                f"INSERT INTO account_stock_statuses ({_STOCK_STATUS_COLUMNS}) "
                f"VALUES ({', '.join('?' * 10)})",
                stock_rows,
            )
            await conn.executemany(
                f"INSERT INTO account_statuses ({_ACCOUNT_STATUS_COLUMNS}) "
                f"VALUES ({', '.join('?' * 8)})",
                account_rows,
            )

        logger.info(
            f"정합 결과 저장 완료: 거래내역 {len(tx_rows)}건, "
            f"종목 현황 {len(stock_rows)}건, 계좌 현황 {len(account_rows)}건"
        )

    async def load_transactions(self, account: str | None = None) -> list[CorrectedTransaction]:
        """보정 거래내역 조회 (매매일자, 거래번호 순)"""
        sql = f"SELECT {_TX_COLUMNS} FROM corrected_transactions"
        params: tuple = ()
        if account is not None:
            sql += " WHERE account = ?"
            params = (account,)
        sql += " ORDER BY trade_date, sequence_no, account, id"

        rows = await self.db.fetchall(sql, params or None)
        return [_row_to_tx(row) for row in rows]

    async def load_stock_statuses(self) -> list[AccountStockStatus]:
        rows = await self.db.fetchall(
            f"SELECT {_STOCK_STATUS_COLUMNS} FROM account_stock_statuses "
            "ORDER BY account, stock_code"
        )
        return [_row_to_stock_status(row) for row in rows]

    async def load_account_statuses(self) -> list[AccountStatus]:
        rows = await self.db.fetchall(
            f"SELECT {_ACCOUNT_STATUS_COLUMNS} FROM account_statuses ORDER BY rowid"
        )
        return [_row_to_account_status(row) for row in rows]

    async def load_result(self) -> ReconciliationResult:
        """마지막 정합 결과 조회 (보고서 제외)"""
        return ReconciliationResult(
            transactions=tuple(await self.load_transactions()),
            stock_statuses=tuple(await self.load_stock_statuses()),
            account_statuses=tuple(await self.load_account_statuses()),
        )


# -------------------------------------------------------------------------
# 행 변환
# -------------------------------------------------------------------------


def _tx_params(tx: CorrectedTransaction) -> tuple:
    return (
        tx.account,
        iso(tx.trade_date),
        iso(tx.settlement_date),
        tx.sequence_no,
        tx.kind.value,
        tx.type_code,
        tx.raw_type_code,
        tx.name,
        tx.raw_name,
        tx.stock_code,
        dec(tx.unit_price),
        dec(tx.quantity),
        dec(tx.fee),
        dec(tx.tax),
        dec(tx.amount),
        tx.currency_code,
        dec(tx.fx_rate),
        dec(tx.krw_amount),
        dec_or_none(tx.profit_loss),
        dec_or_none(tx.yield_rate),
    )


def _row_to_tx(row: tuple) -> CorrectedTransaction:
    return CorrectedTransaction(
        account=row[0],
        trade_date=parse_iso(row[1]),
        settlement_date=parse_iso(row[2]),
        sequence_no=int(row[3]),
        kind=TransactionKind(row[4]),
        type_code=row[5],
        raw_type_code=row[6],
        name=row[7],
        raw_name=row[8],
        stock_code=row[9],
        unit_price=parse_dec(row[10]),
        quantity=parse_dec(row[11]),
        fee=parse_dec(row[12]),
        tax=parse_dec(row[13]),
        amount=parse_dec(row[14]),
        currency_code=row[15],
        fx_rate=parse_dec(row[16]),
        krw_amount=parse_dec(row[17]),
        profit_loss=parse_dec_or_none(row[18]),
        yield_rate=parse_dec_or_none(row[19]),
    )


def _stock_status_params(status: AccountStockStatus) -> tuple:
    return (
        status.account,
        status.stock_code,
        status.stock_name,
        dec(status.quantity),
        dec(status.average_price),
        dec(status.investment_amount),
        dec(status.realized_profit_loss),
        dec(status.realized_profit_loss_rate),
        status.currency_code,
        dec(status.sale_cost),
    )


def _row_to_stock_status(row: tuple) -> AccountStockStatus:
    return AccountStockStatus(
        account=row[0],
        stock_code=row[1],
        stock_name=row[2],
        quantity=parse_dec(row[3]),
        average_price=parse_dec(row[4]),
        investment_amount=parse_dec(row[5]),
        realized_profit_loss=parse_dec(row[6]),
        realized_profit_loss_rate=parse_dec(row[7]),
        currency_code=row[8],
        sale_cost=parse_dec(row[9]),
    )


def _account_status_params(status: AccountStatus) -> tuple:
    deposits_json = json.dumps(
        {currency: str(amount) for currency, amount in sorted(status.deposits.items())},
        ensure_ascii=False,
    )
    return (
        status.account,
        dec(status.total_deposit),
        dec(status.total_withdrawal),
        dec(status.principal),
        dec(status.operating_funds),
        dec(status.realized_profit_loss),
        dec(status.realized_profit_loss_rate),
        deposits_json,
    )


def _row_to_account_status(row: tuple) -> AccountStatus:
    deposits = {currency: parse_dec(amount) for currency, amount in json.loads(row[7]).items()}
    return AccountStatus(
        account=row[0],
        total_deposit=parse_dec(row[1]),
        total_withdrawal=parse_dec(row[2]),
        principal=parse_dec(row[3]),
        operating_funds=parse_dec(row[4]),
        realized_profit_loss=parse_dec(row[5]),
        realized_profit_loss_rate=parse_dec(row[6]),
        deposits=deposits,
    )
