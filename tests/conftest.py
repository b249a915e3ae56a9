"""
pytest 공통 fixture 정의

원장 행 / 매매일지 / 보정 거래내역 팩토리와 임시 SQLite DB 제공.
팩토리는 필요한 필드만 넘기고 나머지는 기본값으로 채운다.
"""

from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, AsyncGenerator, Callable

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.domain.models import (
    CorrectedTransaction,
    OverseasTradeLogEntry,
    RawTransaction,
    Stock,
    TradeLogEntry,
)
from core.domain.transaction_codes import lookup
from core.types import TransactionKind


ACCOUNT = "종합1"


def D(value: str | int) -> Decimal:
    return Decimal(str(value))


# -------------------------------------------------------------------------
# 팩토리
# -------------------------------------------------------------------------


def make_raw(
    type_code: str,
    name: str = "",
    transaction_date: date = date(2024, 1, 5),
    sequence_no: int = 1,
    account: str = ACCOUNT,
    **fields: Any,
) -> RawTransaction:
    """원장 행 생성 (숫자 필드는 문자열/정수도 허용)"""
    for key, value in list(fields.items()):
        if isinstance(value, (int, str)) and key not in (
            "currency_code",
            "original_no",
            "counterparty_agency",
            "counterparty_name",
            "counterparty_account",
        ):
            fields[key] = D(value)
    return RawTransaction(
        account=account,
        transaction_date=transaction_date,
        sequence_no=sequence_no,
        type_code=type_code,
        name=name,
        **fields,
    )


def make_tx(
    kind: TransactionKind,
    stock_code: str = "005930",
    quantity: str | int = 0,
    amount: str | int = 0,
    trade_date: date = date(2024, 1, 3),
    sequence_no: int = 1,
    account: str = ACCOUNT,
    type_code: str | None = None,
    name: str = "삼성전자",
    fee: str | int = 0,
    tax: str | int = 0,
    currency_code: str = "KRW",
    fx_rate: str | int = 1,
    yield_rate: Decimal | None = None,
    profit_loss: Decimal | None = None,
) -> CorrectedTransaction:
    """보정 거래내역 생성 (거래종류 라벨은 kind 기본값 사용)"""
    if type_code is None:
        type_code = {
            TransactionKind.BUY: "주식매수입고",
            TransactionKind.SELL: "주식매도출고",
            TransactionKind.DEPOSIT: "이체입금",
            TransactionKind.WITHDRAWAL: "이체출금",
            TransactionKind.INTEREST: "배당금입금",
            TransactionKind.FEE: "금현물보관수수료",
            TransactionKind.TAX: "배당세출금",
        }[kind]
    assert lookup(type_code) is not None, type_code

    amount_dec = D(amount)
    rate = D(fx_rate)
    return CorrectedTransaction(
        account=account,
        trade_date=trade_date,
        settlement_date=trade_date,
        sequence_no=sequence_no,
        kind=kind,
        type_code=type_code,
        raw_type_code=type_code,
        name=name,
        raw_name=name,
        stock_code=stock_code,
        unit_price=Decimal("0"),
        quantity=D(quantity),
        fee=D(fee),
        tax=D(tax),
        amount=amount_dec,
        currency_code=currency_code,
        fx_rate=rate,
        krw_amount=amount_dec * rate if rate > 0 else amount_dec,
        profit_loss=profit_loss,
        yield_rate=yield_rate,
    )


def make_trade_log(
    name: str,
    trade_date: date,
    account: str = ACCOUNT,
    **fields: Any,
) -> TradeLogEntry:
    return TradeLogEntry(
        account=account,
        trade_date=trade_date,
        name=name,
        **{key: D(value) for key, value in fields.items()},
    )


def make_overseas_log(
    stock_code: str,
    name: str,
    trade_date: date,
    account: str = ACCOUNT,
    **fields: Any,
) -> OverseasTradeLogEntry:
    return OverseasTradeLogEntry(
        account=account,
        trade_date=trade_date,
        stock_code=stock_code,
        name=name,
        **{key: D(value) for key, value in fields.items()},
    )


@pytest.fixture
def raw_factory() -> Callable[..., RawTransaction]:
    return make_raw


@pytest.fixture
def tx_factory() -> Callable[..., CorrectedTransaction]:
    return make_tx


@pytest.fixture
def trade_log_factory() -> Callable[..., TradeLogEntry]:
    return make_trade_log


@pytest.fixture
def overseas_log_factory() -> Callable[..., OverseasTradeLogEntry]:
    return make_overseas_log


@pytest.fixture
def sample_stocks() -> list[Stock]:
    """국내 2종목 + 해외 1종목 마스터"""
    return [
        Stock(code="005930", name="삼성전자", market_type="KOSPI", current_price=D(70000)),
        Stock(code="360750", name="TIGER 미국S&P500", market_type="KOSPI", current_price=D(15000)),
        Stock(
            code="AAPL",
            name="애플",
            currency="USD",
            stock_type="OVERSEAS",
            market_type="NASDAQ",
            current_price=D(190),
        ),
    ]


# -------------------------------------------------------------------------
# DB
# -------------------------------------------------------------------------


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "test.db"


@pytest_asyncio.fixture
async def db(db_path: Path) -> AsyncGenerator[SQLiteAdapter, None]:
    """스키마가 생성된 임시 파일 DB"""
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()
    await init_schema(adapter)
    yield adapter
    await adapter.close()
