"""
증권사 엑셀 내보내기 리더

한 통합 문서의 세 시트(전체거래내역, 매매일지, 해외매매일지)를 읽어
원천 데이터 레코드로 변환한다.

- 첫 행(헤더)은 건너뛰고 컬럼은 위치로 읽는다.
- 빈 셀은 문자열 "" / 숫자 0으로 채운다.
- 천 단위 구분자가 있는 숫자 문자열도 파싱한다.
- 일자를 해석할 수 없는 행은 WARNING을 남기고 건너뛴다.

사용 예시:
```python
reader = ExcelReader("export.xlsx")
batch = reader.read_batch()
```
"""

import logging
from pathlib import Path
from typing import Any, Callable, TypeVar

import pandas as pd

from core.constants import SheetNames
from core.domain.models import (
    OverseasTradeLogEntry,
    RawBatch,
    RawTransaction,
    TradeLogEntry,
)
from core.utils.dates import parse_date
from core.utils.numbers import to_decimal

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ExcelImportError(Exception):
    """통합 문서를 열 수 없거나 필수 시트가 없음"""

    pass


class _Row:
    """위치 기반 셀 접근 (범위 밖/빈 셀은 기본값)"""

    def __init__(self, values: list[Any]):
        self.values = values

    def cell(self, index: int) -> Any:
        if index >= len(self.values):
            return None
        value = self.values[index]
        if value is None:
            return None
        try:
            if pd.isna(value):
                return None
        except (TypeError, ValueError):
            pass
        return value

    def text(self, index: int) -> str:
        value = self.cell(index)
        if value is None:
            return ""
        # 숫자 셀로 저장된 계좌번호/종목코드 (예: 5930.0)
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value).strip()

    def number(self, index: int):
        return to_decimal(self.cell(index))

    def date(self, index: int):
        return parse_date(self.cell(index))

    def integer(self, index: int) -> int:
        return int(to_decimal(self.cell(index)))


def _parse_transaction(row: _Row) -> RawTransaction | None:
    transaction_date = row.date(1)
    if transaction_date is None:
        return None
    return RawTransaction(
        account=row.text(0),
        transaction_date=transaction_date,
        sequence_no=row.integer(2),
        original_no=row.text(3),
        type_code=row.text(4),
        name=row.text(5),
        quantity=row.number(6),
        unit_price=row.number(7),
        amount=row.number(8),
        deposit_withdrawal_amount=row.number(9),
        balance=row.number(10),
        fee=row.number(12),
        tax=row.number(13),
        foreign_amount=row.number(14),
        foreign_dw_amount=row.number(15),
        foreign_balance=row.number(16),
        currency_code=row.text(20),
        counterparty_agency=row.text(21),
        counterparty_name=row.text(22),
        counterparty_account=row.text(23),
    )


def _parse_trade_log(row: _Row) -> TradeLogEntry | None:
    trade_date = row.date(1)
    if trade_date is None:
        return None
    return TradeLogEntry(
        account=row.text(0),
        trade_date=trade_date,
        name=row.text(2),
        buy_quantity=row.number(3),
        buy_price=row.number(4),
        buy_amount=row.number(5),
        sell_quantity=row.number(6),
        sell_price=row.number(7),
        sell_amount=row.number(8),
        trade_fee=row.number(9),
        profit_loss=row.number(10),
        yield_rate=row.number(11),
    )


def _parse_overseas_trade_log(row: _Row) -> OverseasTradeLogEntry | None:
    trade_date = row.date(1)
    if trade_date is None:
        return None
    return OverseasTradeLogEntry(
        account=row.text(0),
        trade_date=trade_date,
        currency=row.text(2) or "USD",
        stock_code=row.text(3),
        name=row.text(4),
        balance_quantity=row.number(5),
        buy_avg_exchange_rate=row.number(6),
        trade_exchange_rate=row.number(7),
        buy_quantity=row.number(8),
        buy_price=row.number(9),
        buy_amount=row.number(10),
        krw_buy_amount=row.number(11),
        sell_quantity=row.number(12),
        sell_price=row.number(13),
        sell_amount=row.number(14),
        krw_sell_amount=row.number(15),
        fee=row.number(16),
        tax=row.number(17),
        krw_total_cost=row.number(18),
        original_buy_avg_price=row.number(19),
        trading_profit=row.number(20),
        krw_trading_profit=row.number(21),
        exchange_profit=row.number(22),
        total_evaluation_profit=row.number(23),
        yield_rate=row.number(24),
        converted_yield_rate=row.number(25),
    )


class ExcelReader:
    """증권사 엑셀 내보내기 리더

    Args:
        path: .xlsx 파일 경로
        require_trade_logs: True면 매매일지 시트가 없을 때 ExcelImportError
    """

    def __init__(self, path: str | Path, require_trade_logs: bool = False):
        self.path = Path(path)
        self.require_trade_logs = require_trade_logs

    def _open(self) -> pd.ExcelFile:
        if not self.path.exists():
            raise ExcelImportError(f"File not found: {self.path}")
        try:
            return pd.ExcelFile(self.path, engine="openpyxl")
        except Exception as e:
            raise ExcelImportError(f"Failed to open workbook {self.path}: {e}") from e

    def _read_sheet(
        self,
        workbook: pd.ExcelFile,
        sheet_name: str,
        parser: Callable[[_Row], T | None],
        required: bool,
    ) -> list[T]:
        if sheet_name not in workbook.sheet_names:
            if required:
                raise ExcelImportError(f"Required sheet missing: {sheet_name}")
            logger.info(f"시트 없음, 건너뜀: {sheet_name}")
            return []

        df = pd.read_excel(
            workbook,
            sheet_name=sheet_name,
            header=None,
            dtype=object,
            engine="openpyxl",
        )

        records: list[T] = []
        skipped = 0
        # 0행은 헤더
        for index, values in enumerate(df.itertuples(index=False, name=None)):
            if index == 0:
                continue
            row = _Row(list(values))
            if all(row.cell(i) is None for i in range(len(row.values))):
                continue

            record = parser(row)
            if record is None:
                skipped += 1
                logger.warning(
                    f"행 건너뜀 ({sheet_name} {index + 1}행): 일자 해석 불가",
                    extra={"sheet": sheet_name, "row": index + 1},
                )
                continue
            records.append(record)

        logger.info(
            f"시트 읽기 완료: {sheet_name} ({len(records)}건, 건너뜀 {skipped}건)"
        )
        return records

    def read_transactions(self) -> list[RawTransaction]:
        with self._open() as workbook:
            return self._read_sheet(
                workbook, SheetNames.GENERAL_LEDGER, _parse_transaction, required=True
            )

    def read_trade_logs(self) -> list[TradeLogEntry]:
        with self._open() as workbook:
            return self._read_sheet(
                workbook,
                SheetNames.DOMESTIC_TRADE_LOG,
                _parse_trade_log,
                required=self.require_trade_logs,
            )

    def read_overseas_trade_logs(self) -> list[OverseasTradeLogEntry]:
        with self._open() as workbook:
            return self._read_sheet(
                workbook,
                SheetNames.OVERSEAS_TRADE_LOG,
                _parse_overseas_trade_log,
                required=self.require_trade_logs,
            )

    def read_batch(self) -> RawBatch:
        """세 시트를 한 번에 읽어 RawBatch 반환 (종목 마스터 제외)

        Raises:
            ExcelImportError: 파일을 열 수 없거나 필수 시트 없음
        """
        with self._open() as workbook:
            transactions = self._read_sheet(
                workbook, SheetNames.GENERAL_LEDGER, _parse_transaction, required=True
            )
            trade_logs = self._read_sheet(
                workbook,
                SheetNames.DOMESTIC_TRADE_LOG,
                _parse_trade_log,
                required=self.require_trade_logs,
            )
            overseas = self._read_sheet(
                workbook,
                SheetNames.OVERSEAS_TRADE_LOG,
                _parse_overseas_trade_log,
                required=self.require_trade_logs,
            )

        return RawBatch(
            transactions=tuple(transactions),
            trade_logs=tuple(trade_logs),
            overseas_trade_logs=tuple(overseas),
        )
