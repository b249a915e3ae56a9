"""
보정 거래내역 생성 (TransactionBuilder)

원장 행 → CorrectedTransaction 변환. 원장 행 하나당 최대 하나를 만든다.

처리 순서 (행마다):
1. 거래종류 분류 (대상이 아니면 건너뜀)
2. 종목명 보정 (환전 원화 측 행은 외화 측 거래명 + "매수"/"매도")
3. 매매일자 보정 (결제일 → 매매일)
4. 거래금액 컬럼 선택 (원화 / 외화 / 외화입출금)
5. 환율 부여 및 원화 환산
6. 종목코드 조회 (종목 마스터 → 해외 매매일지)
7. 매매일지 손익/수익률 복사
"""

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from core.constants import Defaults
from core.domain.models import (
    CorrectedTransaction,
    OverseasTradeLogEntry,
    RawBatch,
    RawTransaction,
    TradeLogEntry,
)
from core.domain.transaction_codes import TransactionCode, canonical_label, lookup
from core.types import AmountSource, FxDirection, TransactionKind
from core.utils.numbers import ZERO, round_half_up
from engine.correction.date_corrector import DateCorrector
from engine.correction.fx_rate import FxRateResolver
from engine.correction.name_resolver import NameResolver

logger = logging.getLogger(__name__)

ONE = Decimal("1")

_DIRECTION_SUFFIX = {FxDirection.BUY: "매수", FxDirection.SELL: "매도"}


@dataclass
class BuildStats:
    """보정 과정에서 모은 데이터 품질 신호"""

    unresolved_names: list[str]
    unresolved_codes: list[str]
    undetermined_fx: list[tuple[str, date, int]]
    skipped_codes: Counter


def build_name_pool(batch: RawBatch) -> list[str]:
    """종목명 후보군 (종목 마스터 → 국내 매매일지 → 해외 매매일지, 중복 제거)"""
    names: dict[str, None] = {}
    for stock in batch.stocks:
        names.setdefault(stock.name, None)
    for entry in batch.trade_logs:
        names.setdefault(entry.name, None)
    for entry in batch.overseas_trade_logs:
        names.setdefault(entry.name, None)
    return [name for name in names if name]


class TransactionBuilder:
    """원장 → 보정 거래내역 변환기

    Args:
        batch: 원천 데이터 스냅샷
        name_match_threshold: 종목명 보정 채택 기준 점수
    """

    def __init__(self, batch: RawBatch, name_match_threshold: float | None = None):
        self.batch = batch

        pool = build_name_pool(batch)
        if name_match_threshold is None:
            self.name_resolver = NameResolver(pool)
        else:
            self.name_resolver = NameResolver(pool, threshold=name_match_threshold)
        self.date_corrector = DateCorrector(batch.trade_logs, batch.overseas_trade_logs)
        self.fx_resolver = FxRateResolver(batch.transactions)

        # 종목명 → 종목코드 (먼저 등록된 값 우선)
        self._code_by_name: dict[str, str] = {}
        for stock in batch.stocks:
            self._code_by_name.setdefault(stock.name, stock.code)
        for entry in batch.overseas_trade_logs:
            if entry.stock_code:
                self._code_by_name.setdefault(entry.name, entry.stock_code)

        self._domestic_logs: dict[tuple[str, str, date], TradeLogEntry] = {
            (e.account, e.name, e.trade_date): e for e in batch.trade_logs
        }
        self._overseas_by_code: dict[tuple[str, str, date], OverseasTradeLogEntry] = {}
        self._overseas_by_name: dict[tuple[str, str, date], OverseasTradeLogEntry] = {}
        for entry in batch.overseas_trade_logs:
            self._overseas_by_code[(entry.account, entry.stock_code, entry.trade_date)] = entry
            self._overseas_by_name.setdefault((entry.account, entry.name, entry.trade_date), entry)

    def build(self) -> tuple[list[CorrectedTransaction], BuildStats]:
        """전체 원장 변환

        Returns:
            (보정 거래내역, 데이터 품질 신호)
        """
        stats = BuildStats(
            unresolved_names=[],
            unresolved_codes=[],
            undetermined_fx=[],
            skipped_codes=Counter(),
        )
        corrected: list[CorrectedTransaction] = []

        rows = sorted(
            self.batch.transactions,
            key=lambda r: (r.account, r.transaction_date, r.sequence_no),
        )
        for row in rows:
            code = lookup(row.type_code)
            if code is None:
                stats.skipped_codes[canonical_label(row.type_code)] += 1
                continue

            tx = self._build_one(row, code, stats)
            corrected.append(tx)

        return corrected, stats

    # -------------------------------------------------------------------------
    # 행 단위 변환
    # -------------------------------------------------------------------------

    def _build_one(
        self,
        row: RawTransaction,
        code: TransactionCode,
        stats: BuildStats,
    ) -> CorrectedTransaction:
        name = row.name
        quantity = row.quantity
        unit_price = row.unit_price

        if code.resolves_name:
            resolved = self.name_resolver.resolve(row.name)
            if resolved is None:
                if row.name not in stats.unresolved_names:
                    stats.unresolved_names.append(row.name)
            else:
                name = resolved

        trade_date = row.transaction_date
        if code.corrects_date:
            trade_date = self.date_corrector.correct_or_settlement(
                row.account, name, row.transaction_date
            )

        amount = self._select_amount(row, code)
        currency = (
            Defaults.BASE_CURRENCY
            if code.amount_source == AmountSource.LOCAL
            else row.currency
        )

        # 환율
        if code.is_local_conversion:
            # 원화 행이므로 환율 1, 실효 환율은 단가로 기록
            name, quantity, unit_price, conversion_rate = self._annotate_local_conversion(
                row, code, name, quantity, unit_price
            )
            fx_rate = ONE
            krw_amount = amount
            if conversion_rate == 0:
                stats.undetermined_fx.append((row.account, row.transaction_date, row.sequence_no))
        elif currency == Defaults.BASE_CURRENCY:
            fx_rate = ONE
            krw_amount = amount
        else:
            fx_rate = self.fx_resolver.effective_rate(
                row.account, row.transaction_date, currency, code.fx_direction
            )
            if code.is_fx_conversion and fx_rate > 0:
                unit_price = fx_rate
            if fx_rate > 0:
                krw_amount = round_half_up(amount * fx_rate)
            else:
                krw_amount = amount
                stats.undetermined_fx.append((row.account, row.transaction_date, row.sequence_no))

        stock_code = ""
        if code.resolves_name:
            stock_code = self._code_by_name.get(name, "")
            if not stock_code and name not in stats.unresolved_codes:
                stats.unresolved_codes.append(name)

        profit_loss: Decimal | None = None
        yield_rate: Decimal | None = None
        if code.is_stock_trade:
            profit_loss, yield_rate = self._trade_log_pnl(
                row.account, name, stock_code, trade_date, currency, code.kind
            )

        if name != row.name or trade_date != row.transaction_date:
            logger.debug(
                f"보정: {row.account} #{row.sequence_no} "
                f"'{row.name}' → '{name}', {row.transaction_date} → {trade_date}"
            )

        return CorrectedTransaction(
            account=row.account,
            trade_date=trade_date,
            settlement_date=row.transaction_date,
            sequence_no=row.sequence_no,
            kind=code.kind,
            type_code=code.label,
            raw_type_code=row.type_code,
            name=name,
            raw_name=row.name,
            stock_code=stock_code,
            unit_price=unit_price,
            quantity=quantity,
            fee=row.fee,
            tax=row.tax,
            amount=amount,
            currency_code=currency,
            fx_rate=fx_rate,
            krw_amount=krw_amount,
            profit_loss=profit_loss,
            yield_rate=yield_rate,
        )

    @staticmethod
    def _select_amount(row: RawTransaction, code: TransactionCode) -> Decimal:
        if code.amount_source == AmountSource.FOREIGN:
            return row.foreign_amount
        if code.amount_source == AmountSource.FOREIGN_DW:
            return row.foreign_dw_amount
        return row.amount

    def _annotate_local_conversion(
        self,
        row: RawTransaction,
        code: TransactionCode,
        name: str,
        quantity: Decimal,
        unit_price: Decimal,
    ) -> tuple[str, Decimal, Decimal, Decimal]:
        """환전 원화 측 행: 거래명/수량(외화 금액)/단가(환율) 부여

        Returns:
            (거래명, 수량, 단가, 환율)
        """
        direction = code.fx_direction
        if direction is None:
            return name, quantity, unit_price, ZERO

        legs = self.fx_resolver.foreign_legs(row.account, row.transaction_date, direction)
        if not legs:
            return name, quantity, unit_price, ZERO

        foreign_currency = legs[0].currency
        rate = self.fx_resolver.effective_rate(
            row.account, row.transaction_date, foreign_currency, direction
        )
        name = f"{legs[0].name}{_DIRECTION_SUFFIX[direction]}"
        quantity = sum(
            (leg.foreign_amount for leg in legs if leg.currency == foreign_currency),
            ZERO,
        )
        if rate > 0:
            unit_price = rate
        return name, quantity, unit_price, rate

    def _trade_log_pnl(
        self,
        account: str,
        name: str,
        stock_code: str,
        trade_date: date,
        currency: str,
        kind: TransactionKind,
    ) -> tuple[Decimal | None, Decimal | None]:
        """같은 날 매매일지의 손익/수익률

        매매일지 행에 해당 방향(매수/매도) 수량이 없으면 빈 칸이 0으로 읽힌 것이므로
        복사하지 않는다.
        """
        if currency == Defaults.BASE_CURRENCY:
            entry = self._domestic_logs.get((account, name, trade_date))
            if entry is None or not _has_side(entry, kind):
                return None, None
            return entry.profit_loss, entry.yield_rate

        overseas = None
        if stock_code:
            overseas = self._overseas_by_code.get((account, stock_code, trade_date))
        if overseas is None:
            overseas = self._overseas_by_name.get((account, name, trade_date))
        if overseas is None or not _has_side(overseas, kind):
            return None, None
        return overseas.trading_profit, overseas.yield_rate


def _has_side(entry: TradeLogEntry | OverseasTradeLogEntry, kind: TransactionKind) -> bool:
    if kind == TransactionKind.SELL:
        return entry.sell_quantity != 0
    return entry.buy_quantity != 0
