"""
집계 공통 헬퍼

- PriceSnapshot: 집계 시점의 현재가/등락률/환율
- to_krw: 최신 환율로 원화 환산 (거래 시점 환율과 무관한 표시용 환산)
- cash_flow: 예수금 증감액 (거래 종류별 부호)
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Mapping

from core.constants import Defaults
from core.domain.models import CorrectedTransaction
from core.domain.transaction_codes import lookup
from core.types import TransactionKind
from core.utils.numbers import ZERO

_CREDIT_KINDS = frozenset({TransactionKind.DEPOSIT, TransactionKind.SELL, TransactionKind.INTEREST})
_DEBIT_KINDS = frozenset({TransactionKind.BUY, TransactionKind.WITHDRAWAL, TransactionKind.FEE})


@dataclass(frozen=True)
class PriceSnapshot:
    """집계 시점 시세

    Attributes:
        prices: 종목코드 → 현재가 (종목 통화 기준)
        change_rates: 종목코드 → 등락률 (%)
        exchange_rates: 통화 → 원화 환율
    """

    prices: dict[str, Decimal] = field(default_factory=dict)
    change_rates: dict[str, Decimal] = field(default_factory=dict)
    exchange_rates: dict[str, Decimal] = field(default_factory=dict)

    def price_of(self, stock_code: str) -> Decimal:
        return self.prices.get(stock_code, ZERO)

    def change_rate_of(self, stock_code: str) -> Decimal:
        return self.change_rates.get(stock_code, ZERO)


def exchange_rate(currency: str, exchange_rates: Mapping[str, Decimal]) -> Decimal:
    """통화의 원화 환율

    조회 결과가 없으면 기본 환율, 그것도 없으면 1.
    """
    if not currency or currency == Defaults.BASE_CURRENCY:
        return Decimal("1")
    rate = exchange_rates.get(currency)
    if rate is not None and rate > 0:
        return rate
    return Defaults.FALLBACK_EXCHANGE_RATES.get(currency, Decimal("1"))


def to_krw(amount: Decimal, currency: str, exchange_rates: Mapping[str, Decimal]) -> Decimal:
    """최신 환율로 원화 환산"""
    return amount * exchange_rate(currency, exchange_rates)


def cash_flow(tx: CorrectedTransaction) -> Decimal:
    """예수금 증감액 (행 통화 기준)

    입금/매도/이자는 증가, 매수/출금/수수료는 감소.
    주식 매매는 원장 결제금액 그대로, 이자/배당은 세금 차감 후 금액.
    세금 행(배당세출금 등)은 이자/배당 행의 세금 컬럼과 같은 금액이라 0.
    """
    if tx.kind == TransactionKind.TAX:
        return ZERO

    code = lookup(tx.type_code)
    is_net = code is not None and code.amount_is_net
    costs = ZERO if is_net else tx.fee + tx.tax

    if tx.kind in _CREDIT_KINDS:
        return tx.amount - costs
    if tx.kind in _DEBIT_KINDS:
        return -(tx.amount + costs)
    return ZERO


def is_wire_transfer(tx: CorrectedTransaction) -> bool:
    """외부 이체 여부 (원금 계산 대상)"""
    code = lookup(tx.type_code)
    return code is not None and code.is_wire_transfer


def is_external_transfer(tx: CorrectedTransaction) -> bool:
    """입출금 합계 대상 여부 (환전 행 제외한 입금/출금)"""
    if tx.kind not in (TransactionKind.DEPOSIT, TransactionKind.WITHDRAWAL):
        return False
    code = lookup(tx.type_code)
    return code is not None and code.fx_leg is None
