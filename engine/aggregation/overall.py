"""
전체 투자 현황 집계

보정 거래내역, 계좌별 종목 현황, 시세 스냅샷으로 다섯 범주의 통계를 만든다.
- 총투자내역: 전체
- 주식투자내역: 분산 + 개별
- 분산투자내역: 포트폴리오 등록 종목
- 개별투자내역: 그 외 종목
- 예금투자내역: 외부 이체 원금 중 주식에 투입되지 않은 부분과 예탁금 이자

모든 금액은 원화(최신 환율 환산).
"""

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Iterable

from core.domain.models import AccountStockStatus, CorrectedTransaction
from core.types import TransactionKind
from core.utils.numbers import ZERO, round_half_up
from engine.aggregation.common import PriceSnapshot, cash_flow, is_wire_transfer, to_krw
from engine.cost_basis.ledger import net_amount


class OverallCategory(str, Enum):
    """전체 현황 범주"""

    TOTAL = "총투자내역"
    STOCK = "주식투자내역"
    DIVERSIFIED = "분산투자내역"
    INDIVIDUAL = "개별투자내역"
    DEPOSIT = "예금투자내역"


@dataclass(frozen=True)
class OverallStats:
    """범주별 통계

    Attributes:
        category: 범주
        principal: 원금
        evaluated_assets: 평가자산 (평가금액 + 예수금)
        operating_amount: 운용금액 (보유 종목 원가 합계)
        evaluated_amount: 평가금액 (현재가 × 수량)
        evaluated_profit: 평가수익 (평가금액 - 운용금액)
        realized_profit: 실현손익
        deposit: 예수금
    """

    category: OverallCategory
    principal: Decimal = ZERO
    evaluated_assets: Decimal = ZERO
    operating_amount: Decimal = ZERO
    evaluated_amount: Decimal = ZERO
    evaluated_profit: Decimal = ZERO
    realized_profit: Decimal = ZERO
    deposit: Decimal = ZERO


@dataclass
class _Bucket:
    operating: Decimal = ZERO
    evaluated: Decimal = ZERO
    realized: Decimal = ZERO

    def add(self, other: "_Bucket") -> "_Bucket":
        return _Bucket(
            operating=self.operating + other.operating,
            evaluated=self.evaluated + other.evaluated,
            realized=self.realized + other.realized,
        )


def _stock_stats(category: OverallCategory, bucket: _Bucket) -> OverallStats:
    return OverallStats(
        category=category,
        principal=round_half_up(bucket.operating),
        evaluated_assets=round_half_up(bucket.evaluated),
        operating_amount=round_half_up(bucket.operating),
        evaluated_amount=round_half_up(bucket.evaluated),
        evaluated_profit=round_half_up(bucket.evaluated - bucket.operating),
        realized_profit=round_half_up(bucket.realized),
    )


def build_overall_stats(
    transactions: Iterable[CorrectedTransaction],
    stock_statuses: Iterable[AccountStockStatus],
    snapshot: PriceSnapshot,
    portfolio_codes: Iterable[str] = (),
) -> list[OverallStats]:
    """전체 투자 현황 생성

    Args:
        transactions: 보정 거래내역
        stock_statuses: 계좌별 종목 현황
        snapshot: 시세 스냅샷
        portfolio_codes: 분산투자(포트폴리오) 종목코드

    Returns:
        [총투자, 주식투자, 분산투자, 개별투자, 예금투자] 순서의 통계
    """
    rates = snapshot.exchange_rates
    members = frozenset(portfolio_codes)

    principal = ZERO
    deposit = ZERO
    interest = ZERO
    for tx in transactions:
        deposit += to_krw(cash_flow(tx), tx.currency_code, rates)
        if is_wire_transfer(tx):
            krw = to_krw(tx.amount, tx.currency_code, rates)
            principal += krw if tx.kind == TransactionKind.DEPOSIT else -krw
        if tx.kind == TransactionKind.INTEREST and not tx.stock_code:
            interest += to_krw(net_amount(tx), tx.currency_code, rates)

    buckets: dict[bool, _Bucket] = defaultdict(_Bucket)
    for status in stock_statuses:
        bucket = buckets[status.stock_code in members]
        bucket.operating += to_krw(status.investment_amount, status.currency_code, rates)
        bucket.realized += to_krw(status.realized_profit_loss, status.currency_code, rates)
        if status.quantity > 0:
            evaluated = status.quantity * snapshot.price_of(status.stock_code)
            bucket.evaluated += to_krw(evaluated, status.currency_code, rates)

    diversified = buckets[True]
    individual = buckets[False]
    stock = diversified.add(individual)

    deposit_principal = principal - stock.operating

    total = OverallStats(
        category=OverallCategory.TOTAL,
        principal=round_half_up(principal),
        evaluated_assets=round_half_up(stock.evaluated + deposit),
        operating_amount=round_half_up(stock.operating),
        evaluated_amount=round_half_up(stock.evaluated),
        evaluated_profit=round_half_up(stock.evaluated - stock.operating),
        realized_profit=round_half_up(stock.realized + interest),
        deposit=round_half_up(deposit),
    )
    deposit_stats = OverallStats(
        category=OverallCategory.DEPOSIT,
        principal=round_half_up(deposit_principal),
        evaluated_assets=round_half_up(deposit_principal + interest),
        realized_profit=round_half_up(interest),
        deposit=round_half_up(deposit),
    )

    return [
        total,
        _stock_stats(OverallCategory.STOCK, stock),
        _stock_stats(OverallCategory.DIVERSIFIED, diversified),
        _stock_stats(OverallCategory.INDIVIDUAL, individual),
        deposit_stats,
    ]
