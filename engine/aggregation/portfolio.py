"""
포트폴리오 리밸런싱 집계

기준금액(이체입금 합계)과 목표 비중으로 종목별 목표금액과 조정금액을 계산한다.
- 목표금액 = 기준금액 × 목표비중 / 100
- 조정금액 = 목표금액 - 평가금액
- 조정비율 = 조정금액 / 평가금액 × 100 (평가금액 0이면 0)
- 현재비중 = 평가금액 / 보유 종목 전체 평가금액 × 100

평가금액은 원화 기준(최신 환율). 결과는 시세가 바뀔 때마다 다시 계산하며 저장하지 않는다.
"""

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from core.domain.models import AccountStockStatus, CorrectedTransaction, PortfolioTarget, Stock
from core.types import TransactionKind
from core.utils.numbers import ZERO, round_half_up, safe_ratio
from engine.aggregation.common import PriceSnapshot, is_wire_transfer, to_krw

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class PortfolioItem:
    """포트폴리오 종목별 리밸런싱 정보"""

    stock_code: str
    stock_name: str
    target_weight: Decimal
    target_amount: Decimal
    evaluation_amount: Decimal
    current_weight: Decimal
    invested_amount: Decimal
    adjustment_amount: Decimal
    adjustment_rate: Decimal
    current_price: Decimal
    quantity: Decimal
    currency: str


@dataclass(frozen=True)
class PortfolioView:
    """포트폴리오 전체"""

    items: tuple[PortfolioItem, ...]
    base_amount: Decimal
    total_evaluation_amount: Decimal
    total_invested_amount: Decimal
    total_target_weight: Decimal


def base_amount(transactions: Iterable[CorrectedTransaction]) -> Decimal:
    """기준금액: 외부 이체 입금 합계 (원화)"""
    return sum(
        (
            tx.krw_amount
            for tx in transactions
            if tx.kind == TransactionKind.DEPOSIT and is_wire_transfer(tx)
        ),
        ZERO,
    )


def build_portfolio(
    targets: Iterable[PortfolioTarget],
    transactions: Iterable[CorrectedTransaction],
    stock_statuses: Iterable[AccountStockStatus],
    stocks: Iterable[Stock],
    snapshot: PriceSnapshot,
) -> PortfolioView:
    """포트폴리오 리밸런싱 뷰 생성

    Args:
        targets: 목표 비중 (퍼센트)
        transactions: 보정 거래내역 (기준금액 계산용)
        stock_statuses: 계좌별 종목 현황
        stocks: 종목 마스터 (종목명/통화)
        snapshot: 시세 스냅샷

    Returns:
        PortfolioView
    """
    rates = snapshot.exchange_rates
    stock_map = {stock.code: stock for stock in stocks}
    base = base_amount(transactions)

    quantities: dict[str, Decimal] = defaultdict(lambda: ZERO)
    invested: dict[str, Decimal] = defaultdict(lambda: ZERO)
    currencies: dict[str, str] = {}
    for status in stock_statuses:
        if status.quantity <= 0:
            continue
        quantities[status.stock_code] += status.quantity
        invested[status.stock_code] += to_krw(
            status.investment_amount, status.currency_code, rates
        )
        currencies.setdefault(status.stock_code, status.currency_code)

    def evaluation_of(code: str, currency: str) -> Decimal:
        return to_krw(quantities[code] * snapshot.price_of(code), currency, rates)

    total_held_evaluation = sum(
        (evaluation_of(code, currency) for code, currency in currencies.items()),
        ZERO,
    )

    items: list[PortfolioItem] = []
    for target in targets:
        code = target.stock_code
        stock = stock_map.get(code)
        currency = currencies.get(code) or (stock.currency if stock else "KRW")

        evaluation = evaluation_of(code, currency)
        target_amount = base * target.target_weight / HUNDRED
        adjustment = target_amount - evaluation

        items.append(
            PortfolioItem(
                stock_code=code,
                stock_name=stock.display_name if stock else code,
                target_weight=target.target_weight,
                target_amount=round_half_up(target_amount),
                evaluation_amount=round_half_up(evaluation),
                current_weight=round_half_up(
                    safe_ratio(evaluation, total_held_evaluation) * HUNDRED
                ),
                invested_amount=round_half_up(invested[code]),
                adjustment_amount=round_half_up(adjustment),
                adjustment_rate=round_half_up(safe_ratio(adjustment, evaluation) * HUNDRED),
                current_price=snapshot.price_of(code),
                quantity=quantities[code],
                currency=currency,
            )
        )

    return PortfolioView(
        items=tuple(items),
        base_amount=round_half_up(base),
        total_evaluation_amount=round_half_up(sum((i.evaluation_amount for i in items), ZERO)),
        total_invested_amount=round_half_up(sum((i.invested_amount for i in items), ZERO)),
        total_target_weight=sum((i.target_weight for i in items), ZERO),
    )
