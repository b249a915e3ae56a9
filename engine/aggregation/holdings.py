"""
종목별 보유 현황 집계

계좌별 종목 현황을 종목코드 단위로 합치고 시세 스냅샷으로 평가한다.
특정 계좌만 볼 수도 있다 (account 인자).
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from core.constants import Defaults, FeeRates
from core.domain.models import AccountStockStatus, CorrectedTransaction, Stock
from core.types import TransactionKind
from core.utils.numbers import ZERO, round_half_up, safe_ratio
from engine.aggregation.common import PriceSnapshot, exchange_rate

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class HoldingItem:
    """종목별 보유 현황

    금액은 종목 통화 기준, weight만 원화 환산 기준.
    """

    stock_code: str
    stock_name: str
    currency: str
    exchange_rate: Decimal
    quantity: Decimal
    average_price: Decimal
    current_price: Decimal
    change_rate: Decimal
    purchase_amount: Decimal
    evaluation_amount: Decimal
    evaluation_profit: Decimal
    evaluation_profit_rate: Decimal
    realized_profit_loss: Decimal
    realized_profit_loss_rate: Decimal
    weight: Decimal
    total_profit_loss: Decimal
    total_profit_loss_rate: Decimal
    estimated_fee: Decimal
    last_buy_date: date | None = None
    last_buy_quantity: Decimal = ZERO
    last_buy_amount: Decimal = ZERO
    last_buy_profit_loss: Decimal = ZERO
    last_buy_yield_rate: Decimal = ZERO

    @property
    def evaluation_amount_krw(self) -> Decimal:
        return self.evaluation_amount * self.exchange_rate


def _last_buys(
    transactions: Iterable[CorrectedTransaction],
    account: str | None,
) -> dict[str, CorrectedTransaction]:
    latest: dict[str, CorrectedTransaction] = {}
    for tx in transactions:
        if tx.kind != TransactionKind.BUY or not tx.stock_code:
            continue
        if account is not None and tx.account != account:
            continue
        current = latest.get(tx.stock_code)
        if current is None or (tx.trade_date, tx.sequence_no) >= (current.trade_date, current.sequence_no):
            latest[tx.stock_code] = tx
    return latest


def build_holdings(
    stock_statuses: Iterable[AccountStockStatus],
    transactions: Iterable[CorrectedTransaction],
    stocks: Iterable[Stock],
    snapshot: PriceSnapshot,
    account: str | None = None,
) -> list[HoldingItem]:
    """종목별 보유 현황 생성

    Args:
        stock_statuses: 계좌별 종목 현황
        transactions: 보정 거래내역 (직전 매수 정보용)
        stocks: 종목 마스터 (표시명)
        snapshot: 시세 스냅샷
        account: 특정 계좌만 집계 (None이면 전체)

    Returns:
        원화 평가금액 내림차순 목록 (보유 수량 또는 실현손익이 있는 종목만)
    """
    stock_map = {stock.code: stock for stock in stocks}

    grouped: dict[str, list[AccountStockStatus]] = defaultdict(list)
    for status in stock_statuses:
        if account is not None and status.account != account:
            continue
        grouped[status.stock_code].append(status)

    total_evaluation_krw = ZERO
    for code, statuses in grouped.items():
        currency = statuses[0].currency_code
        quantity = sum((s.quantity for s in statuses), ZERO)
        total_evaluation_krw += (
            quantity * snapshot.price_of(code) * exchange_rate(currency, snapshot.exchange_rates)
        )

    last_buys = _last_buys(transactions, account)

    items: list[HoldingItem] = []
    for code, statuses in grouped.items():
        currency = statuses[0].currency_code
        rate = exchange_rate(currency, snapshot.exchange_rates)
        stock = stock_map.get(code)

        quantity = sum((s.quantity for s in statuses), ZERO)
        purchase = sum((s.investment_amount for s in statuses), ZERO)
        realized = sum((s.realized_profit_loss for s in statuses), ZERO)
        sale_cost = sum((s.sale_cost for s in statuses), ZERO)
        realized_rate = safe_ratio(
            sum((s.realized_profit_loss_rate * s.sale_cost for s in statuses), ZERO),
            sale_cost,
        )

        if quantity <= 0 and realized == 0:
            continue

        price = snapshot.price_of(code)
        evaluation = quantity * price
        evaluation_profit = evaluation - purchase
        evaluation_rate = safe_ratio(evaluation_profit, purchase) * HUNDRED
        fee_rate = FeeRates.DOMESTIC if currency == Defaults.BASE_CURRENCY else FeeRates.OVERSEAS

        last_buy = last_buys.get(code)

        items.append(
            HoldingItem(
                stock_code=code,
                stock_name=stock.display_name if stock else statuses[0].stock_name or code,
                currency=currency,
                exchange_rate=rate,
                quantity=quantity,
                average_price=round_half_up(safe_ratio(purchase, quantity) if quantity > 0 else ZERO),
                current_price=price,
                change_rate=snapshot.change_rate_of(code),
                purchase_amount=round_half_up(purchase),
                evaluation_amount=round_half_up(evaluation),
                evaluation_profit=round_half_up(evaluation_profit),
                evaluation_profit_rate=round_half_up(evaluation_rate),
                realized_profit_loss=round_half_up(realized),
                realized_profit_loss_rate=round_half_up(realized_rate),
                weight=round_half_up(safe_ratio(evaluation * rate, total_evaluation_krw) * HUNDRED),
                total_profit_loss=round_half_up(evaluation_profit + realized),
                total_profit_loss_rate=round_half_up(evaluation_rate + realized_rate),
                estimated_fee=round_half_up(evaluation * fee_rate),
                last_buy_date=last_buy.trade_date if last_buy else None,
                last_buy_quantity=last_buy.quantity if last_buy else ZERO,
                last_buy_amount=last_buy.amount if last_buy else ZERO,
                last_buy_profit_loss=(last_buy.profit_loss or ZERO) if last_buy else ZERO,
                last_buy_yield_rate=(last_buy.yield_rate or ZERO) if last_buy else ZERO,
            )
        )

    items.sort(key=lambda item: item.evaluation_amount_krw, reverse=True)
    return items
