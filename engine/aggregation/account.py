"""
계좌 현황 집계

보정 거래내역과 계좌별 종목 현황으로 계좌별 입출금, 원금, 운용자금,
실현손익, 통화별 예수금을 계산한다. 마지막에 전체 계좌 합산 행(ALL)을 붙인다.

전체 행의 원금은 외부 이체(이체입금/이체송금/이체출금)만으로 계산하여
계좌 간 대체가 이중으로 잡히지 않도록 한다.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Mapping

from core.constants import Defaults
from core.domain.models import AccountStatus, AccountStockStatus, CorrectedTransaction
from core.types import TransactionKind
from core.utils.numbers import ZERO, round_half_up, safe_ratio
from engine.aggregation.common import (
    cash_flow,
    is_external_transfer,
    is_wire_transfer,
    to_krw,
)
from engine.cost_basis.ledger import net_amount


@dataclass
class _AccountTotals:
    total_deposit: Decimal = ZERO
    total_withdrawal: Decimal = ZERO
    wire_in: Decimal = ZERO
    wire_out: Decimal = ZERO
    operating_funds: Decimal = ZERO
    realized: Decimal = ZERO
    weighted_rate: Decimal = ZERO
    sale_cost: Decimal = ZERO
    deposits: dict[str, Decimal] = field(default_factory=lambda: defaultdict(lambda: ZERO))

    def merge(self, other: "_AccountTotals") -> None:
        self.total_deposit += other.total_deposit
        self.total_withdrawal += other.total_withdrawal
        self.wire_in += other.wire_in
        self.wire_out += other.wire_out
        self.operating_funds += other.operating_funds
        self.realized += other.realized
        self.weighted_rate += other.weighted_rate
        self.sale_cost += other.sale_cost
        for currency, amount in other.deposits.items():
            self.deposits[currency] += amount


def _to_status(account: str, totals: _AccountTotals, principal: Decimal) -> AccountStatus:
    return AccountStatus(
        account=account,
        total_deposit=round_half_up(totals.total_deposit),
        total_withdrawal=round_half_up(totals.total_withdrawal),
        principal=round_half_up(principal),
        operating_funds=round_half_up(totals.operating_funds),
        realized_profit_loss=round_half_up(totals.realized),
        realized_profit_loss_rate=round_half_up(
            safe_ratio(totals.weighted_rate, totals.sale_cost)
        ),
        deposits={
            currency: amount
            for currency, amount in sorted(totals.deposits.items())
        },
    )


def build_account_statuses(
    transactions: Iterable[CorrectedTransaction],
    stock_statuses: Iterable[AccountStockStatus],
    exchange_rates: Mapping[str, Decimal],
) -> list[AccountStatus]:
    """계좌 현황 생성

    Args:
        transactions: 보정 거래내역
        stock_statuses: 계좌별 종목 현황
        exchange_rates: 통화 → 원화 환율 (집계 시점 최신값)

    Returns:
        계좌별 현황 (계좌명 순) + 전체 합산 행. 입력이 모두 비면 빈 리스트.
    """
    totals: dict[str, _AccountTotals] = defaultdict(_AccountTotals)

    for tx in transactions:
        account = totals[tx.account]
        account.deposits[tx.currency_code] += cash_flow(tx)

        if is_external_transfer(tx):
            krw = to_krw(tx.amount, tx.currency_code, exchange_rates)
            if tx.kind == TransactionKind.DEPOSIT:
                account.total_deposit += krw
            else:
                account.total_withdrawal += krw

        if is_wire_transfer(tx):
            krw = to_krw(tx.amount, tx.currency_code, exchange_rates)
            if tx.kind == TransactionKind.DEPOSIT:
                account.wire_in += krw
            else:
                account.wire_out += krw

        # 종목에 귀속되지 않은 이자 (예탁금이용료 등)
        if tx.kind == TransactionKind.INTEREST and not tx.stock_code:
            account.realized += to_krw(net_amount(tx), tx.currency_code, exchange_rates)

    for status in stock_statuses:
        account = totals[status.account]
        account.operating_funds += to_krw(
            status.investment_amount, status.currency_code, exchange_rates
        )
        account.realized += to_krw(
            status.realized_profit_loss, status.currency_code, exchange_rates
        )
        sale_cost_krw = to_krw(status.sale_cost, status.currency_code, exchange_rates)
        account.weighted_rate += status.realized_profit_loss_rate * sale_cost_krw
        account.sale_cost += sale_cost_krw

    if not totals:
        return []

    statuses: list[AccountStatus] = []
    combined = _AccountTotals()
    for name in sorted(totals):
        account = totals[name]
        statuses.append(
            _to_status(name, account, account.total_deposit - account.total_withdrawal)
        )
        combined.merge(account)

    statuses.append(
        _to_status(Defaults.ALL_ACCOUNTS, combined, combined.wire_in - combined.wire_out)
    )
    return statuses
