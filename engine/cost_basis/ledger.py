"""
이동평균 원가 원장 (CostBasisLedger)

보정 거래내역을 (계좌, 종목코드)별로 매매일자/거래번호 순서로 재생하여
보유 수량, 원가, 실현손익, 매도 원가 가중 수익률을 계산한다.

상태 전이 (포지션별, 초기값 수량 0 / 원가 0):
- 매수: 수량 += q, 원가 += 거래금액 (원장 결제금액 그대로)
- 매도: 수량 > 0이면 매도원가 = q × 원가/수량, 실현손익 += 매도금액 - 매도원가,
        원가 -= 매도원가. 이후 수량 -= q.
        잔여 수량이 허용 오차 이내면 수량/원가 모두 0으로 맞춘다.
- 이자/배당: 실현손익 += 세금 차감 후 금액 (수량/원가 변화 없음)

재생 순서가 평균단가를 바꾸므로 정렬은 반드시 (매매일자, 거래번호) 오름차순.
과매도는 거부하지 않고 음수 수량을 그대로 보고한다 (원가는 0으로 비움).
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from core.domain.models import AccountStockStatus, CorrectedTransaction
from core.domain.results import NegativePosition
from core.domain.transaction_codes import lookup
from core.types import PositionKey, TransactionKind
from core.utils.numbers import ZERO, is_near_zero, round_half_up, safe_ratio

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def net_amount(tx: CorrectedTransaction) -> Decimal:
    """수수료/세금 차감 후 금액

    원장 금액이 이미 순액인 거래종류(주식 매매 포함)는 그대로 반환.
    이자/배당만 세전 금액이라 세금 컬럼을 차감한다.
    """
    code = lookup(tx.type_code)
    if code is not None and code.amount_is_net:
        return tx.amount
    return tx.amount - tx.fee - tx.tax


@dataclass
class PositionState:
    """재생 중 포지션 상태 (저장하지 않음)

    Attributes:
        quantity: 보유 수량
        total_cost: 잔여 원가
        realized_profit_loss: 누적 실현손익
        sale_cost: 누적 매도 원가 (수익률 가중치)
        weighted_yield: Σ(매도별 수익률 × 매도 원가)
    """

    quantity: Decimal = ZERO
    total_cost: Decimal = ZERO
    realized_profit_loss: Decimal = ZERO
    sale_cost: Decimal = ZERO
    weighted_yield: Decimal = ZERO

    @property
    def average_price(self) -> Decimal:
        if self.quantity <= 0:
            return ZERO
        return self.total_cost / self.quantity

    @property
    def realized_rate(self) -> Decimal:
        """매도 원가 가중 평균 수익률 (%)"""
        return safe_ratio(self.weighted_yield, self.sale_cost)

    def buy(self, quantity: Decimal, amount: Decimal) -> None:
        self.quantity += quantity
        self.total_cost += amount

    def sell(
        self,
        quantity: Decimal,
        net_proceeds: Decimal,
        reported_yield: Decimal | None = None,
    ) -> Decimal:
        """매도 반영

        Args:
            quantity: 매도 수량
            net_proceeds: 순매도금액
            reported_yield: 매매일지 수익률 (없으면 직접 계산)

        Returns:
            이번 매도의 실현손익
        """
        sold_cost = ZERO
        if self.quantity > 0:
            sold_cost = quantity * self.total_cost / self.quantity

        realized = net_proceeds - sold_cost
        self.realized_profit_loss += realized
        self.total_cost -= sold_cost
        self.quantity -= quantity

        if sold_cost > 0:
            sell_yield = reported_yield
            if sell_yield is None:
                sell_yield = realized / sold_cost * HUNDRED
            self.weighted_yield += sell_yield * sold_cost
            self.sale_cost += sold_cost

        if is_near_zero(self.quantity):
            self.quantity = ZERO
            self.total_cost = ZERO
        elif self.quantity < 0:
            self.total_cost = ZERO

        return realized

    def receive_income(self, amount: Decimal) -> None:
        self.realized_profit_loss += amount


@dataclass
class _Position:
    state: PositionState
    stock_name: str
    currency_code: str


class CostBasisLedger:
    """이동평균 원가 원장

    재생할 때마다 상태를 새로 만들며 이전 실행 결과를 참조하지 않는다.

    사용 예시:
        ledger = CostBasisLedger()
        statuses = ledger.replay(corrected_transactions)
        for anomaly in ledger.negative_positions:
            ...
    """

    def __init__(self) -> None:
        self.negative_positions: list[NegativePosition] = []

    def replay(self, transactions: Iterable[CorrectedTransaction]) -> list[AccountStockStatus]:
        """보정 거래내역 재생

        Args:
            transactions: 보정 거래내역 (순서 무관, 내부에서 정렬)

        Returns:
            계좌별 종목 현황 (계좌, 종목코드 순). 수량과 실현손익이 모두 0이면 제외.
        """
        self.negative_positions = []

        groups: dict[PositionKey, list[CorrectedTransaction]] = defaultdict(list)
        for tx in transactions:
            if not tx.stock_code:
                continue
            groups[tx.position_key].append(tx)

        statuses: list[AccountStockStatus] = []
        for key in sorted(groups, key=lambda k: (k.account, k.stock_code)):
            ordered = sorted(groups[key], key=lambda t: t.sort_key)
            position = self._replay_position(key, ordered)

            state = position.state
            if state.quantity == 0 and state.realized_profit_loss == 0:
                continue

            statuses.append(
                AccountStockStatus(
                    account=key.account,
                    stock_code=key.stock_code,
                    stock_name=position.stock_name,
                    quantity=state.quantity,
                    average_price=round_half_up(state.average_price),
                    investment_amount=state.total_cost,
                    realized_profit_loss=state.realized_profit_loss,
                    realized_profit_loss_rate=round_half_up(state.realized_rate),
                    currency_code=position.currency_code,
                    sale_cost=state.sale_cost,
                )
            )

        return statuses

    def _replay_position(
        self,
        key: PositionKey,
        ordered: list[CorrectedTransaction],
    ) -> _Position:
        position = _Position(state=PositionState(), stock_name="", currency_code="")
        state = position.state

        for tx in ordered:
            if tx.kind == TransactionKind.BUY:
                state.buy(tx.quantity, tx.amount)
            elif tx.kind == TransactionKind.SELL:
                was_negative = state.quantity < 0
                state.sell(tx.quantity, net_amount(tx), tx.yield_rate)
                if state.quantity < 0 and not was_negative:
                    self._record_negative(key, tx, state.quantity)
            elif tx.kind == TransactionKind.INTEREST:
                state.receive_income(net_amount(tx))
            else:
                continue

            position.stock_name = tx.name
            if tx.kind != TransactionKind.INTEREST or not position.currency_code:
                position.currency_code = tx.currency_code

        return position

    def _record_negative(
        self,
        key: PositionKey,
        tx: CorrectedTransaction,
        quantity: Decimal,
    ) -> None:
        logger.warning(
            f"음수 보유 수량: {key} 수량={quantity} "
            f"({tx.trade_date} #{tx.sequence_no} {tx.name})"
        )
        self.negative_positions.append(
            NegativePosition(
                account=key.account,
                stock_code=key.stock_code,
                quantity=quantity,
                trade_date=tx.trade_date,
                sequence_no=tx.sequence_no,
            )
        )
