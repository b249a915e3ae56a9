"""
집계 테스트 공통 데이터

하나의 계좌에서 입금 → 두 종목 매수 → 일부 매도 → 예탁금이용료 흐름.
"""

from datetime import date
from decimal import Decimal
from typing import Callable

import pytest

from core.domain.models import AccountStockStatus, CorrectedTransaction
from core.types import TransactionKind
from engine.aggregation.common import PriceSnapshot
from engine.cost_basis.ledger import CostBasisLedger


@pytest.fixture
def flow_transactions(tx_factory: Callable) -> list[CorrectedTransaction]:
    return [
        tx_factory(
            TransactionKind.DEPOSIT,
            stock_code="",
            name="",
            amount=1000000,
            trade_date=date(2024, 1, 2),
        ),
        tx_factory(
            TransactionKind.BUY,
            stock_code="360750",
            name="TIGER 미국S&P500",
            quantity=10,
            amount=150000,
            trade_date=date(2024, 1, 3),
        ),
        tx_factory(
            TransactionKind.BUY,
            quantity=10,
            amount=700000,
            trade_date=date(2024, 1, 3),
            sequence_no=2,
        ),
        tx_factory(
            TransactionKind.SELL,
            quantity=5,
            amount=399450,
            fee=50,
            tax=500,
            trade_date=date(2024, 2, 1),
        ),
        tx_factory(
            TransactionKind.INTEREST,
            type_code="예탁금이용료입금",
            stock_code="",
            name="",
            amount=30,
            trade_date=date(2024, 3, 2),
        ),
    ]


@pytest.fixture
def flow_statuses(flow_transactions: list[CorrectedTransaction]) -> list[AccountStockStatus]:
    return CostBasisLedger().replay(flow_transactions)


@pytest.fixture
def flow_snapshot() -> PriceSnapshot:
    return PriceSnapshot(
        prices={"005930": Decimal("80000"), "360750": Decimal("16000")},
        change_rates={"005930": Decimal("1.5")},
        exchange_rates={"USD": Decimal("1400")},
    )
