"""
engine/aggregation/portfolio.py 테스트
"""

from decimal import Decimal
from typing import Callable

from core.domain.models import PortfolioTarget, Stock
from core.types import TransactionKind
from engine.aggregation.common import PriceSnapshot
from engine.aggregation.portfolio import base_amount, build_portfolio
from engine.cost_basis.ledger import CostBasisLedger


TARGETS = [
    PortfolioTarget(stock_code="360750", target_weight=Decimal("40")),
    PortfolioTarget(stock_code="005930", target_weight=Decimal("60")),
]


class TestBaseAmount:
    """base_amount 테스트"""

    def test_wire_deposits_only(self, tx_factory: Callable) -> None:
        transactions = [
            tx_factory(TransactionKind.DEPOSIT, stock_code="", amount=1000000),
            tx_factory(
                TransactionKind.DEPOSIT,
                stock_code="",
                type_code="계좌대체입금",
                amount=500000,
                sequence_no=2,
            ),
            tx_factory(TransactionKind.WITHDRAWAL, stock_code="", amount=200000, sequence_no=3),
        ]

        assert base_amount(transactions) == Decimal("1000000")


class TestBuildPortfolio:
    """build_portfolio 테스트"""

    def test_rebalancing(
        self,
        flow_transactions,
        flow_statuses,
        flow_snapshot,
        sample_stocks: list[Stock],
    ) -> None:
        view = build_portfolio(
            TARGETS, flow_transactions, flow_statuses, sample_stocks, flow_snapshot
        )

        assert view.base_amount == Decimal("1000000")
        assert view.total_evaluation_amount == Decimal("560000")
        assert view.total_invested_amount == Decimal("500000")
        assert view.total_target_weight == Decimal("100")

        etf, samsung = view.items
        assert etf.stock_name == "TIGER 미국S&P500"
        assert etf.target_amount == Decimal("400000")
        assert etf.evaluation_amount == Decimal("160000")
        assert etf.current_weight == Decimal("28.57")
        assert etf.adjustment_amount == Decimal("240000")
        assert etf.adjustment_rate == Decimal("150.00")

        assert samsung.target_amount == Decimal("600000")
        assert samsung.current_weight == Decimal("71.43")
        assert samsung.adjustment_amount == Decimal("200000")
        assert samsung.adjustment_rate == Decimal("50.00")
        assert samsung.quantity == Decimal("5")

    def test_unheld_target(self, flow_transactions, flow_statuses, flow_snapshot) -> None:
        """보유하지 않은 목표 종목: 평가금액 0, 조정률 0"""
        targets = [PortfolioTarget(stock_code="AAPL", target_weight=Decimal("10"))]

        view = build_portfolio(targets, flow_transactions, flow_statuses, [], flow_snapshot)

        (item,) = view.items
        assert item.stock_name == "AAPL"
        assert item.currency == "KRW"
        assert item.evaluation_amount == 0
        assert item.adjustment_amount == Decimal("100000")
        assert item.adjustment_rate == 0
        assert item.current_weight == 0

    def test_foreign_target_uses_exchange_rate(self, tx_factory: Callable) -> None:
        transactions = [
            tx_factory(TransactionKind.DEPOSIT, stock_code="", amount=1000000),
            tx_factory(
                TransactionKind.BUY,
                stock_code="AAPL",
                type_code="해외주식매수입고",
                quantity=2,
                amount=300,
                currency_code="USD",
            ),
        ]
        statuses = CostBasisLedger().replay(transactions)
        snapshot = PriceSnapshot(
            prices={"AAPL": Decimal("200")},
            exchange_rates={"USD": Decimal("1400")},
        )
        targets = [PortfolioTarget(stock_code="AAPL", target_weight=Decimal("100"))]

        (item,) = build_portfolio(targets, transactions, statuses, [], snapshot).items

        assert item.currency == "USD"
        assert item.evaluation_amount == Decimal("560000")
        assert item.invested_amount == Decimal("420000")
        assert item.current_weight == Decimal("100.00")
        assert item.adjustment_amount == Decimal("440000")
