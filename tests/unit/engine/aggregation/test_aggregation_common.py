"""
engine/aggregation/common.py 테스트

환율 조회, 원화 환산, 예수금 증감
"""

from decimal import Decimal
from typing import Callable

from core.types import TransactionKind
from engine.aggregation.common import (
    PriceSnapshot,
    cash_flow,
    exchange_rate,
    is_external_transfer,
    is_wire_transfer,
    to_krw,
)


class TestExchangeRate:
    """exchange_rate 테스트"""

    def test_krw_is_one(self) -> None:
        assert exchange_rate("KRW", {}) == Decimal("1")
        assert exchange_rate("", {}) == Decimal("1")

    def test_latest_rate(self) -> None:
        assert exchange_rate("USD", {"USD": Decimal("1400")}) == Decimal("1400")

    def test_fallback_rate(self) -> None:
        """최신 환율이 없으면 기본 환율"""
        assert exchange_rate("USD", {}) == Decimal("1450")

    def test_unknown_currency_is_one(self) -> None:
        assert exchange_rate("XYZ", {}) == Decimal("1")

    def test_to_krw(self) -> None:
        assert to_krw(Decimal("10"), "USD", {"USD": Decimal("1400")}) == Decimal("14000")


class TestCashFlow:
    """cash_flow 테스트"""

    def test_buy_uses_settlement_amount(self, tx_factory: Callable) -> None:
        """매수는 원장 결제금액 그대로 출금 (수수료 이중 차감 없음)"""
        tx = tx_factory(TransactionKind.BUY, quantity=10, amount=700100, fee=100)

        assert cash_flow(tx) == Decimal("-700100")

    def test_sell_uses_settlement_amount(self, tx_factory: Callable) -> None:
        tx = tx_factory(TransactionKind.SELL, quantity=5, amount=399450, fee=50, tax=500)

        assert cash_flow(tx) == Decimal("399450")

    def test_income_net_of_tax(self, tx_factory: Callable) -> None:
        """배당은 세금 차감 후 입금, 세금 행은 중복 반영하지 않음"""
        dividend = tx_factory(TransactionKind.INTEREST, amount=1000, tax=154)
        tax = tx_factory(TransactionKind.TAX, stock_code="", amount=154)

        assert cash_flow(dividend) == Decimal("846")
        assert cash_flow(tax) == Decimal("0")

    def test_net_codes(self, tx_factory: Callable) -> None:
        """순액 거래종류는 금액 그대로"""
        deposit = tx_factory(TransactionKind.DEPOSIT, stock_code="", amount=1000, fee=10)
        fee = tx_factory(TransactionKind.FEE, stock_code="", amount=300)

        assert cash_flow(deposit) == Decimal("1000")
        assert cash_flow(fee) == Decimal("-300")


class TestTransferClassification:
    """이체 분류 테스트"""

    def test_wire_transfer(self, tx_factory: Callable) -> None:
        assert is_wire_transfer(tx_factory(TransactionKind.DEPOSIT, stock_code=""))
        assert not is_wire_transfer(
            tx_factory(TransactionKind.DEPOSIT, stock_code="", type_code="계좌대체입금")
        )

    def test_fx_legs_are_not_external(self, tx_factory: Callable) -> None:
        """환전 행은 입출금 합계에서 제외"""
        fx_leg = tx_factory(
            TransactionKind.DEPOSIT,
            stock_code="",
            type_code="외화매수외화입금",
            currency_code="USD",
        )
        transfer = tx_factory(TransactionKind.DEPOSIT, stock_code="", type_code="계좌대체입금")

        assert not is_external_transfer(fx_leg)
        assert is_external_transfer(transfer)
        assert not is_external_transfer(tx_factory(TransactionKind.BUY))


class TestPriceSnapshot:
    def test_missing_price_is_zero(self) -> None:
        snapshot = PriceSnapshot()

        assert snapshot.price_of("005930") == 0
        assert snapshot.change_rate_of("005930") == 0
