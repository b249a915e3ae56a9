"""
engine/valuation.py 테스트

조회처 선택, 시세 실패 시 마지막 가격/기본 환율 대체
"""

import logging
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from adapters.mock.price_provider import MockPriceProvider
from adapters.models import Quote
from core.domain.models import AccountStockStatus, Stock
from engine.valuation import (
    PriceRouter,
    collect_exchange_rates,
    collect_prices,
    collect_snapshot,
    held_stocks,
)


def _status(code: str, quantity: str, currency: str = "KRW", name: str = "") -> AccountStockStatus:
    return AccountStockStatus(
        account="종합1",
        stock_code=code,
        stock_name=name or code,
        quantity=Decimal(quantity),
        average_price=Decimal("0"),
        investment_amount=Decimal("0"),
        realized_profit_loss=Decimal("0"),
        realized_profit_loss_rate=Decimal("0"),
        currency_code=currency,
    )


@pytest.fixture
def router() -> PriceRouter:
    naver = MagicMock()
    naver.get_gold_quote = AsyncMock(return_value=Quote(code="M04020000", current_price=Decimal("98000")))
    naver.get_domestic_quote = AsyncMock(return_value=Quote(code="005930", current_price=Decimal("70000")))
    naver.get_usd_krw_rate = AsyncMock(return_value=Decimal("1380"))
    naver.close = AsyncMock()
    yahoo = MagicMock()
    yahoo.get_quote = AsyncMock(return_value=Quote(code="AAPL", current_price=Decimal("190"), currency="USD"))
    yahoo.get_exchange_rate = AsyncMock(return_value=Decimal("9.5"))
    yahoo.close = AsyncMock()
    return PriceRouter(naver=naver, yahoo=yahoo)


class TestPriceRouter:
    """PriceRouter 조회처 선택 테스트"""

    async def test_domestic_goes_to_naver(self, router: PriceRouter) -> None:
        quote = await router.current_price(Stock(code="005930", name="삼성전자"))

        assert quote.current_price == Decimal("70000")
        router.naver.get_domestic_quote.assert_awaited_once_with("005930")
        router.yahoo.get_quote.assert_not_awaited()

    async def test_gold_goes_to_naver_gold(self, router: PriceRouter) -> None:
        await router.current_price(Stock(code="M04020000", name="금 99.99_1kg", market_type="METALS"))

        router.naver.get_gold_quote.assert_awaited_once_with("M04020000")
        router.naver.get_domestic_quote.assert_not_awaited()

    async def test_foreign_goes_to_yahoo(self, router: PriceRouter) -> None:
        await router.current_price(Stock(code="AAPL", name="애플", currency="USD"))

        router.yahoo.get_quote.assert_awaited_once_with("AAPL", "USD")

    async def test_exchange_rate_routing(self, router: PriceRouter) -> None:
        assert await router.exchange_rate("USD") == Decimal("1380")
        assert await router.exchange_rate("JPY") == Decimal("9.5")
        router.yahoo.get_exchange_rate.assert_awaited_once_with("JPY")

    async def test_close_closes_both(self, router: PriceRouter) -> None:
        await router.close()

        router.naver.close.assert_awaited_once()
        router.yahoo.close.assert_awaited_once()


class TestHeldStocks:
    """held_stocks 테스트"""

    def test_only_positive_quantities(self, sample_stocks: list[Stock]) -> None:
        statuses = [
            _status("005930", "10"),
            _status("360750", "0"),
            _status("005930", "3"),
            _status("NEW1", "2", name="신규종목"),
            _status("AAPL", "-1", currency="USD"),
        ]

        held = held_stocks(statuses, sample_stocks)

        assert [stock.code for stock in held] == ["005930", "NEW1"]
        assert held[0].current_price == Decimal("70000")
        assert held[1].name == "신규종목"
        assert held[1].current_price == 0


class TestCollectPrices:
    """collect_prices 테스트"""

    async def test_uses_quotes(self, sample_stocks: list[Stock]) -> None:
        provider = MockPriceProvider()
        provider.set_price("005930", Decimal("80000"), change_rate=Decimal("2.5"))

        prices, change_rates = await collect_prices(provider, sample_stocks[:1])

        assert prices == {"005930": Decimal("80000")}
        assert change_rates == {"005930": Decimal("2.5")}

    async def test_failure_falls_back_to_last_price(
        self, sample_stocks: list[Stock], caplog: pytest.LogCaptureFixture
    ) -> None:
        provider = MockPriceProvider()
        provider.fail_on("005930")

        with caplog.at_level(logging.WARNING, logger="engine.valuation"):
            prices, change_rates = await collect_prices(provider, sample_stocks[:2])

        # 실패 종목도, 응답 없는 종목도 마지막 가격
        assert prices == {"005930": Decimal("70000"), "360750": Decimal("15000")}
        assert change_rates == {"005930": Decimal("0"), "360750": Decimal("0")}
        assert "시세 조회 실패" in caplog.text
        assert provider.state.requested_codes == ["005930", "360750"]

    async def test_zero_price_is_ignored(self, sample_stocks: list[Stock]) -> None:
        provider = MockPriceProvider()
        provider.set_price("005930", Decimal("0"))

        prices, _ = await collect_prices(provider, sample_stocks[:1])

        assert prices == {"005930": Decimal("70000")}


class TestCollectExchangeRates:
    """collect_exchange_rates 테스트"""

    async def test_skips_krw(self) -> None:
        provider = MockPriceProvider()
        provider.set_exchange_rate("USD", Decimal("1390"))

        rates = await collect_exchange_rates(provider, ["KRW", "USD", "USD", ""])

        assert rates == {"USD": Decimal("1390")}

    async def test_fallback_on_failure(self) -> None:
        provider = MockPriceProvider()
        provider.fail_exchange_rate("USD")

        rates = await collect_exchange_rates(
            provider, ["USD"], fallback_rates={"USD": Decimal("1400")}
        )

        assert rates == {"USD": Decimal("1400")}

    async def test_missing_without_fallback_is_omitted(self) -> None:
        provider = MockPriceProvider()

        rates = await collect_exchange_rates(provider, ["JPY"], fallback_rates={})

        assert rates == {}


class TestCollectSnapshot:
    """collect_snapshot 테스트"""

    async def test_snapshot(self, sample_stocks: list[Stock]) -> None:
        provider = MockPriceProvider()
        provider.set_price("AAPL", Decimal("200"), currency="USD")
        provider.set_exchange_rate("USD", Decimal("1390"))
        statuses = [_status("005930", "5"), _status("AAPL", "2", currency="USD")]

        snapshot = await collect_snapshot(
            provider, statuses, sample_stocks, fallback_rates={"USD": Decimal("1450")}
        )

        assert snapshot.prices == {"005930": Decimal("70000"), "AAPL": Decimal("200")}
        assert snapshot.exchange_rates == {"USD": Decimal("1390")}
        assert snapshot.change_rate_of("AAPL") == 0
