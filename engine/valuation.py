"""
시세 스냅샷 수집

보유 종목의 현재가와 통화 환율을 모아 PriceSnapshot을 만든다.
시세 조회 실패는 오류가 아니다. 종목 마스터의 마지막 가격(환율은 기본 환율)으로
대체하고 WARNING만 남긴다.

PriceRouter는 종목 특성에 따라 조회처를 고른다.
- 금현물 (시장구분 METALS 또는 금 코드): 네이버 금시세
- 원화 종목: 네이버 실시간 시세
- 외화 종목: Yahoo chart API
- 환율: USD는 네이버, 그 외 통화는 Yahoo
"""

import logging
from decimal import Decimal
from typing import Iterable, Mapping

from adapters.interfaces import IPriceProvider
from adapters.models import MarketDataError, Quote
from adapters.naver.rest_client import NaverRestClient
from adapters.yahoo.rest_client import YahooRestClient
from core.constants import Defaults, MarketCodes
from core.domain.models import AccountStockStatus, Stock
from engine.aggregation.common import PriceSnapshot

logger = logging.getLogger(__name__)


class PriceRouter:
    """종목별 조회처 선택 (IPriceProvider 구현)

    Args:
        naver: 네이버 클라이언트
        yahoo: Yahoo 클라이언트
    """

    def __init__(
        self,
        naver: NaverRestClient | None = None,
        yahoo: YahooRestClient | None = None,
        timeout: float = Defaults.HTTP_TIMEOUT_SEC,
    ):
        self.naver = naver or NaverRestClient(timeout=timeout)
        self.yahoo = yahoo or YahooRestClient(timeout=timeout)

    async def current_price(self, stock: Stock) -> Quote | None:
        if stock.market_type == MarketCodes.METALS_MARKET or stock.code == MarketCodes.GOLD:
            return await self.naver.get_gold_quote(stock.code)
        if stock.currency == Defaults.BASE_CURRENCY:
            return await self.naver.get_domestic_quote(stock.code)
        return await self.yahoo.get_quote(stock.code, stock.currency)

    async def exchange_rate(self, currency: str) -> Decimal | None:
        if currency == "USD":
            return await self.naver.get_usd_krw_rate()
        return await self.yahoo.get_exchange_rate(currency)

    async def close(self) -> None:
        await self.naver.close()
        await self.yahoo.close()


def held_stocks(
    stock_statuses: Iterable[AccountStockStatus],
    stocks: Iterable[Stock],
) -> list[Stock]:
    """보유 수량이 있는 종목 (마스터에 없으면 현황 정보로 생성)"""
    stock_map = {stock.code: stock for stock in stocks}
    held: dict[str, Stock] = {}
    for status in stock_statuses:
        if status.quantity <= 0 or status.stock_code in held:
            continue
        held[status.stock_code] = stock_map.get(status.stock_code) or Stock(
            code=status.stock_code,
            name=status.stock_name,
            currency=status.currency_code,
        )
    return list(held.values())


async def collect_prices(
    provider: IPriceProvider,
    stocks: Iterable[Stock],
) -> tuple[dict[str, Decimal], dict[str, Decimal]]:
    """종목별 현재가/등락률 수집

    Args:
        provider: 시세 제공자
        stocks: 조회할 종목

    Returns:
        (종목코드 → 현재가, 종목코드 → 등락률). 실패한 종목은 마지막 가격, 등락률 0.
    """
    prices: dict[str, Decimal] = {}
    change_rates: dict[str, Decimal] = {}

    for stock in stocks:
        quote: Quote | None = None
        try:
            quote = await provider.current_price(stock)
        except MarketDataError as e:
            logger.warning(
                f"시세 조회 실패, 마지막 가격 사용: {stock.code} ({e})",
                extra={"stock_code": stock.code, "source": e.source},
            )

        if quote is not None and quote.current_price > 0:
            prices[stock.code] = quote.current_price
            change_rates[stock.code] = quote.change_rate
        else:
            if quote is not None:
                logger.warning(f"시세 없음, 마지막 가격 사용: {stock.code}")
            prices[stock.code] = stock.current_price
            change_rates[stock.code] = Decimal("0")

    return prices, change_rates


async def collect_exchange_rates(
    provider: IPriceProvider,
    currencies: Iterable[str],
    fallback_rates: Mapping[str, Decimal] | None = None,
) -> dict[str, Decimal]:
    """통화별 원화 환율 수집

    Args:
        provider: 시세 제공자
        currencies: 조회할 통화 (KRW는 무시)
        fallback_rates: 조회 실패 시 사용할 환율

    Returns:
        통화 → 환율. 조회 실패하고 대체값도 없으면 해당 통화는 빠진다.
    """
    if fallback_rates is None:
        fallback_rates = Defaults.FALLBACK_EXCHANGE_RATES

    rates: dict[str, Decimal] = {}
    for currency in sorted(set(currencies)):
        if not currency or currency == Defaults.BASE_CURRENCY:
            continue

        rate: Decimal | None = None
        try:
            rate = await provider.exchange_rate(currency)
        except MarketDataError as e:
            logger.warning(f"환율 조회 실패: {currency} ({e})")

        if rate is not None and rate > 0:
            rates[currency] = rate
        elif currency in fallback_rates:
            logger.warning(f"기본 환율 사용: {currency}={fallback_rates[currency]}")
            rates[currency] = fallback_rates[currency]

    return rates


async def collect_snapshot(
    provider: IPriceProvider,
    stock_statuses: Iterable[AccountStockStatus],
    stocks: Iterable[Stock],
    fallback_rates: Mapping[str, Decimal] | None = None,
) -> PriceSnapshot:
    """보유 종목 기준 시세 스냅샷 수집"""
    statuses = list(stock_statuses)
    targets = held_stocks(statuses, stocks)

    prices, change_rates = await collect_prices(provider, targets)
    currencies = {status.currency_code for status in statuses}
    if fallback_rates:
        currencies.update(fallback_rates)
    exchange_rates = await collect_exchange_rates(provider, currencies, fallback_rates)

    return PriceSnapshot(
        prices=prices,
        change_rates=change_rates,
        exchange_rates=exchange_rates,
    )
