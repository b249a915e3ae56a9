"""
Mock 시세 제공자

테스트용 메모리 내 IPriceProvider 구현.
실패 시나리오(특정 종목 조회 시 MarketDataError)도 지원.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from adapters.models import MarketDataError, Quote
from core.domain.models import Stock


@dataclass
class MockPriceState:
    """Mock 상태 (메모리 내 저장)"""

    # 종목코드 → Quote
    quotes: dict[str, Quote] = field(default_factory=dict)

    # 통화 → 환율
    exchange_rates: dict[str, Decimal] = field(default_factory=dict)

    # 조회 시 MarketDataError를 던질 종목코드/통화
    failing_codes: set[str] = field(default_factory=set)
    failing_currencies: set[str] = field(default_factory=set)

    # 호출 기록
    requested_codes: list[str] = field(default_factory=list)
    closed: bool = False


class MockPriceProvider:
    """Mock 시세 제공자

    IPriceProvider Protocol 구현.

    사용 예시:
    ```python
    provider = MockPriceProvider()
    provider.set_price("005930", Decimal("70000"))
    provider.fail_on("AAPL")
    ```
    """

    def __init__(self, state: MockPriceState | None = None):
        self.state = state or MockPriceState()

    def set_price(
        self,
        code: str,
        price: Decimal,
        change_rate: Decimal = Decimal("0"),
        currency: str = "KRW",
    ) -> None:
        self.state.quotes[code] = Quote(
            code=code,
            current_price=price,
            change_rate=change_rate,
            currency=currency,
        )

    def set_exchange_rate(self, currency: str, rate: Decimal) -> None:
        self.state.exchange_rates[currency] = rate

    def fail_on(self, code: str) -> None:
        self.state.failing_codes.add(code)

    def fail_exchange_rate(self, currency: str) -> None:
        self.state.failing_currencies.add(currency)

    async def current_price(self, stock: Stock) -> Quote | None:
        self.state.requested_codes.append(stock.code)
        if stock.code in self.state.failing_codes:
            raise MarketDataError(f"Mock failure: {stock.code}", source="mock")
        return self.state.quotes.get(stock.code)

    async def exchange_rate(self, currency: str) -> Decimal | None:
        if currency in self.state.failing_currencies:
            raise MarketDataError(f"Mock failure: {currency}", source="mock")
        return self.state.exchange_rates.get(currency)

    async def close(self) -> None:
        self.state.closed = True
