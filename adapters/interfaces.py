"""
어댑터 인터페이스 정의

Protocol 기반으로 정의하여 의존성 주입 및 Mock 교체 가능.
모든 구현체는 이 Protocol을 준수해야 함.
"""

from decimal import Decimal
from typing import Protocol, runtime_checkable

from adapters.models import Quote
from core.domain.models import Stock


@runtime_checkable
class IPriceProvider(Protocol):
    """현재가 조회 인터페이스

    엔진은 조회 실패를 오류로 다루지 않는다.
    구현체는 실패 시 MarketDataError를 던지거나 None을 반환하고,
    호출자(valuation)가 마지막으로 알려진 가격으로 대체한다.
    """

    async def current_price(self, stock: Stock) -> Quote | None:
        """종목 현재가 조회

        Args:
            stock: 종목 마스터 항목 (코드, 통화, 시장구분)

        Returns:
            Quote 또는 None (시세 없음)
        """
        ...

    async def exchange_rate(self, currency: str) -> Decimal | None:
        """원화 환율 조회

        Args:
            currency: 통화 (예: USD)

        Returns:
            1 단위 외화의 원화 가격 또는 None
        """
        ...

    async def close(self) -> None:
        """연결 종료"""
        ...
