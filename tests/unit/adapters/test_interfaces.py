"""
Protocol 인터페이스 테스트

Protocol 타입 검증 및 구현 확인.
"""

from adapters.interfaces import IPriceProvider
from adapters.mock.price_provider import MockPriceProvider
from engine.valuation import PriceRouter


class TestIPriceProvider:
    """IPriceProvider Protocol 테스트"""

    def test_mock_provider_implements_protocol(self) -> None:
        assert isinstance(MockPriceProvider(), IPriceProvider)

    def test_price_router_implements_protocol(self) -> None:
        assert isinstance(PriceRouter(), IPriceProvider)

    def test_protocol_has_required_methods(self) -> None:
        for method in ("current_price", "exchange_rate", "close"):
            assert hasattr(IPriceProvider, method)
