"""
Mock 어댑터

테스트용 Mock 구현체 제공.
Protocol 준수하여 실제 구현체와 교체 가능.
"""

from adapters.mock.price_provider import MockPriceProvider, MockPriceState

__all__ = [
    "MockPriceProvider",
    "MockPriceState",
]
