"""
어댑터 레이어

외부 서비스(DB, 시세 API, 엑셀 파일)와의 연동을 담당.
Protocol 기반 인터페이스로 Mock 교체 가능.
"""

from adapters.interfaces import IPriceProvider
from adapters.models import MarketDataError, Quote

__all__ = [
    # Interfaces
    "IPriceProvider",
    # Models
    "MarketDataError",
    "Quote",
]
