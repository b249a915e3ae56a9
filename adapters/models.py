"""
어댑터 공통 데이터 모델

시세 API 응답을 표준화한 모델.
모든 가격/등락률은 Decimal 타입 사용.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from core.utils.numbers import ZERO, round_half_up, to_decimal


class MarketDataError(Exception):
    """시세 조회 실패 (전송 오류 또는 응답 형식 오류)"""

    def __init__(self, message: str, source: str | None = None):
        super().__init__(message)
        self.source = source


@dataclass(frozen=True)
class Quote:
    """현재가 정보

    Attributes:
        code: 종목코드 (해외는 티커)
        current_price: 현재가 (종목 통화 기준)
        change_rate: 전일 대비 등락률 (%)
        currency: 통화
        name: 종목명 (API가 제공하지 않으면 빈 값)
    """

    code: str
    current_price: Decimal
    change_rate: Decimal = ZERO
    currency: str = "KRW"
    name: str = ""

    @classmethod
    def from_naver_realtime(cls, code: str, data: dict[str, Any]) -> "Quote":
        """네이버 실시간 시세 응답 항목(result.areas[0].datas[0])에서 생성"""
        return cls(
            code=code,
            current_price=to_decimal(data.get("nv")),
            change_rate=to_decimal(data.get("cr")),
            currency="KRW",
            name=str(data.get("nm", "")),
        )

    @classmethod
    def from_yahoo_meta(cls, code: str, meta: dict[str, Any], currency: str = "USD") -> "Quote":
        """야후 chart API meta에서 생성 (등락률은 전일 종가 기준 계산)"""
        price = to_decimal(meta.get("regularMarketPrice"))
        previous = to_decimal(meta.get("previousClose") or meta.get("chartPreviousClose"))
        change_rate = ZERO
        if previous > 0:
            change_rate = round_half_up((price - previous) / previous * Decimal("100"))
        return cls(
            code=code,
            current_price=price,
            change_rate=change_rate,
            currency=str(meta.get("currency") or currency),
            name=str(meta.get("shortName", "")),
        )
