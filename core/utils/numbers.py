"""
숫자 유틸리티

Decimal 반올림 및 안전한 변환.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from core.constants import Tolerances

ZERO = Decimal("0")


def round_half_up(value: Decimal, places: int = Tolerances.PRICE_PLACES) -> Decimal:
    """소수점 places 자리에서 사사오입

    Args:
        value: 반올림할 값
        places: 소수 자릿수 (기본: 2)

    Returns:
        반올림된 Decimal
    """
    exponent = Decimal(1).scaleb(-places)
    return value.quantize(exponent, rounding=ROUND_HALF_UP)


def to_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
    """임의 값을 Decimal로 변환

    None, 빈 문자열, 변환 불가 값은 default 반환.
    천 단위 구분자(,)는 제거한다.
    """
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        if value != value:  # NaN
            return default
        return Decimal(str(value))

    text = str(value).strip().replace(",", "")
    if not text:
        return default
    try:
        return Decimal(text)
    except InvalidOperation:
        return default


def is_near_zero(value: Decimal, epsilon: Decimal = Tolerances.QTY_EPSILON) -> bool:
    """절대값이 epsilon 이하인지 확인"""
    return abs(value) <= epsilon


def safe_ratio(numerator: Decimal, denominator: Decimal) -> Decimal:
    """0으로 나누기 방지 나눗셈 (분모가 0이면 0)"""
    if denominator == 0:
        return ZERO
    return numerator / denominator
