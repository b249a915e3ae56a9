"""
유틸리티 패키지

Decimal 반올림, 일자 정규화 등 공통 유틸리티
"""

from core.utils.dates import parse_date
from core.utils.numbers import (
    ZERO,
    is_near_zero,
    round_half_up,
    safe_ratio,
    to_decimal,
)

__all__ = [
    "ZERO",
    "is_near_zero",
    "parse_date",
    "round_half_up",
    "safe_ratio",
    "to_decimal",
]
