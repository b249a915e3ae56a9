"""
컬럼 변환 헬퍼

Decimal/date 값을 SQLite TEXT 컬럼과 상호 변환.
Decimal은 str()로 저장하여 정밀도와 표기를 그대로 보존한다.
"""

from datetime import date
from decimal import Decimal

from core.utils.numbers import to_decimal


def dec(value: Decimal) -> str:
    return str(value)


def dec_or_none(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def parse_dec(text: str | None) -> Decimal:
    return to_decimal(text)


def parse_dec_or_none(text: str | None) -> Decimal | None:
    if text is None:
        return None
    return Decimal(text)


def iso(value: date) -> str:
    return value.isoformat()


def parse_iso(text: str) -> date:
    return date.fromisoformat(text)
