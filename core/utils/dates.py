"""
일자 유틸리티

증권사 내보내기 파일의 일자 표기를 date로 정규화.
지원 형식: 2024-01-05, 2024.01.05, 2024/01/05, 20240105, datetime/date 객체
"""

import re
from datetime import date, datetime
from typing import Any

_SEPARATED = re.compile(r"^(\d{4})[.\-/](\d{1,2})[.\-/](\d{1,2})")
_COMPACT = re.compile(r"^(\d{4})(\d{2})(\d{2})$")


def parse_date(value: Any) -> date | None:
    """일자 값을 date로 변환

    Args:
        value: 문자열, date, datetime (pandas.Timestamp 포함)

    Returns:
        변환된 date, 해석할 수 없으면 None
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None

    # 엑셀 숫자 셀이 20240105.0 형태로 들어오는 경우
    if text.endswith(".0") and text[:-2].isdigit():
        text = text[:-2]

    match = _SEPARATED.match(text) or _COMPACT.match(text)
    if match is None:
        return None

    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None
