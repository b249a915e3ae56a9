"""
실효 환율 산출 (FxRateResolver)

외화 매수/매도는 원장에 여러 행으로 나뉘어 기록된다.
- 원화 측: 외화매수원화출금 / 외화매도원화입금 ("(미수)" 변형 포함)
- 외화 측: 외화매수외화입금 / 외화매도외화출금
- 차액 조정: 선환전차액출금 / 선환전차액입금 (예상 환율과 확정 환율의 차이)

같은 계좌, 같은 날짜의 행을 모아
    환율 = (원화 합계 ± 차액 조정) / 외화 합계
로 계산한다. 매수는 차액출금을 더하고 차액입금을 빼며, 매도는 반대.
외화 합계가 0이면 0(미산출)을 반환하며 호출자는 이 값으로 나누면 안 된다.

사용 예시:
    resolver = FxRateResolver(raw_rows)
    rate = resolver.effective_rate("계좌1", date(2024, 1, 5), "USD")
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable

from core.constants import Defaults
from core.domain.models import RawTransaction
from core.domain.transaction_codes import lookup_fx_evidence
from core.types import FxDirection, FxLeg
from core.utils.numbers import ZERO, round_half_up

# 방향별 (원화 측 행, 외화 측 행, 더하는 조정, 빼는 조정)
_LEGS: dict[FxDirection, tuple[FxLeg, FxLeg, FxLeg, FxLeg]] = {
    FxDirection.BUY: (FxLeg.BUY_LOCAL, FxLeg.BUY_FOREIGN, FxLeg.ADJUST_DEBIT, FxLeg.ADJUST_CREDIT),
    FxDirection.SELL: (FxLeg.SELL_LOCAL, FxLeg.SELL_FOREIGN, FxLeg.ADJUST_CREDIT, FxLeg.ADJUST_DEBIT),
}

_FOREIGN_LEGS = frozenset({FxLeg.BUY_FOREIGN, FxLeg.SELL_FOREIGN})


def _is_local_currency(currency_code: str, currency: str) -> bool:
    """원화 측/조정 행의 통화코드 일치 여부

    원화 측 행은 통화코드가 비어 있거나 KRW, 또는 대상 외화로 기록된다.
    """
    code = currency_code.strip()
    return code in ("", Defaults.BASE_CURRENCY, currency)


def effective_rate(
    rows: Iterable[RawTransaction],
    account: str,
    on_date: date,
    currency: str,
    direction: FxDirection | None = None,
) -> Decimal:
    """실효 환율 계산

    Args:
        rows: 원장 행 (전체 또는 일부)
        account: 계좌
        on_date: 거래일자
        currency: 대상 외화 (예: USD)
        direction: 환전 방향 (None이면 매수 → 매도 순으로 시도)

    Returns:
        소수 2자리 사사오입 환율, 산출 불가 시 0
    """
    sums: dict[FxLeg, Decimal] = defaultdict(lambda: ZERO)

    for row in rows:
        if row.account != account or row.transaction_date != on_date:
            continue
        code = lookup_fx_evidence(row.type_code)
        if code is None:
            continue

        leg = code.fx_leg
        if leg in _FOREIGN_LEGS:
            if row.currency != currency:
                continue
            sums[leg] += row.foreign_amount
        elif _is_local_currency(row.currency_code, currency):
            sums[leg] += row.amount

    directions = (direction,) if direction is not None else (FxDirection.BUY, FxDirection.SELL)
    for candidate in directions:
        rate = _rate_for(sums, candidate)
        if rate > 0:
            return rate
    return ZERO


def _rate_for(sums: dict[FxLeg, Decimal], direction: FxDirection) -> Decimal:
    local_leg, foreign_leg, plus_leg, minus_leg = _LEGS[direction]

    foreign_total = sums[foreign_leg]
    if foreign_total == 0:
        return ZERO

    local_total = sums[local_leg] + sums[plus_leg] - sums[minus_leg]
    if sums[local_leg] == 0 or local_total <= 0:
        return ZERO

    return round_half_up(local_total / foreign_total)


class FxRateResolver:
    """원장 전체에 대한 실효 환율 조회기

    (계좌, 일자)별로 환율 근거 행을 미리 묶어 두고 결과를 캐시한다.

    Args:
        rows: 원장 전체 행
    """

    def __init__(self, rows: Iterable[RawTransaction]):
        grouped: dict[tuple[str, date], list[RawTransaction]] = defaultdict(list)
        for row in rows:
            if lookup_fx_evidence(row.type_code) is not None:
                grouped[(row.account, row.transaction_date)].append(row)
        self._evidence = dict(grouped)
        self._cache: dict[tuple[str, date, str, FxDirection | None], Decimal] = {}

    def effective_rate(
        self,
        account: str,
        on_date: date,
        currency: str,
        direction: FxDirection | None = None,
    ) -> Decimal:
        """실효 환율 (산출 불가 시 0)"""
        if currency == Defaults.BASE_CURRENCY:
            return Decimal("1")

        key = (account, on_date, currency, direction)
        if key not in self._cache:
            rows = self._evidence.get((account, on_date), ())
            self._cache[key] = effective_rate(rows, account, on_date, currency, direction)
        return self._cache[key]

    def foreign_legs(
        self,
        account: str,
        on_date: date,
        direction: FxDirection,
    ) -> list[RawTransaction]:
        """해당 일자/방향의 외화 측 행 (원장 순서)"""
        _, foreign_leg, _, _ = _LEGS[direction]
        legs = []
        for row in self._evidence.get((account, on_date), ()):
            code = lookup_fx_evidence(row.type_code)
            if code is not None and code.fx_leg == foreign_leg:
                legs.append(row)
        return legs
