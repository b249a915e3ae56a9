"""
매매일자 보정 (DateCorrector)

원장의 주식 입출고 일자는 결제일이라 실제 매매일보다 결제 주기만큼 늦다.
같은 계좌/종목의 매매일지에서 결제일 이전(포함) 중 가장 최근 매매일을 찾는다.
국내 매매일지를 먼저 찾고, 없으면 해외 매매일지(종목명 또는 종목번호)를 찾는다.
"""

import bisect
from collections import defaultdict
from datetime import date
from typing import Iterable

from core.domain.models import OverseasTradeLogEntry, TradeLogEntry


def _latest_on_or_before(dates: list[date], settlement_date: date) -> date | None:
    index = bisect.bisect_right(dates, settlement_date)
    if index == 0:
        return None
    return dates[index - 1]


class DateCorrector:
    """매매일자 보정기

    Args:
        trade_logs: 국내 매매일지
        overseas_trade_logs: 해외 매매일지
    """

    def __init__(
        self,
        trade_logs: Iterable[TradeLogEntry] = (),
        overseas_trade_logs: Iterable[OverseasTradeLogEntry] = (),
    ):
        domestic: dict[tuple[str, str], set[date]] = defaultdict(set)
        for entry in trade_logs:
            domestic[(entry.account, entry.name)].add(entry.trade_date)

        overseas: dict[tuple[str, str], set[date]] = defaultdict(set)
        for entry in overseas_trade_logs:
            overseas[(entry.account, entry.name)].add(entry.trade_date)
            if entry.stock_code:
                overseas[(entry.account, entry.stock_code)].add(entry.trade_date)

        self._domestic = {key: sorted(dates) for key, dates in domestic.items()}
        self._overseas = {key: sorted(dates) for key, dates in overseas.items()}

    def correct_date(
        self,
        account: str,
        resolved_name: str,
        settlement_date: date,
    ) -> date | None:
        """실제 매매일자 조회

        Args:
            account: 계좌
            resolved_name: 보정된 종목명 (해외는 종목번호로도 조회)
            settlement_date: 원장 거래일자 (결제일)

        Returns:
            매매일자, 매매일지에서 찾지 못하면 None
        """
        dates = self._domestic.get((account, resolved_name))
        if dates:
            found = _latest_on_or_before(dates, settlement_date)
            if found is not None:
                return found

        dates = self._overseas.get((account, resolved_name))
        if dates:
            return _latest_on_or_before(dates, settlement_date)
        return None

    def correct_or_settlement(
        self,
        account: str,
        resolved_name: str,
        settlement_date: date,
    ) -> date:
        """매매일자 보정, 찾지 못하면 결제일 그대로"""
        found = self.correct_date(account, resolved_name, settlement_date)
        return found if found is not None else settlement_date
