"""
engine/correction/date_corrector.py 테스트

결제일 → 실제 매매일 보정
"""

from datetime import date
from typing import Callable

from engine.correction.date_corrector import DateCorrector


class TestDateCorrector:
    """DateCorrector 테스트"""

    def test_latest_trade_date_on_or_before(self, trade_log_factory: Callable) -> None:
        """결제일 이전(포함) 중 가장 최근 매매일"""
        make_trade_log = trade_log_factory
        corrector = DateCorrector(
            [
                make_trade_log("삼성전자", date(2024, 1, 2)),
                make_trade_log("삼성전자", date(2024, 1, 3)),
                make_trade_log("삼성전자", date(2024, 1, 10)),
            ]
        )

        assert corrector.correct_date("종합1", "삼성전자", date(2024, 1, 5)) == date(2024, 1, 3)
        assert corrector.correct_date("종합1", "삼성전자", date(2024, 1, 3)) == date(2024, 1, 3)

    def test_no_earlier_trade(self, trade_log_factory: Callable) -> None:
        corrector = DateCorrector([trade_log_factory("삼성전자", date(2024, 1, 10))])

        assert corrector.correct_date("종합1", "삼성전자", date(2024, 1, 5)) is None
        assert corrector.correct_or_settlement("종합1", "삼성전자", date(2024, 1, 5)) == date(
            2024, 1, 5
        )

    def test_account_scoped(self, trade_log_factory: Callable) -> None:
        """다른 계좌의 매매일지는 사용하지 않음"""
        corrector = DateCorrector(
            [trade_log_factory("삼성전자", date(2024, 1, 3), account="종합2")]
        )

        assert corrector.correct_date("종합1", "삼성전자", date(2024, 1, 5)) is None

    def test_overseas_by_name_or_code(self, overseas_log_factory: Callable) -> None:
        """해외 매매일지는 종목명과 종목번호 모두로 조회"""
        corrector = DateCorrector(
            overseas_trade_logs=[overseas_log_factory("AAPL", "애플", date(2024, 1, 3))]
        )

        assert corrector.correct_date("종합1", "애플", date(2024, 1, 5)) == date(2024, 1, 3)
        assert corrector.correct_date("종합1", "AAPL", date(2024, 1, 5)) == date(2024, 1, 3)

    def test_domestic_before_overseas(
        self,
        trade_log_factory: Callable,
        overseas_log_factory: Callable,
    ) -> None:
        """국내 매매일지 우선"""
        corrector = DateCorrector(
            [trade_log_factory("애플", date(2024, 1, 4))],
            [overseas_log_factory("AAPL", "애플", date(2024, 1, 2))],
        )

        assert corrector.correct_date("종합1", "애플", date(2024, 1, 5)) == date(2024, 1, 4)

    def test_falls_back_to_overseas_when_domestic_is_later(
        self,
        trade_log_factory: Callable,
        overseas_log_factory: Callable,
    ) -> None:
        corrector = DateCorrector(
            [trade_log_factory("애플", date(2024, 1, 9))],
            [overseas_log_factory("AAPL", "애플", date(2024, 1, 2))],
        )

        assert corrector.correct_date("종합1", "애플", date(2024, 1, 5)) == date(2024, 1, 2)
