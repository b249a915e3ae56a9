"""
engine/correction/transaction_builder.py 테스트

원장 행 → 보정 거래내역 변환
"""

from datetime import date
from decimal import Decimal
from typing import Callable

import pytest

from core.domain.models import RawBatch, Stock
from core.types import TransactionKind
from engine.correction.transaction_builder import TransactionBuilder, build_name_pool

FX_DAY = date(2024, 1, 8)


@pytest.fixture
def batch(
    raw_factory: Callable,
    trade_log_factory: Callable,
    overseas_log_factory: Callable,
    sample_stocks: list[Stock],
) -> RawBatch:
    """국내 매매 + 환전 + 해외 매매가 섞인 원장"""
    transactions = (
        raw_factory(
            "주식매수입고",
            name="삼성전자",
            transaction_date=date(2024, 1, 5),
            sequence_no=1,
            quantity=10,
            unit_price=70000,
            amount=700000,
            fee=100,
        ),
        raw_factory(
            "주식매수입고",
            name="TIGER미국S&P500",
            transaction_date=date(2024, 1, 5),
            sequence_no=2,
            quantity=10,
            amount=150000,
        ),
        raw_factory("대체출고", name="삼성전자", transaction_date=date(2024, 1, 5), sequence_no=3),
        raw_factory(
            "주식매수입고",
            name="XYZ 임시명",
            transaction_date=date(2024, 1, 5),
            sequence_no=4,
            quantity=1,
            amount=1000,
        ),
        # 환전 (원화 출금 + 차액 출금 + 외화 입금)
        raw_factory("외화매수원화출금", name="", transaction_date=FX_DAY, sequence_no=1, amount=1450000),
        raw_factory("선환전차액출금", transaction_date=FX_DAY, sequence_no=2, amount=5000),
        raw_factory(
            "외화매수외화입금",
            name="USD",
            transaction_date=FX_DAY,
            sequence_no=3,
            foreign_amount=1000,
            currency_code="USD",
        ),
        raw_factory(
            "해외주식매수입고",
            name="애플",
            transaction_date=FX_DAY,
            sequence_no=4,
            quantity=3,
            foreign_amount=500,
            currency_code="USD",
        ),
        # 환전 없는 날의 해외 매도
        raw_factory(
            "해외주식매도출고",
            name="애플",
            transaction_date=date(2024, 1, 12),
            sequence_no=1,
            quantity=1,
            foreign_amount=200,
            currency_code="USD",
        ),
    )
    trade_logs = (
        trade_log_factory(
            "삼성전자",
            date(2024, 1, 3),
            buy_quantity=10,
            buy_amount=700000,
            profit_loss=0,
            yield_rate=0,
        ),
    )
    overseas = (
        overseas_log_factory("AAPL", "애플", date(2024, 1, 5), buy_quantity=3),
        overseas_log_factory(
            "AAPL",
            "애플",
            date(2024, 1, 10),
            sell_quantity=1,
            trading_profit="33.5",
            yield_rate="20.1",
        ),
    )
    return RawBatch(
        transactions=transactions,
        trade_logs=trade_logs,
        overseas_trade_logs=overseas,
        stocks=tuple(sample_stocks),
    )


def _by_seq(transactions: list, trade_or_settlement: date, seq: int):
    for tx in transactions:
        if tx.settlement_date == trade_or_settlement and tx.sequence_no == seq:
            return tx
    raise AssertionError(f"not found: {trade_or_settlement} #{seq}")


class TestBuildNamePool:
    """build_name_pool 테스트"""

    def test_order_and_dedup(self, batch: RawBatch) -> None:
        """종목 마스터 → 국내 매매일지 → 해외 매매일지 순, 중복 제거"""
        assert build_name_pool(batch) == ["삼성전자", "TIGER 미국S&P500", "애플"]


class TestTransactionBuilder:
    """TransactionBuilder 테스트"""

    def test_one_per_recognized_row(self, batch: RawBatch) -> None:
        """대상 거래종류만 변환, 나머지는 건너뛴 건수로 집계"""
        transactions, stats = TransactionBuilder(batch).build()

        assert len(transactions) == 7
        assert stats.skipped_codes == {"대체출고": 1, "선환전차액출금": 1}

    def test_domestic_buy(self, batch: RawBatch) -> None:
        """종목코드/매매일자/매매일지 손익 보정"""
        transactions, _ = TransactionBuilder(batch).build()
        tx = _by_seq(transactions, date(2024, 1, 5), 1)

        assert tx.kind == TransactionKind.BUY
        assert tx.stock_code == "005930"
        assert tx.trade_date == date(2024, 1, 3)
        assert tx.settlement_date == date(2024, 1, 5)
        assert tx.amount == Decimal("700000")
        assert tx.fee == Decimal("100")
        assert tx.currency_code == "KRW"
        assert tx.fx_rate == Decimal("1")
        assert tx.krw_amount == Decimal("700000")
        assert tx.profit_loss == Decimal("0")

    def test_name_correction(self, batch: RawBatch) -> None:
        """변형된 거래명 보정, 원문은 raw_name에 보존"""
        transactions, _ = TransactionBuilder(batch).build()
        tx = _by_seq(transactions, date(2024, 1, 5), 2)

        assert tx.name == "TIGER 미국S&P500"
        assert tx.raw_name == "TIGER미국S&P500"
        assert tx.stock_code == "360750"
        # 매매일지에 없으면 결제일 그대로
        assert tx.trade_date == date(2024, 1, 5)
        assert tx.profit_loss is None

    def test_unresolved_name_kept(self, batch: RawBatch) -> None:
        """보정 실패 시 원문 유지, 종목코드 비움"""
        transactions, stats = TransactionBuilder(batch).build()
        tx = _by_seq(transactions, date(2024, 1, 5), 4)

        assert tx.name == "XYZ 임시명"
        assert tx.stock_code == ""
        assert stats.unresolved_names == ["XYZ 임시명"]
        assert stats.unresolved_codes == ["XYZ 임시명"]

    def test_local_conversion_leg(self, batch: RawBatch) -> None:
        """환전 원화 측 행: 외화 거래명 + 매수, 수량=외화금액, 단가=실효 환율"""
        transactions, _ = TransactionBuilder(batch).build()
        tx = _by_seq(transactions, FX_DAY, 1)

        assert tx.kind == TransactionKind.BUY
        assert tx.name == "USD매수"
        assert tx.quantity == Decimal("1000")
        assert tx.unit_price == Decimal("1455.00")
        assert tx.currency_code == "KRW"
        assert tx.fx_rate == Decimal("1")
        assert tx.krw_amount == Decimal("1450000")
        assert tx.stock_code == ""

    def test_foreign_conversion_leg(self, batch: RawBatch) -> None:
        transactions, _ = TransactionBuilder(batch).build()
        tx = _by_seq(transactions, FX_DAY, 3)

        assert tx.kind == TransactionKind.DEPOSIT
        assert tx.amount == Decimal("1000")
        assert tx.currency_code == "USD"
        assert tx.fx_rate == Decimal("1455.00")
        assert tx.unit_price == Decimal("1455.00")
        assert tx.krw_amount == Decimal("1455000.00")

    def test_overseas_buy_uses_day_rate(self, batch: RawBatch) -> None:
        """해외 매매는 결제일의 실효 환율로 원화 환산"""
        transactions, _ = TransactionBuilder(batch).build()
        tx = _by_seq(transactions, FX_DAY, 4)

        assert tx.stock_code == "AAPL"
        assert tx.trade_date == date(2024, 1, 5)
        assert tx.amount == Decimal("500")
        assert tx.fx_rate == Decimal("1455.00")
        assert tx.krw_amount == Decimal("727500.00")

    def test_undetermined_rate(self, batch: RawBatch) -> None:
        """환율 산출 실패: fx_rate 0, 원화 금액은 원금액 그대로"""
        transactions, stats = TransactionBuilder(batch).build()
        tx = _by_seq(transactions, date(2024, 1, 12), 1)

        assert tx.fx_rate == Decimal("0")
        assert tx.fx_undetermined
        assert tx.krw_amount == Decimal("200")
        assert stats.undetermined_fx == [("종합1", date(2024, 1, 12), 1)]

    def test_overseas_trade_log_pnl(self, batch: RawBatch) -> None:
        """해외 매매일지 손익/수익률 복사"""
        transactions, _ = TransactionBuilder(batch).build()
        tx = _by_seq(transactions, date(2024, 1, 12), 1)

        assert tx.trade_date == date(2024, 1, 10)
        assert tx.profit_loss == Decimal("33.5")
        assert tx.yield_rate == Decimal("20.1")

    def test_trade_log_without_matching_side(
        self, raw_factory: Callable, trade_log_factory: Callable, sample_stocks: list[Stock]
    ) -> None:
        """매수만 있는 매매일지 행에서는 매도 손익/수익률을 복사하지 않음"""
        batch = RawBatch(
            transactions=(
                raw_factory(
                    "주식매도출고",
                    name="삼성전자",
                    transaction_date=date(2024, 1, 5),
                    quantity=2,
                    amount=160000,
                ),
            ),
            trade_logs=(
                trade_log_factory("삼성전자", date(2024, 1, 3), buy_quantity=10, buy_amount=700000),
            ),
            stocks=tuple(sample_stocks),
        )

        transactions, _ = TransactionBuilder(batch).build()

        (tx,) = transactions
        assert tx.trade_date == date(2024, 1, 3)
        assert tx.profit_loss is None
        assert tx.yield_rate is None

    def test_uncollected_suffix(self, raw_factory: Callable) -> None:
        """"(미수)" 변형은 정규화 라벨 + 원문 보존"""
        batch = RawBatch(
            transactions=(
                raw_factory("외화매도원화입금(미수)", transaction_date=FX_DAY, amount=1380000),
            )
        )

        transactions, stats = TransactionBuilder(batch).build()

        assert transactions[0].type_code == "외화매도원화입금"
        assert transactions[0].raw_type_code == "외화매도원화입금(미수)"
        assert transactions[0].kind == TransactionKind.DEPOSIT
        # 외화 측 행이 없으므로 환율 미산출
        assert stats.undetermined_fx == [("종합1", FX_DAY, 1)]

    def test_threshold_override(self, batch: RawBatch) -> None:
        """기준 점수를 높이면 부분 일치는 채택되지 않음"""
        transactions, _ = TransactionBuilder(batch, name_match_threshold=0.99).build()
        tx = _by_seq(transactions, date(2024, 1, 5), 2)

        # 토큰이 완전히 같으면 1.0
        assert tx.name == "TIGER 미국S&P500"

    def test_empty_batch(self) -> None:
        transactions, stats = TransactionBuilder(RawBatch()).build()

        assert transactions == []
        assert not stats.skipped_codes
