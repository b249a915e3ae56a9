"""
원천/결과/마스터 저장소 테스트

Decimal은 TEXT로 저장되므로 조회 후에도 정밀도가 유지되어야 한다.
"""

from datetime import date
from decimal import Decimal
from typing import Callable

import aiosqlite
import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.models import PortfolioTarget, RawBatch, Stock
from core.domain.results import ReconciliationResult
from core.storage.master_store import MasterStore
from core.storage.raw_store import RawStore
from core.storage.result_store import ResultStore
from engine.reconciler import reconcile


@pytest.fixture
def raw_batch(
    raw_factory: Callable,
    trade_log_factory: Callable,
    overseas_log_factory: Callable,
    sample_stocks: list[Stock],
) -> RawBatch:
    return RawBatch(
        transactions=(
            raw_factory("이체입금", transaction_date=date(2024, 1, 2), amount=1000000),
            raw_factory(
                "주식매수입고",
                name="삼성전자",
                transaction_date=date(2024, 1, 5),
                sequence_no=2,
                quantity="3",
                unit_price="70000",
                amount="210000",
                fee="31.5",
            ),
            raw_factory(
                "해외주식매수입고",
                name="애플",
                transaction_date=date(2024, 1, 8),
                sequence_no=4,
                quantity="0.5",
                foreign_amount="95.125",
                currency_code="USD",
                counterparty_name="홍길동",
            ),
        ),
        trade_logs=(
            trade_log_factory("삼성전자", date(2024, 1, 3), buy_quantity=3, yield_rate="-1.25"),
        ),
        overseas_trade_logs=(
            overseas_log_factory("AAPL", "애플", date(2024, 1, 5), buy_quantity="0.5"),
        ),
        stocks=tuple(sample_stocks),
    )


class TestRawStore:
    """RawStore 테스트"""

    @pytest.mark.asyncio
    async def test_round_trip(self, db: SQLiteAdapter, raw_batch: RawBatch) -> None:
        store = RawStore(db)

        counts = await store.replace_all(
            raw_batch.transactions, raw_batch.trade_logs, raw_batch.overseas_trade_logs
        )
        loaded = await store.load_batch()

        assert counts == (3, 1, 1)
        assert loaded.transactions == raw_batch.transactions
        assert loaded.trade_logs == raw_batch.trade_logs
        assert loaded.overseas_trade_logs == raw_batch.overseas_trade_logs
        assert loaded.transactions[1].fee == Decimal("31.5")

    @pytest.mark.asyncio
    async def test_replace_all_discards_previous(
        self, db: SQLiteAdapter, raw_batch: RawBatch, raw_factory: Callable
    ) -> None:
        """수입은 누적이 아니라 전체 교체"""
        store = RawStore(db)
        await store.replace_all(
            raw_batch.transactions, raw_batch.trade_logs, raw_batch.overseas_trade_logs
        )

        await store.replace_all([raw_factory("이체입금", amount=5)], [], [])

        loaded = await store.load_batch()
        assert len(loaded.transactions) == 1
        assert loaded.trade_logs == ()
        assert loaded.overseas_trade_logs == ()


class TestResultStore:
    """ResultStore 테스트"""

    @pytest.mark.asyncio
    async def test_round_trip(self, db: SQLiteAdapter, raw_batch: RawBatch) -> None:
        store = ResultStore(db)
        result = reconcile(raw_batch)

        await store.replace_all(result)
        loaded = await store.load_result()

        def key(tx):
            return (tx.account, tx.trade_date, tx.sequence_no)

        assert sorted(loaded.transactions, key=key) == sorted(result.transactions, key=key)
        assert sorted(loaded.stock_statuses, key=lambda s: s.stock_code) == sorted(
            result.stock_statuses, key=lambda s: s.stock_code
        )
        assert list(loaded.account_statuses) == list(result.account_statuses)

    @pytest.mark.asyncio
    async def test_load_transactions_by_account(
        self, db: SQLiteAdapter, raw_batch: RawBatch
    ) -> None:
        store = ResultStore(db)
        await store.replace_all(reconcile(raw_batch))

        assert len(await store.load_transactions("종합1")) == 3
        assert await store.load_transactions("없는계좌") == []

    @pytest.mark.asyncio
    async def test_failed_replace_keeps_previous_result(
        self, db: SQLiteAdapter, raw_batch: RawBatch
    ) -> None:
        """저장 중 실패하면 이전 결과가 그대로 남는다"""
        store = ResultStore(db)
        previous = reconcile(raw_batch)
        await store.replace_all(previous)

        # 계좌 현황 기본키 중복 → 마지막 INSERT에서 실패
        broken = ReconciliationResult(
            transactions=(),
            stock_statuses=(),
            account_statuses=previous.account_statuses[:1] * 2,
        )
        with pytest.raises(aiosqlite.IntegrityError):
            await store.replace_all(broken)

        loaded = await store.load_result()
        assert len(loaded.transactions) == len(previous.transactions)
        assert list(loaded.account_statuses) == list(previous.account_statuses)


class TestMasterStore:
    """MasterStore 테스트"""

    @pytest.mark.asyncio
    async def test_upsert_and_list(self, db: SQLiteAdapter, sample_stocks: list[Stock]) -> None:
        store = MasterStore(db)

        assert await store.upsert_stocks(sample_stocks) == 3
        assert await store.list_stocks() == sample_stocks

    @pytest.mark.asyncio
    async def test_upsert_overwrites(self, db: SQLiteAdapter, sample_stocks: list[Stock]) -> None:
        store = MasterStore(db)
        await store.upsert_stocks(sample_stocks)

        await store.upsert_stocks([Stock(code="005930", name="삼성전자", short_name="삼전")])

        stocks = await store.list_stocks()
        assert len(stocks) == 3
        assert stocks[0].display_name == "삼전"

    @pytest.mark.asyncio
    async def test_update_prices(self, db: SQLiteAdapter, sample_stocks: list[Stock]) -> None:
        store = MasterStore(db)
        await store.upsert_stocks(sample_stocks)

        await store.update_prices({"AAPL": Decimal("201.25"), "UNKNOWN": Decimal("1")})

        prices = {s.code: s.current_price for s in await store.list_stocks()}
        assert prices["AAPL"] == Decimal("201.25")
        assert prices["005930"] == Decimal("70000")
        assert "UNKNOWN" not in prices

    @pytest.mark.asyncio
    async def test_portfolio_targets_replaced(self, db: SQLiteAdapter) -> None:
        store = MasterStore(db)
        await store.replace_portfolio_targets(
            [PortfolioTarget("005930", Decimal("60")), PortfolioTarget("AAPL", Decimal("40"))]
        )

        await store.replace_portfolio_targets([PortfolioTarget("360750", Decimal("100"))])

        assert await store.list_portfolio_targets() == [
            PortfolioTarget("360750", Decimal("100"))
        ]
