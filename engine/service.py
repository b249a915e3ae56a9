"""
정합 서비스

저장소와 정합 엔진을 잇는 비동기 오케스트레이션.

1. import_workbook: 엑셀 내보내기 → 원천 데이터 전체 교체
2. run: 원천 스냅샷 로드 → 집계 시점 환율 → reconcile() → 결과 전체 교체 (단일 트랜잭션)
3. refresh_snapshot: 보유 종목 현재가/환율 조회 → 마지막 가격 갱신
4. holdings / portfolio / overall: 저장된 결과 기준 조회 뷰

사용 예시:
```python
async with SQLiteAdapter(config.db_path) as db:
    await init_schema(db)
    service = ReconciliationService(db, config)
    await service.import_workbook(Path("export.xlsx"))
    result = await service.run()
```
"""

import logging
from decimal import Decimal
from pathlib import Path
from typing import Mapping

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.excel.reader import ExcelReader
from adapters.interfaces import IPriceProvider
from core.config.loader import AppConfig
from core.domain.models import RawBatch
from core.domain.results import ReconciliationResult
from core.storage.master_store import MasterStore
from core.storage.raw_store import RawStore
from core.storage.result_store import ResultStore
from engine.aggregation.common import PriceSnapshot
from engine.aggregation.holdings import HoldingItem, build_holdings
from engine.aggregation.overall import OverallStats, build_overall_stats
from engine.aggregation.portfolio import PortfolioView, build_portfolio
from engine.reconciler import Reconciler
from engine.valuation import collect_exchange_rates, collect_snapshot

logger = logging.getLogger(__name__)


class ReconciliationService:
    """정합 서비스

    Args:
        db: SQLite 어댑터 (연결된 상태)
        config: 애플리케이션 설정
        price_provider: 시세 제공자 (refresh_snapshot에서만 사용)
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        config: AppConfig,
        price_provider: IPriceProvider | None = None,
    ):
        self.db = db
        self.config = config
        self.price_provider = price_provider

        self.raw_store = RawStore(db)
        self.result_store = ResultStore(db)
        self.master_store = MasterStore(db)
        self.reconciler = Reconciler(name_match_threshold=config.name_match_threshold)

    # =========================================================================
    # 수입 / 정합
    # =========================================================================

    async def import_batch(self, batch: RawBatch) -> tuple[int, int, int]:
        """원천 데이터 전체 교체 (종목 마스터가 있으면 함께 갱신)"""
        counts = await self.raw_store.replace_all(
            batch.transactions,
            batch.trade_logs,
            batch.overseas_trade_logs,
        )
        if batch.stocks:
            await self.master_store.upsert_stocks(batch.stocks)
        return counts

    async def import_workbook(self, path: Path) -> tuple[int, int, int]:
        """엑셀 내보내기 파일 수입

        Raises:
            ExcelImportError: 파일을 열 수 없거나 필수 시트 없음
        """
        batch = ExcelReader(path).read_batch()
        counts = await self.import_batch(batch)
        logger.info(
            f"수입 완료: {path.name} (원장 {counts[0]}건, 매매일지 {counts[1]}건, "
            f"해외매매일지 {counts[2]}건)"
        )
        return counts

    async def load_batch(self) -> RawBatch:
        """원천 데이터 + 종목 마스터 스냅샷"""
        batch = await self.raw_store.load_batch()
        stocks = await self.master_store.list_stocks()
        return RawBatch(
            transactions=batch.transactions,
            trade_logs=batch.trade_logs,
            overseas_trade_logs=batch.overseas_trade_logs,
            stocks=tuple(stocks),
        )

    async def current_exchange_rates(self, batch: RawBatch) -> dict[str, Decimal]:
        """집계 시점 환율

        시세 제공자가 있으면 원장에 나온 외화 통화를 조회하고
        (실패하면 설정의 기본 환율), 없으면 기본 환율 그대로.
        """
        if self.price_provider is None:
            return dict(self.config.fallback_exchange_rates)

        currencies = {row.currency for row in batch.transactions}
        return await collect_exchange_rates(
            self.price_provider,
            currencies,
            self.config.fallback_exchange_rates,
        )

    async def run(
        self,
        exchange_rates: Mapping[str, Decimal] | None = None,
    ) -> ReconciliationResult:
        """정합 실행 후 결과 저장

        Args:
            exchange_rates: 계좌 현황 원화 환산 환율 (없으면 current_exchange_rates)

        저장은 단일 트랜잭션이며 실패하면 이전 결과가 그대로 남는다.
        """
        batch = await self.load_batch()
        if exchange_rates is None:
            exchange_rates = await self.current_exchange_rates(batch)

        result = self.reconciler.reconcile(batch, exchange_rates=exchange_rates)
        await self.result_store.replace_all(result)

        if result.report.has_anomalies:
            logger.warning(f"데이터 품질 경고: {result.report.summary()}")
        return result

    # =========================================================================
    # 시세
    # =========================================================================

    async def refresh_snapshot(self) -> PriceSnapshot:
        """보유 종목 시세 스냅샷 조회 (조회 성공한 가격은 마스터에 저장)

        시세 제공자가 없으면 종목 마스터의 마지막 가격과 기본 환율 사용.
        """
        stock_statuses = await self.result_store.load_stock_statuses()
        stocks = await self.master_store.list_stocks()

        if self.price_provider is None:
            return PriceSnapshot(
                prices={stock.code: stock.current_price for stock in stocks},
                exchange_rates=dict(self.config.fallback_exchange_rates),
            )

        snapshot = await collect_snapshot(
            self.price_provider,
            stock_statuses,
            stocks,
            fallback_rates=self.config.fallback_exchange_rates,
        )

        known = {stock.code for stock in stocks}
        await self.master_store.update_prices(
            {code: price for code, price in snapshot.prices.items() if code in known and price > 0}
        )
        return snapshot

    # =========================================================================
    # 조회 뷰
    # =========================================================================

    async def holdings(
        self,
        snapshot: PriceSnapshot,
        account: str | None = None,
    ) -> list[HoldingItem]:
        transactions = await self.result_store.load_transactions(account)
        stock_statuses = await self.result_store.load_stock_statuses()
        stocks = await self.master_store.list_stocks()
        return build_holdings(stock_statuses, transactions, stocks, snapshot, account=account)

    async def portfolio(self, snapshot: PriceSnapshot) -> PortfolioView:
        targets = await self.master_store.list_portfolio_targets()
        transactions = await self.result_store.load_transactions()
        stock_statuses = await self.result_store.load_stock_statuses()
        stocks = await self.master_store.list_stocks()
        return build_portfolio(targets, transactions, stock_statuses, stocks, snapshot)

    async def overall(self, snapshot: PriceSnapshot) -> list[OverallStats]:
        targets = await self.master_store.list_portfolio_targets()
        transactions = await self.result_store.load_transactions()
        stock_statuses = await self.result_store.load_stock_statuses()
        return build_overall_stats(
            transactions,
            stock_statuses,
            snapshot,
            portfolio_codes=[t.stock_code for t in targets],
        )
