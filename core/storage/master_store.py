"""
MasterStore - 종목 마스터 / 포트폴리오 목표 저장소

종목 마스터는 종목명 보정 후보군과 종목코드 조회에 사용되고,
current_price 컬럼은 시세 조회 실패 시 마지막으로 알려진 가격이 된다.
"""

import logging
from decimal import Decimal
from typing import Iterable

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.models import PortfolioTarget, Stock
from core.storage.columns import dec, parse_dec

logger = logging.getLogger(__name__)


class MasterStore:
    """종목 마스터 저장소

    Args:
        db: SQLiteAdapter 인스턴스
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def upsert_stocks(self, stocks: Iterable[Stock]) -> int:
        """종목 마스터 추가/갱신

        Returns:
            처리한 종목 수
        """
        rows = [
            (
                stock.code,
                stock.name,
                stock.short_name,
                stock.stock_type,
                stock.market_type,
                stock.currency,
                dec(stock.current_price),
            )
            for stock in stocks
        ]

        async with self.db.transaction() as conn:
            await conn.executemany(
                """
                INSERT INTO stocks (code, name, short_name, stock_type, market_type, currency, current_price)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(code) DO UPDATE SET
                    name = excluded.name,
                    short_name = excluded.short_name,
                    stock_type = excluded.stock_type,
                    market_type = excluded.market_type,
                    currency = excluded.currency,
                    current_price = excluded.current_price,
                    updated_at = datetime('now')
                """,
                rows,
            )

        logger.info(f"종목 마스터 갱신: {len(rows)}건")
        return len(rows)

    async def list_stocks(self) -> list[Stock]:
        """종목 마스터 전체 조회 (등록 순)"""
        rows = await self.db.fetchall(
            """
            SELECT code, name, short_name, stock_type, market_type, currency, current_price
            FROM stocks
            ORDER BY rowid
            """
        )
        return [
            Stock(
                code=row[0],
                name=row[1],
                short_name=row[2],
                stock_type=row[3],
                market_type=row[4],
                currency=row[5],
                current_price=parse_dec(row[6]),
            )
            for row in rows
        ]

    async def update_prices(self, prices: dict[str, Decimal]) -> None:
        """마지막으로 알려진 현재가 갱신"""
        if not prices:
            return

        async with self.db.transaction() as conn:
            await conn.executemany(
                "UPDATE stocks SET current_price = ?, updated_at = datetime('now') WHERE code = ?",
                [(dec(price), code) for code, price in prices.items()],
            )

        logger.debug(f"현재가 갱신: {len(prices)}건")

    async def replace_portfolio_targets(self, targets: Iterable[PortfolioTarget]) -> None:
        """포트폴리오 목표 비중 전체 교체"""
        rows = [(t.stock_code, dec(t.target_weight)) for t in targets]

        async with self.db.transaction() as conn:
            await conn.execute("DELETE FROM portfolio_targets")
            await conn.executemany(
                "INSERT INTO portfolio_targets (stock_code, target_weight) VALUES (?, ?)",
                rows,
            )

    async def list_portfolio_targets(self) -> list[PortfolioTarget]:
        rows = await self.db.fetchall(
            "SELECT stock_code, target_weight FROM portfolio_targets ORDER BY rowid"
        )
        return [PortfolioTarget(stock_code=row[0], target_weight=parse_dec(row[1])) for row in rows]
