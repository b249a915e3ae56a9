"""
집계 모듈

계좌 현황, 전체 현황, 포트폴리오 리밸런싱, 종목별 보유 현황
"""

from engine.aggregation.account import build_account_statuses
from engine.aggregation.common import PriceSnapshot, cash_flow, to_krw
from engine.aggregation.holdings import HoldingItem, build_holdings
from engine.aggregation.overall import OverallCategory, OverallStats, build_overall_stats
from engine.aggregation.portfolio import PortfolioItem, PortfolioView, build_portfolio

__all__ = [
    "HoldingItem",
    "OverallCategory",
    "OverallStats",
    "PortfolioItem",
    "PortfolioView",
    "PriceSnapshot",
    "build_account_statuses",
    "build_holdings",
    "build_overall_stats",
    "build_portfolio",
    "cash_flow",
    "to_krw",
]
