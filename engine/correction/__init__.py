"""
원장 보정 모듈

종목명 보정, 매매일자 보정, 실효 환율 산출, 보정 거래내역 생성
"""

from engine.correction.date_corrector import DateCorrector
from engine.correction.fx_rate import FxRateResolver, effective_rate
from engine.correction.name_resolver import NameResolver, resolve, tokenize
from engine.correction.transaction_builder import (
    BuildStats,
    TransactionBuilder,
    build_name_pool,
)

__all__ = [
    "BuildStats",
    "DateCorrector",
    "FxRateResolver",
    "NameResolver",
    "TransactionBuilder",
    "build_name_pool",
    "effective_rate",
    "resolve",
    "tokenize",
]
