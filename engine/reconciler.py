"""
정합 엔진 진입점

원천 데이터 스냅샷 하나를 받아 보정 거래내역, 계좌별 종목 현황, 계좌 현황을
한 번에 만든다. 동기 순수 함수이며 I/O와 전역 상태가 없다.

데이터 문제(종목명/일자 미보정, 환율 미산출, 과매도)로 실패하지 않고
결과의 report에 모아 돌려준다. 원장이 비어 있으면 빈 결과.

사용 예시:
    result = reconcile(batch, exchange_rates={"USD": Decimal("1380")})
    logger.info(result.report.summary())
"""

import logging
from decimal import Decimal
from typing import Mapping

from core.constants import Defaults, Matching
from core.domain.models import RawBatch
from core.domain.results import ReconciliationReport, ReconciliationResult
from engine.aggregation.account import build_account_statuses
from engine.correction.transaction_builder import TransactionBuilder
from engine.cost_basis.ledger import CostBasisLedger

logger = logging.getLogger(__name__)


class Reconciler:
    """정합 엔진

    Args:
        name_match_threshold: 종목명 보정 채택 기준 점수
    """

    def __init__(self, name_match_threshold: float = Matching.NAME_MATCH_THRESHOLD):
        self.name_match_threshold = name_match_threshold

    def reconcile(
        self,
        batch: RawBatch,
        exchange_rates: Mapping[str, Decimal] | None = None,
    ) -> ReconciliationResult:
        """정합 1회 실행

        Args:
            batch: 원천 데이터 스냅샷
            exchange_rates: 계좌 현황 원화 환산용 최신 환율 (None이면 기본 환율)

        Returns:
            ReconciliationResult
        """
        if exchange_rates is None:
            exchange_rates = Defaults.FALLBACK_EXCHANGE_RATES

        report = ReconciliationReport(raw_count=len(batch.transactions))
        if batch.is_empty:
            logger.info("원장이 비어 있어 정합을 건너뜁니다")
            return ReconciliationResult(
                transactions=(),
                stock_statuses=(),
                account_statuses=(),
                report=report,
            )

        builder = TransactionBuilder(batch, name_match_threshold=self.name_match_threshold)
        transactions, stats = builder.build()

        ledger = CostBasisLedger()
        stock_statuses = ledger.replay(transactions)
        account_statuses = build_account_statuses(transactions, stock_statuses, exchange_rates)

        report.corrected_count = len(transactions)
        report.unresolved_names = stats.unresolved_names
        report.unresolved_codes = stats.unresolved_codes
        report.undetermined_fx = stats.undetermined_fx
        report.skipped_codes = dict(sorted(stats.skipped_codes.items()))
        report.negative_positions = list(ledger.negative_positions)

        logger.info(f"정합 완료: {report.summary()}")
        if report.skipped_codes:
            logger.info(f"건너뛴 거래종류: {report.skipped_codes}")
        for name in report.unresolved_names:
            logger.debug(f"종목명 미보정: {name}")

        return ReconciliationResult(
            transactions=tuple(transactions),
            stock_statuses=tuple(stock_statuses),
            account_statuses=tuple(account_statuses),
            report=report,
        )


def reconcile(
    batch: RawBatch,
    exchange_rates: Mapping[str, Decimal] | None = None,
    name_match_threshold: float = Matching.NAME_MATCH_THRESHOLD,
) -> ReconciliationResult:
    """정합 1회 실행 (Reconciler 단축 함수)"""
    return Reconciler(name_match_threshold).reconcile(batch, exchange_rates)
