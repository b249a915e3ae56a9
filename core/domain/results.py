"""
정합 실행 결과

reconcile() 한 번의 출력(보정 거래내역, 계좌별 종목 현황, 계좌 현황)과
데이터 품질 보고서를 묶는다. 보고서는 저장 대상이 아니며 로그/CLI 출력용.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from core.domain.models import AccountStatus, AccountStockStatus, CorrectedTransaction


@dataclass(frozen=True)
class NegativePosition:
    """과매도로 음수가 된 포지션 (데이터 품질 신호)"""

    account: str
    stock_code: str
    quantity: Decimal
    trade_date: date
    sequence_no: int


@dataclass
class ReconciliationReport:
    """데이터 품질 보고서

    엔진은 데이터 문제로 실패하지 않는다. 대신 여기에 모아 호출자에게 전달.

    Attributes:
        raw_count: 입력 원장 행 수
        corrected_count: 생성된 보정 거래내역 수
        unresolved_names: 종목명 보정 실패한 원장 거래명
        unresolved_codes: 종목코드를 찾지 못한 보정 종목명
        undetermined_fx: 환율 산출 실패 행 (계좌, 결제일, 거래번호)
        negative_positions: 과매도 포지션
        skipped_codes: 대상이 아닌 거래종류별 건너뛴 행 수
    """

    raw_count: int = 0
    corrected_count: int = 0
    unresolved_names: list[str] = field(default_factory=list)
    unresolved_codes: list[str] = field(default_factory=list)
    undetermined_fx: list[tuple[str, date, int]] = field(default_factory=list)
    negative_positions: list[NegativePosition] = field(default_factory=list)
    skipped_codes: dict[str, int] = field(default_factory=dict)

    @property
    def skipped_count(self) -> int:
        return sum(self.skipped_codes.values())

    @property
    def has_anomalies(self) -> bool:
        return bool(self.negative_positions or self.undetermined_fx)

    def summary(self) -> str:
        return (
            f"원장 {self.raw_count}건 → 보정 {self.corrected_count}건, "
            f"건너뜀 {self.skipped_count}건, "
            f"종목명 미보정 {len(self.unresolved_names)}건, "
            f"종목코드 없음 {len(self.unresolved_codes)}건, "
            f"환율 미산출 {len(self.undetermined_fx)}건, "
            f"음수 포지션 {len(self.negative_positions)}건"
        )


@dataclass(frozen=True)
class ReconciliationResult:
    """정합 실행 결과 (세 컬렉션은 항상 함께 교체)"""

    transactions: tuple[CorrectedTransaction, ...]
    stock_statuses: tuple[AccountStockStatus, ...]
    account_statuses: tuple[AccountStatus, ...]
    report: ReconciliationReport = field(default_factory=ReconciliationReport, compare=False)
