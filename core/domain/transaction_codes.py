"""
거래종류 코드 테이블

증권사 원장의 자유 텍스트 거래종류를 닫힌 집합(TransactionKind)으로 분류한다.
원문 라벨은 보정 거래내역의 raw_type_code로 보존된다.

사용 예시:
    code = lookup("주식매수입고")
    if code is not None and code.resolves_name:
        ...
"""

from dataclasses import dataclass

from core.types import AmountSource, FxDirection, FxLeg, TransactionKind

UNCOLLECTED_SUFFIX = "(미수)"


@dataclass(frozen=True)
class TransactionCode:
    """거래종류 코드 정의

    Attributes:
        label: 정규화된 거래종류 라벨
        kind: 정규화된 거래 종류
        resolves_name: 종목명 보정 대상 여부
        corrects_date: 결제일 → 매매일 보정 대상 여부
        amount_source: 거래금액으로 사용할 원장 컬럼
        amount_is_net: 원장 금액이 이미 수수료/세금 차감 후인지 여부
        fx_leg: 환전 거래에서의 역할 (없으면 None)
        is_wire_transfer: 외부 이체 여부 (원금 계산 대상)
        is_stock_trade: 매매일지와 대사되는 주식 매매 여부
    """

    label: str
    kind: TransactionKind
    resolves_name: bool = False
    corrects_date: bool = False
    amount_source: AmountSource = AmountSource.LOCAL
    amount_is_net: bool = False
    fx_leg: FxLeg | None = None
    is_wire_transfer: bool = False
    is_stock_trade: bool = False

    @property
    def is_fx_conversion(self) -> bool:
        """환전 거래 구성 행 여부 (차액 조정 행 제외)"""
        return self.fx_leg is not None and self.fx_leg not in ADJUSTMENT_LEGS

    @property
    def is_local_conversion(self) -> bool:
        """환전 거래의 원화 측 행 여부"""
        return self.fx_leg in (FxLeg.BUY_LOCAL, FxLeg.SELL_LOCAL)

    @property
    def fx_direction(self) -> FxDirection | None:
        if self.fx_leg in (FxLeg.BUY_LOCAL, FxLeg.BUY_FOREIGN):
            return FxDirection.BUY
        if self.fx_leg in (FxLeg.SELL_LOCAL, FxLeg.SELL_FOREIGN):
            return FxDirection.SELL
        return None


ADJUSTMENT_LEGS = frozenset({FxLeg.ADJUST_DEBIT, FxLeg.ADJUST_CREDIT})


# =========================================================================
# 코드 테이블
# =========================================================================

_CODES: tuple[TransactionCode, ...] = (
    # 주식 매매 (원장 금액은 수수료/세금 반영 후 결제금액)
    TransactionCode(
        "주식매수입고",
        TransactionKind.BUY,
        resolves_name=True,
        corrects_date=True,
        amount_is_net=True,
        is_stock_trade=True,
    ),
    TransactionCode(
        "해외주식매수입고",
        TransactionKind.BUY,
        resolves_name=True,
        corrects_date=True,
        amount_source=AmountSource.FOREIGN,
        amount_is_net=True,
        is_stock_trade=True,
    ),
    TransactionCode(
        "금현물매수입고",
        TransactionKind.BUY,
        resolves_name=True,
        corrects_date=True,
        amount_is_net=True,
        is_stock_trade=True,
    ),
    TransactionCode(
        "주식매도출고",
        TransactionKind.SELL,
        resolves_name=True,
        corrects_date=True,
        amount_is_net=True,
        is_stock_trade=True,
    ),
    TransactionCode(
        "해외주식매도출고",
        TransactionKind.SELL,
        resolves_name=True,
        corrects_date=True,
        amount_source=AmountSource.FOREIGN,
        amount_is_net=True,
        is_stock_trade=True,
    ),
    # 이자/배당/분배금 (원장 금액은 세전, 세금 컬럼을 차감해야 순액)
    TransactionCode("예탁금이용료입금", TransactionKind.INTEREST),
    TransactionCode(
        "외화예탁금이용료입금",
        TransactionKind.INTEREST,
        amount_source=AmountSource.FOREIGN_DW,
    ),
    TransactionCode("배당금입금", TransactionKind.INTEREST, resolves_name=True),
    TransactionCode(
        "배당금외화입금",
        TransactionKind.INTEREST,
        resolves_name=True,
        amount_source=AmountSource.FOREIGN_DW,
    ),
    TransactionCode("ETF/상장클래스 분배금입금", TransactionKind.INTEREST, resolves_name=True),
    # 입금
    TransactionCode(
        "이체입금",
        TransactionKind.DEPOSIT,
        amount_is_net=True,
        is_wire_transfer=True,
    ),
    TransactionCode("계좌대체입금", TransactionKind.DEPOSIT, amount_is_net=True),
    TransactionCode(
        "외화매수외화입금",
        TransactionKind.DEPOSIT,
        amount_source=AmountSource.FOREIGN,
        amount_is_net=True,
        fx_leg=FxLeg.BUY_FOREIGN,
    ),
    TransactionCode(
        "외화매도원화입금",
        TransactionKind.DEPOSIT,
        amount_is_net=True,
        fx_leg=FxLeg.SELL_LOCAL,
    ),
    # 출금
    TransactionCode(
        "이체송금",
        TransactionKind.WITHDRAWAL,
        amount_is_net=True,
        is_wire_transfer=True,
    ),
    TransactionCode(
        "이체출금",
        TransactionKind.WITHDRAWAL,
        amount_is_net=True,
        is_wire_transfer=True,
    ),
    TransactionCode("계좌대체출금", TransactionKind.WITHDRAWAL, amount_is_net=True),
    TransactionCode(
        "외화매도외화출금",
        TransactionKind.WITHDRAWAL,
        amount_source=AmountSource.FOREIGN,
        amount_is_net=True,
        fx_leg=FxLeg.SELL_FOREIGN,
    ),
    # 외화 매수 (원화 출금)
    TransactionCode(
        "외화매수원화출금",
        TransactionKind.BUY,
        amount_is_net=True,
        fx_leg=FxLeg.BUY_LOCAL,
    ),
    # 세금/수수료
    TransactionCode("배당세출금", TransactionKind.TAX, amount_is_net=True),
    TransactionCode("금현물보관수수료세금", TransactionKind.TAX, amount_is_net=True),
    TransactionCode("금현물보관수수료", TransactionKind.FEE, amount_is_net=True),
)

# 환전 차액 조정 행 (환율 산출 근거로만 사용)
_ADJUSTMENTS: tuple[TransactionCode, ...] = (
    TransactionCode(
        "선환전차액출금",
        TransactionKind.WITHDRAWAL,
        amount_is_net=True,
        fx_leg=FxLeg.ADJUST_DEBIT,
    ),
    TransactionCode(
        "선환전차액입금",
        TransactionKind.DEPOSIT,
        amount_is_net=True,
        fx_leg=FxLeg.ADJUST_CREDIT,
    ),
)

TRANSACTION_CODES: dict[str, TransactionCode] = {code.label: code for code in _CODES}
ADJUSTMENT_CODES: dict[str, TransactionCode] = {code.label: code for code in _ADJUSTMENTS}


def canonical_label(raw_label: str) -> str:
    """원장 거래종류를 정규화된 라벨로 변환

    공백을 제거하고 "(미수)" 접미어를 떼어낸다.
    "ETF/상장클래스 분배금입금"처럼 라벨 자체에 공백이 있는 경우는 그대로 둔다.
    """
    label = raw_label.strip()
    if label.endswith(UNCOLLECTED_SUFFIX):
        label = label[: -len(UNCOLLECTED_SUFFIX)].rstrip()
    return label


def lookup(raw_label: str) -> TransactionCode | None:
    """보정 거래내역 대상 거래종류 조회

    Args:
        raw_label: 원장 거래종류 원문

    Returns:
        TransactionCode, 대상이 아니면 None
    """
    return TRANSACTION_CODES.get(canonical_label(raw_label))


def lookup_fx_evidence(raw_label: str) -> TransactionCode | None:
    """환율 산출 근거가 되는 거래종류 조회 (환전 행 + 차액 조정 행)"""
    label = canonical_label(raw_label)
    code = TRANSACTION_CODES.get(label) or ADJUSTMENT_CODES.get(label)
    if code is None or code.fx_leg is None:
        return None
    return code


def wire_transfer_labels() -> frozenset[str]:
    """원금 계산 대상 외부 이체 라벨"""
    return frozenset(code.label for code in _CODES if code.is_wire_transfer)
