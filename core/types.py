"""
타입 정의 모듈

Enum, Dataclass 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from dataclasses import dataclass
from enum import Enum


class TransactionKind(str, Enum):
    """정규화된 거래 종류 (닫힌 집합)

    증권사 원장의 자유 텍스트 거래종류는 모두 이 중 하나로 분류된다.
    """

    BUY = "BUY"  # 매수
    SELL = "SELL"  # 매도
    DEPOSIT = "DEPOSIT"  # 입금
    WITHDRAWAL = "WITHDRAWAL"  # 출금
    INTEREST = "INTEREST"  # 이자/배당/분배금
    FEE = "FEE"  # 수수료
    TAX = "TAX"  # 세금


class AmountSource(str, Enum):
    """원장 행에서 거래금액으로 사용할 컬럼"""

    LOCAL = "LOCAL"  # 거래금액
    FOREIGN = "FOREIGN"  # 외화거래금액
    FOREIGN_DW = "FOREIGN_DW"  # 외화입출금액 (제세금 차감 후)


class FxLeg(str, Enum):
    """환전 거래의 구성 행 역할"""

    BUY_LOCAL = "BUY_LOCAL"  # 외화매수 원화출금
    BUY_FOREIGN = "BUY_FOREIGN"  # 외화매수 외화입금
    SELL_FOREIGN = "SELL_FOREIGN"  # 외화매도 외화출금
    SELL_LOCAL = "SELL_LOCAL"  # 외화매도 원화입금
    ADJUST_DEBIT = "ADJUST_DEBIT"  # 선환전차액출금
    ADJUST_CREDIT = "ADJUST_CREDIT"  # 선환전차액입금


class FxDirection(str, Enum):
    """환전 방향"""

    BUY = "BUY"  # 원화 → 외화
    SELL = "SELL"  # 외화 → 원화


@dataclass(frozen=True)
class PositionKey:
    """포지션 식별자 (불변)

    원가 계산은 (계좌, 종목코드) 단위로 독립 재생된다.
    """

    account: str
    stock_code: str

    def __str__(self) -> str:
        return f"{self.account}:{self.stock_code}"
