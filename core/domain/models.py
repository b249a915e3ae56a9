"""
도메인 모델

원천 데이터(전체거래내역, 매매일지, 해외매매일지)와
정합 결과(보정 거래내역, 계좌별 종목 현황, 계좌 현황) 정의.
모든 금액/수량/단가는 Decimal, 일자는 date 사용.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from core.constants import Defaults
from core.types import PositionKey, TransactionKind
from core.utils.numbers import ZERO


# =========================================================================
# 원천 데이터 (수입 시 전체 교체, 이후 불변)
# =========================================================================


@dataclass(frozen=True)
class RawTransaction:
    """전체거래내역 원장 행

    transaction_date는 결제일 기준이라 주식 매매의 경우 실제 매매일보다
    결제 주기만큼 늦다.

    Attributes:
        account: 계좌
        transaction_date: 거래일자 (결제일)
        sequence_no: 거래번호 (같은 날 거래의 순서)
        type_code: 거래종류 (예: 주식매수입고)
        name: 거래명 (종목명이 잘려 있거나 변형된 경우가 많음)
        quantity: 수량
        unit_price: 단가
        amount: 거래금액 (원화)
        foreign_amount: 외화거래금액
        foreign_dw_amount: 외화입출금액
        fee: 수수료
        tax: 제세금합
        currency_code: 통화코드 (빈 값이면 KRW)
    """

    account: str
    transaction_date: date
    sequence_no: int
    type_code: str
    name: str
    quantity: Decimal = ZERO
    unit_price: Decimal = ZERO
    amount: Decimal = ZERO
    foreign_amount: Decimal = ZERO
    foreign_dw_amount: Decimal = ZERO
    fee: Decimal = ZERO
    tax: Decimal = ZERO
    currency_code: str = ""
    original_no: str = ""
    deposit_withdrawal_amount: Decimal = ZERO
    balance: Decimal = ZERO
    foreign_balance: Decimal = ZERO
    counterparty_agency: str = ""
    counterparty_name: str = ""
    counterparty_account: str = ""

    @property
    def currency(self) -> str:
        """통화코드 (빈 값은 KRW)"""
        return self.currency_code.strip() or Defaults.BASE_CURRENCY


@dataclass(frozen=True)
class TradeLogEntry:
    """국내 매매일지 행

    (계좌, 매매일자, 종목명) 단위로 일별 매수/매도가 집계되어 있고
    증권사가 계산한 손익과 수익률을 포함한다.
    """

    account: str
    trade_date: date
    name: str
    buy_quantity: Decimal = ZERO
    buy_price: Decimal = ZERO
    buy_amount: Decimal = ZERO
    sell_quantity: Decimal = ZERO
    sell_price: Decimal = ZERO
    sell_amount: Decimal = ZERO
    trade_fee: Decimal = ZERO
    profit_loss: Decimal = ZERO
    yield_rate: Decimal = ZERO


@dataclass(frozen=True)
class OverseasTradeLogEntry:
    """해외 매매일지 행

    (계좌, 매매일자, 종목번호) 단위. 금액은 외화 기준이며
    원화 환산 금액이 별도 컬럼으로 존재한다.
    """

    account: str
    trade_date: date
    stock_code: str
    name: str
    currency: str = "USD"
    balance_quantity: Decimal = ZERO
    buy_avg_exchange_rate: Decimal = ZERO
    trade_exchange_rate: Decimal = ZERO
    buy_quantity: Decimal = ZERO
    buy_price: Decimal = ZERO
    buy_amount: Decimal = ZERO
    krw_buy_amount: Decimal = ZERO
    sell_quantity: Decimal = ZERO
    sell_price: Decimal = ZERO
    sell_amount: Decimal = ZERO
    krw_sell_amount: Decimal = ZERO
    fee: Decimal = ZERO
    tax: Decimal = ZERO
    krw_total_cost: Decimal = ZERO
    original_buy_avg_price: Decimal = ZERO
    trading_profit: Decimal = ZERO
    krw_trading_profit: Decimal = ZERO
    exchange_profit: Decimal = ZERO
    total_evaluation_profit: Decimal = ZERO
    yield_rate: Decimal = ZERO
    converted_yield_rate: Decimal = ZERO


@dataclass(frozen=True)
class Stock:
    """종목 마스터

    Attributes:
        code: 종목코드 (해외는 티커)
        name: 종목명 (매매일지 표기와 동일)
        short_name: 종목약어명
        stock_type: 종목유형 (KOREA, OVERSEAS 등)
        market_type: 시장구분 (KOSPI, KOSDAQ, METALS 등)
        currency: 통화
        current_price: 마지막으로 알려진 현재가
    """

    code: str
    name: str
    currency: str = Defaults.BASE_CURRENCY
    short_name: str = ""
    stock_type: str = "KOREA"
    market_type: str = "KOREA"
    current_price: Decimal = ZERO

    @property
    def display_name(self) -> str:
        return self.short_name or self.name


@dataclass(frozen=True)
class PortfolioTarget:
    """포트폴리오 목표 비중 (퍼센트)"""

    stock_code: str
    target_weight: Decimal


@dataclass(frozen=True)
class RawBatch:
    """정합 1회 실행의 입력 스냅샷

    세 원천 데이터와 종목 마스터 전체를 담는다.
    """

    transactions: tuple[RawTransaction, ...] = ()
    trade_logs: tuple[TradeLogEntry, ...] = ()
    overseas_trade_logs: tuple[OverseasTradeLogEntry, ...] = ()
    stocks: tuple[Stock, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.transactions


# =========================================================================
# 정합 결과 (실행마다 전체 교체)
# =========================================================================


@dataclass(frozen=True)
class CorrectedTransaction:
    """보정 거래내역

    원장 행 하나당 하나 생성. 종목명/매매일자/금액/환율이 보정되어 있다.

    Attributes:
        account: 계좌
        trade_date: 보정된 매매일자
        settlement_date: 원장 거래일자 (결제일)
        sequence_no: 원장 거래번호 (정렬 키)
        kind: 정규화된 거래 종류
        type_code: 정규화된 거래종류 라벨 ("(미수)" 접미어 제거)
        raw_type_code: 원장의 거래종류 원문
        name: 보정된 종목명
        raw_name: 원장의 거래명 원문
        stock_code: 종목코드 (보정 실패 시 빈 값)
        unit_price: 단가 (환전 행은 실효 환율)
        quantity: 수량
        fee: 수수료
        tax: 세금
        amount: 거래금액 (행 통화 기준)
        currency_code: 통화코드
        fx_rate: 원화 환산 환율 (KRW=1, 산출 실패=0)
        krw_amount: 원화 환산 금액
        profit_loss: 매매일지 손익 (해당 시)
        yield_rate: 매매일지 수익률 (해당 시)
    """

    account: str
    trade_date: date
    settlement_date: date
    sequence_no: int
    kind: TransactionKind
    type_code: str
    raw_type_code: str
    name: str
    raw_name: str
    stock_code: str
    unit_price: Decimal
    quantity: Decimal
    fee: Decimal
    tax: Decimal
    amount: Decimal
    currency_code: str
    fx_rate: Decimal
    krw_amount: Decimal
    profit_loss: Decimal | None = None
    yield_rate: Decimal | None = None

    @property
    def sort_key(self) -> tuple[date, int, str, date]:
        """재생 순서 키 (매매일자, 거래번호)"""
        return (self.trade_date, self.sequence_no, self.account, self.settlement_date)

    @property
    def position_key(self) -> PositionKey:
        return PositionKey(account=self.account, stock_code=self.stock_code)

    @property
    def fx_undetermined(self) -> bool:
        """외화 거래인데 환율을 산출하지 못한 경우"""
        return self.fx_rate == 0


@dataclass(frozen=True)
class AccountStockStatus:
    """계좌별 종목 현황

    Attributes:
        account: 계좌
        stock_code: 종목코드
        stock_name: 종목명
        quantity: 보유 수량 (과매도 시 음수 그대로 보고)
        average_price: 평균 매입단가
        investment_amount: 투자금액 (잔여 원가)
        realized_profit_loss: 실현손익
        realized_profit_loss_rate: 실현손익률 (매도 원가 가중 평균, %)
        currency_code: 통화코드
        sale_cost: 누적 매도 원가 (가중치)
    """

    account: str
    stock_code: str
    stock_name: str
    quantity: Decimal
    average_price: Decimal
    investment_amount: Decimal
    realized_profit_loss: Decimal
    realized_profit_loss_rate: Decimal
    currency_code: str
    sale_cost: Decimal = ZERO


@dataclass(frozen=True)
class AccountStatus:
    """계좌 현황

    account가 Defaults.ALL_ACCOUNTS인 행은 전체 계좌 합산.
    원화 합계 필드는 집계 시점의 최신 환율로 환산된 값.

    Attributes:
        account: 계좌
        total_deposit: 총 입금액 (원화 환산)
        total_withdrawal: 총 출금액 (원화 환산)
        principal: 원금
        operating_funds: 운용자금 (보유 종목 투자금액 합계, 원화 환산)
        realized_profit_loss: 실현손익 (원화 환산)
        realized_profit_loss_rate: 실현손익률 (%)
        deposits: 통화별 예수금
    """

    account: str
    total_deposit: Decimal
    total_withdrawal: Decimal
    principal: Decimal
    operating_funds: Decimal
    realized_profit_loss: Decimal
    realized_profit_loss_rate: Decimal
    deposits: dict[str, Decimal] = field(default_factory=dict)

    @property
    def krw_deposit(self) -> Decimal:
        return self.deposits.get("KRW", ZERO)

    @property
    def usd_deposit(self) -> Decimal:
        return self.deposits.get("USD", ZERO)
