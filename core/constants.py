"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from decimal import Decimal
from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → 프로젝트 루트)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    BASE_CURRENCY: str = "KRW"
    ALL_ACCOUNTS: str = "ALL"  # 전체 계좌 합산 행

    # 환율 조회 실패 시 사용하는 기본 환율
    FALLBACK_EXCHANGE_RATES: dict[str, Decimal] = {"USD": Decimal("1450")}

    HTTP_TIMEOUT_SEC: float = 5.0


class Tolerances:
    """수치 허용 오차"""

    # 매도 후 잔여 수량이 이 값 이하이면 0으로 간주
    QTY_EPSILON: Decimal = Decimal("0.000001")

    # 표시/재계산용 소수 자릿수
    PRICE_PLACES: int = 2


class Matching:
    """종목명 보정 매칭 기준"""

    NAME_MATCH_THRESHOLD: float = 0.3  # 이 점수를 초과해야 매칭 인정
    PARTIAL_MATCH_CAP: float = 0.8  # 부분 문자열 일치 점수 상한


class FeeRates:
    """예상 매도 수수료율 (평가금액 기준)"""

    DOMESTIC: Decimal = Decimal("0.0020")
    OVERSEAS: Decimal = Decimal("0.0025")


class MarketCodes:
    """시세 조회용 특수 코드"""

    GOLD: str = "M04020000"  # 금현물 (원/g)
    METALS_MARKET: str = "METALS"


class SheetNames:
    """증권사 엑셀 내보내기 시트명"""

    GENERAL_LEDGER: str = "전체거래내역"
    DOMESTIC_TRADE_LOG: str = "매매일지"
    OVERSEAS_TRADE_LOG: str = "해외매매일지"


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    DEFAULT_DB: Path = DATA_DIR / "stockoverview.db"
