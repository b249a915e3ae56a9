"""
설정 로더

settings.yaml 로드 및 AppConfig 생성.
파일이 없으면 기본값을 사용한다. 싱글턴 없이 생성된 객체를 명시적으로 전달.

settings.yaml 예시:
    db_path: data/stockoverview.db
    name_match_threshold: 0.3
    http_timeout: 5.0
    fallback_exchange_rates:
      USD: 1450
"""

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from core.constants import PROJECT_ROOT, Defaults, Matching, Paths
from core.utils.numbers import to_decimal


@dataclass(frozen=True)
class AppConfig:
    """애플리케이션 설정 (불변)

    Attributes:
        db_path: SQLite DB 경로
        fallback_exchange_rates: 환율 조회 실패 시 사용할 통화별 환율
        name_match_threshold: 종목명 보정 매칭 기준 점수
        http_timeout: 시세 조회 HTTP 타임아웃 (초)
    """

    db_path: Path = Paths.DEFAULT_DB
    fallback_exchange_rates: dict[str, Decimal] = field(
        default_factory=lambda: dict(Defaults.FALLBACK_EXCHANGE_RATES)
    )
    name_match_threshold: float = Matching.NAME_MATCH_THRESHOLD
    http_timeout: float = Defaults.HTTP_TIMEOUT_SEC


class ConfigLoadError(Exception):
    """설정 로드 실패 예외"""

    pass


def _parse_rates(raw: Any) -> dict[str, Decimal]:
    if not isinstance(raw, dict):
        raise ValueError(f"fallback_exchange_rates는 통화별 매핑이어야 합니다: {raw!r}")

    rates: dict[str, Decimal] = {}
    for currency, value in raw.items():
        rate = to_decimal(value)
        if rate <= 0:
            raise ValueError(f"유효하지 않은 환율입니다: {currency}={value!r}")
        rates[str(currency).upper()] = rate
    return rates


def load_config(path: Path | None = None) -> AppConfig:
    """settings.yaml 파일 로드

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        AppConfig 인스턴스 (기본 경로에 파일이 없으면 기본값)

    Raises:
        ConfigLoadError: 명시한 파일이 없거나 형식이 잘못된 경우
        ValueError: 유효하지 않은 값인 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE
        if not path.exists():
            return AppConfig()

    if not path.exists():
        raise ConfigLoadError(f"settings.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        return AppConfig()
    if not isinstance(data, dict):
        raise ConfigLoadError("settings.yaml 최상위는 매핑이어야 합니다")

    defaults = AppConfig()

    db_path = defaults.db_path
    if data.get("db_path"):
        db_path = Path(data["db_path"])
        if not db_path.is_absolute():
            db_path = PROJECT_ROOT / db_path

    rates = defaults.fallback_exchange_rates
    if "fallback_exchange_rates" in data:
        rates = _parse_rates(data["fallback_exchange_rates"])

    try:
        threshold = float(data.get("name_match_threshold", defaults.name_match_threshold))
        timeout = float(data.get("http_timeout", defaults.http_timeout))
    except (TypeError, ValueError) as e:
        raise ValueError(f"settings.yaml 숫자 값이 잘못되었습니다: {e}") from e

    if not 0 <= threshold < 1:
        raise ValueError(
            f"name_match_threshold는 0 이상 1 미만이어야 합니다: {threshold}"
        )
    if timeout <= 0:
        raise ValueError(f"http_timeout은 양수여야 합니다: {timeout}")

    return AppConfig(
        db_path=db_path,
        fallback_exchange_rates=rates,
        name_match_threshold=threshold,
        http_timeout=timeout,
    )
