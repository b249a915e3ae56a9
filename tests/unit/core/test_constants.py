"""
core/constants.py 테스트

모든 경로가 pathlib.Path 타입이고, 상수가 정상적으로 접근 가능한지 확인
"""

from decimal import Decimal
from pathlib import Path

from core.constants import (
    PROJECT_ROOT,
    Defaults,
    FeeRates,
    Matching,
    Paths,
    SheetNames,
    Tolerances,
)


class TestProjectRoot:
    """PROJECT_ROOT 테스트"""

    def test_project_root_is_path(self) -> None:
        assert isinstance(PROJECT_ROOT, Path)
        assert PROJECT_ROOT.is_absolute()

    def test_project_root_contains_core_directory(self) -> None:
        assert (PROJECT_ROOT / "core").exists()


class TestPaths:
    """Paths 테스트"""

    def test_all_paths_are_path(self) -> None:
        for name in ("CONFIG_DIR", "DATA_DIR", "LOGS_DIR", "SETTINGS_FILE", "DEFAULT_DB"):
            assert isinstance(getattr(Paths, name), Path), name

    def test_paths_under_project_root(self) -> None:
        assert Paths.SETTINGS_FILE.parent == Paths.CONFIG_DIR
        assert Paths.DEFAULT_DB.parent == Paths.DATA_DIR
        assert Paths.CONFIG_DIR.parent == PROJECT_ROOT


class TestDefaults:
    """Defaults 테스트"""

    def test_fallback_rates_are_decimal(self) -> None:
        assert Defaults.BASE_CURRENCY == "KRW"
        assert all(isinstance(v, Decimal) for v in Defaults.FALLBACK_EXCHANGE_RATES.values())

    def test_fee_rates(self) -> None:
        assert FeeRates.DOMESTIC < FeeRates.OVERSEAS

    def test_matching_threshold_range(self) -> None:
        assert 0 <= Matching.NAME_MATCH_THRESHOLD < Matching.PARTIAL_MATCH_CAP <= 1

    def test_tolerances(self) -> None:
        assert Tolerances.QTY_EPSILON > 0
        assert Tolerances.PRICE_PLACES == 2


class TestSheetNames:
    def test_sheet_names(self) -> None:
        assert SheetNames.GENERAL_LEDGER == "전체거래내역"
        assert SheetNames.DOMESTIC_TRADE_LOG == "매매일지"
        assert SheetNames.OVERSEAS_TRADE_LOG == "해외매매일지"
