"""
정합 엔진 CLI

실행 방법:
    python -m engine init-db
    python -m engine import export.xlsx
    python -m engine load-master config/master.yaml
    python -m engine reconcile [--live-rates]
    python -m engine summary
    python -m engine holdings [--account 계좌] [--offline]
    python -m engine portfolio [--offline]
    python -m engine overall [--offline]
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import yaml

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from adapters.excel.reader import ExcelImportError
from core.config.loader import AppConfig, ConfigLoadError, load_config
from core.domain.models import PortfolioTarget, Stock
from core.logging import setup_logging
from core.utils.numbers import to_decimal
from engine.service import ReconciliationService
from engine.valuation import PriceRouter

logger = logging.getLogger("engine")


def _print_table(headers: list[str], rows: list[list[object]]) -> None:
    widths = [len(h) for h in headers]
    for row in rows:
        for i, value in enumerate(row):
            widths[i] = max(widths[i], len(str(value)))
    print("  ".join(h.ljust(w) for h, w in zip(headers, widths)))
    for row in rows:
        print("  ".join(str(v).ljust(w) for v, w in zip(row, widths)))


def read_master_file(path: Path) -> tuple[list[Stock], list[PortfolioTarget]]:
    """종목 마스터 / 포트폴리오 목표 YAML 읽기

    형식:
    ```yaml
    stocks:
      - {code: "005930", name: 삼성전자, market_type: KOSPI}
      - {code: AAPL, name: 애플, currency: USD, stock_type: OVERSEAS, market_type: NASDAQ}
    portfolio:
      "005930": 40
      AAPL: 60
    ```
    """
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"마스터 파일 최상위는 매핑이어야 합니다: {path}")

    stocks = [
        Stock(
            code=str(item["code"]),
            name=str(item["name"]),
            currency=str(item.get("currency", "KRW")),
            short_name=str(item.get("short_name", "")),
            stock_type=str(item.get("stock_type", "KOREA")),
            market_type=str(item.get("market_type", "KOREA")),
            current_price=to_decimal(item.get("current_price")),
        )
        for item in data.get("stocks") or []
    ]
    targets = [
        PortfolioTarget(stock_code=str(code), target_weight=to_decimal(weight))
        for code, weight in (data.get("portfolio") or {}).items()
    ]
    return stocks, targets


async def run_command(args: argparse.Namespace, config: AppConfig) -> int:
    """서브커맨드 실행 (종료 코드 반환)"""
    async with SQLiteAdapter(config.db_path) as db:
        await init_schema(db)

        if args.command == "init-db":
            logger.info(f"DB 초기화 완료: {config.db_path}")
            return 0

        provider = None
        if _needs_provider(args):
            provider = PriceRouter(timeout=config.http_timeout)

        service = ReconciliationService(db, config, price_provider=provider)
        try:
            return await _dispatch(args, service)
        finally:
            if provider is not None:
                await provider.close()


def _needs_provider(args: argparse.Namespace) -> bool:
    if args.command == "reconcile":
        return args.live_rates
    return args.command in ("holdings", "portfolio", "overall") and not args.offline


async def _dispatch(args: argparse.Namespace, service: ReconciliationService) -> int:
    if args.command == "import":
        await service.import_workbook(Path(args.path))
        return 0

    if args.command == "load-master":
        stocks, targets = read_master_file(Path(args.path))
        await service.master_store.upsert_stocks(stocks)
        if targets:
            await service.master_store.replace_portfolio_targets(targets)
        return 0

    if args.command == "reconcile":
        result = await service.run()
        print(result.report.summary())
        for position in result.report.negative_positions:
            print(f"  음수 포지션: {position.account} {position.stock_code} {position.quantity}")
        return 0

    if args.command == "summary":
        statuses = await service.result_store.load_account_statuses()
        _print_table(
            ["계좌", "입금", "출금", "원금", "운용자금", "실현손익", "실현손익률", "예수금"],
            [
                [
                    s.account,
                    s.total_deposit,
                    s.total_withdrawal,
                    s.principal,
                    s.operating_funds,
                    s.realized_profit_loss,
                    s.realized_profit_loss_rate,
                    ", ".join(f"{cur} {amt}" for cur, amt in s.deposits.items()),
                ]
                for s in statuses
            ],
        )
        return 0

    snapshot = await service.refresh_snapshot()

    if args.command == "holdings":
        items = await service.holdings(snapshot, account=args.account)
        _print_table(
            ["종목", "수량", "평균단가", "현재가", "평가금액", "평가수익률", "실현손익", "비중"],
            [
                [
                    item.stock_name,
                    item.quantity,
                    item.average_price,
                    item.current_price,
                    item.evaluation_amount,
                    item.evaluation_profit_rate,
                    item.realized_profit_loss,
                    item.weight,
                ]
                for item in items
            ],
        )
        return 0

    if args.command == "portfolio":
        view = await service.portfolio(snapshot)
        print(f"기준금액: {view.base_amount}  평가금액: {view.total_evaluation_amount}")
        _print_table(
            ["종목", "목표비중", "현재비중", "목표금액", "평가금액", "조정금액", "조정률"],
            [
                [
                    item.stock_name,
                    item.target_weight,
                    item.current_weight,
                    item.target_amount,
                    item.evaluation_amount,
                    item.adjustment_amount,
                    item.adjustment_rate,
                ]
                for item in view.items
            ],
        )
        return 0

    if args.command == "overall":
        stats = await service.overall(snapshot)
        _print_table(
            ["범주", "원금", "평가자산", "운용금액", "평가금액", "평가수익", "실현손익", "예수금"],
            [
                [
                    s.category.value,
                    s.principal,
                    s.evaluated_assets,
                    s.operating_amount,
                    s.evaluated_amount,
                    s.evaluated_profit,
                    s.realized_profit,
                    s.deposit,
                ]
                for s in stats
            ],
        )
        return 0

    raise ValueError(f"Unknown command: {args.command}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m engine",
        description="증권 거래내역 정합 및 원가 계산",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="settings.yaml 경로 (기본: config/settings.yaml)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="콘솔에 DEBUG 로그 출력",
    )

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("init-db", help="DB 스키마 생성")

    import_parser = sub.add_parser("import", help="엑셀 내보내기 수입 (원천 데이터 전체 교체)")
    import_parser.add_argument("path", help=".xlsx 파일 경로")

    master_parser = sub.add_parser("load-master", help="종목 마스터/포트폴리오 목표 YAML 반영")
    master_parser.add_argument("path", help="마스터 YAML 경로")

    reconcile_parser = sub.add_parser("reconcile", help="정합 실행 후 결과 저장")
    reconcile_parser.add_argument(
        "--live-rates",
        action="store_true",
        help="계좌 현황 환산에 실시간 환율 사용 (기본: 설정의 기본 환율)",
    )
    sub.add_parser("summary", help="계좌 현황 출력")

    for name, help_text in (
        ("holdings", "종목별 보유 현황"),
        ("portfolio", "포트폴리오 리밸런싱"),
        ("overall", "전체 투자 현황"),
    ):
        view_parser = sub.add_parser(name, help=help_text)
        view_parser.add_argument(
            "--offline",
            action="store_true",
            help="시세 조회 없이 마지막 가격 사용",
        )
        if name == "holdings":
            view_parser.add_argument("--account", default=None, help="계좌 (기본: 전체)")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(
        "engine",
        console_level=logging.DEBUG if args.verbose else logging.INFO,
    )

    try:
        config = load_config(args.config)
    except (ConfigLoadError, ValueError) as e:
        logger.error(f"설정 로드 실패: {e}")
        return 1

    try:
        return asyncio.run(run_command(args, config))
    except ExcelImportError as e:
        logger.error(f"엑셀 수입 실패: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
