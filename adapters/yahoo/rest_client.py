"""
Yahoo Finance REST 클라이언트

chart API(v8)로 해외 종목 현재가와 통화 환율을 조회한다.
User-Agent 헤더가 없으면 요청이 거부된다.
"""

import logging
from decimal import Decimal
from typing import Any

import httpx

from adapters.models import MarketDataError, Quote
from core.constants import Defaults
from core.utils.numbers import to_decimal

logger = logging.getLogger(__name__)

_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class YahooRestClient:
    """Yahoo Finance chart API 클라이언트

    Args:
        timeout: HTTP 요청 타임아웃 (초)

    사용 예시:
    ```python
    client = YahooRestClient()
    quote = await client.get_quote("AAPL")
    rate = await client.get_exchange_rate("USD")  # USDKRW=X
    ```
    """

    BASE_URL = "https://query1.finance.yahoo.com/v8/finance/chart"

    def __init__(self, timeout: float = Defaults.HTTP_TIMEOUT_SEC):
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        """HTTP 클라이언트 반환 (lazy init)"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": _USER_AGENT},
            )
        return self._client

    async def close(self) -> None:
        """HTTP 클라이언트 종료"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _chart_meta(self, symbol: str) -> dict[str, Any] | None:
        """chart.result[0].meta 조회

        Raises:
            MarketDataError: 전송 오류, HTTP 에러, JSON 형식 오류
        """
        client = await self._ensure_client()
        url = f"{self.BASE_URL}/{symbol}"

        try:
            response = await client.get(url)
        except httpx.RequestError as e:
            logger.error(f"Yahoo request error: {e}")
            raise MarketDataError(str(e), source="yahoo") from e

        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            logger.error(
                f"Yahoo API error: {response.status_code}",
                extra={"symbol": symbol},
            )
            raise MarketDataError(f"HTTP {response.status_code}", source="yahoo")

        try:
            data = response.json()
        except ValueError as e:
            raise MarketDataError(f"JSON 파싱 실패: {e}", source="yahoo") from e

        chart = data.get("chart") if isinstance(data, dict) else None
        results = (chart or {}).get("result") or []
        if not results:
            return None
        return results[0].get("meta")

    async def get_quote(self, symbol: str, currency: str = "USD") -> Quote | None:
        """해외 종목 현재가

        Args:
            symbol: 티커 (예: AAPL)
            currency: 응답에 통화가 없을 때 사용할 통화

        Returns:
            Quote, 종목이 없으면 None
        """
        meta = await self._chart_meta(symbol)
        if not meta:
            return None
        return Quote.from_yahoo_meta(symbol, meta, currency)

    async def get_exchange_rate(self, currency: str) -> Decimal | None:
        """외화 1단위의 원화 환율 ({currency}KRW=X)"""
        meta = await self._chart_meta(f"{currency.upper()}KRW=X")
        if not meta:
            return None
        rate = to_decimal(meta.get("regularMarketPrice"))
        return rate if rate > 0 else None
