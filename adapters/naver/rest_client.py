"""
네이버 증권 REST 클라이언트

국내 종목 실시간 시세, 금현물 시세(원/g), 원/달러 환율 조회.
인증이 필요 없는 공개 엔드포인트를 사용한다.

주의: 환율은 검색 자동완성 JSONP 응답(answer[0][6])에서 추출한다.
"""

import json
import logging
from decimal import Decimal
from typing import Any

import httpx

from adapters.models import MarketDataError, Quote
from core.constants import Defaults, MarketCodes
from core.utils.numbers import to_decimal

logger = logging.getLogger(__name__)


class NaverRestClient:
    """네이버 증권 REST 클라이언트

    Args:
        timeout: HTTP 요청 타임아웃 (초)

    사용 예시:
    ```python
    client = NaverRestClient()
    quote = await client.get_domestic_quote("005930")
    gold = await client.get_gold_price()
    await client.close()
    ```
    """

    REALTIME_URL = "https://polling.finance.naver.com/api/realtime"
    METALS_URL = "https://m.stock.naver.com/front-api/realTime/marketIndex/metals"
    EXCHANGE_RATE_URL = "https://ac.search.naver.com/nx/ac"

    def __init__(self, timeout: float = Defaults.HTTP_TIMEOUT_SEC):
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        """HTTP 클라이언트 반환 (lazy init)"""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """HTTP 클라이언트 종료"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> str:
        """요청 실행 후 응답 본문 반환

        Raises:
            MarketDataError: 전송 오류 또는 HTTP 에러
        """
        client = await self._ensure_client()

        try:
            if method == "GET":
                response = await client.get(url, params=params)
            elif method == "POST":
                response = await client.post(url, json=body)
            else:
                raise ValueError(f"Unsupported HTTP method: {method}")
        except httpx.RequestError as e:
            logger.error(f"Naver request error: {e}")
            raise MarketDataError(str(e), source="naver") from e

        if response.status_code >= 400:
            logger.error(
                f"Naver API error: {response.status_code}",
                extra={"url": url},
            )
            raise MarketDataError(f"HTTP {response.status_code}", source="naver")

        return response.text

    @staticmethod
    def _parse_json(text: str) -> Any:
        try:
            return json.loads(text)
        except ValueError as e:
            raise MarketDataError(f"JSON 파싱 실패: {e}", source="naver") from e

    # =========================================================================
    # 국내 종목
    # =========================================================================

    async def get_domestic_quote(self, stock_code: str) -> Quote | None:
        """국내 종목 실시간 시세

        Args:
            stock_code: 종목코드 (예: 005930)

        Returns:
            Quote, 응답에 데이터가 없으면 None
        """
        text = await self._request(
            "GET", self.REALTIME_URL, params={"query": f"SERVICE_ITEM:{stock_code}"}
        )
        data = self._parse_json(text)

        if not isinstance(data, dict) or data.get("resultCode") != "success":
            raise MarketDataError(
                f"실시간 시세 응답 오류: {stock_code}", source="naver"
            )

        try:
            datas = data["result"]["areas"][0]["datas"]
        except (KeyError, IndexError, TypeError):
            return None
        if not datas:
            return None

        return Quote.from_naver_realtime(stock_code, datas[0])

    # =========================================================================
    # 금현물
    # =========================================================================

    async def get_gold_price(self) -> Decimal | None:
        """금현물 시세 (원/g)"""
        text = await self._request(
            "POST", self.METALS_URL, body={"reutersCodes": [MarketCodes.GOLD]}
        )
        data = self._parse_json(text)

        try:
            gold = data["result"]["metals"][MarketCodes.GOLD]
        except (KeyError, TypeError):
            return None

        price = to_decimal(gold.get("closePrice"))
        return price if price > 0 else None

    async def get_gold_quote(self, stock_code: str = MarketCodes.GOLD) -> Quote | None:
        price = await self.get_gold_price()
        if price is None:
            return None
        return Quote(code=stock_code, current_price=price)

    # =========================================================================
    # 환율
    # =========================================================================

    async def get_usd_krw_rate(self) -> Decimal | None:
        """원/달러 환율 (검색 자동완성 응답)"""
        text = await self._request(
            "GET",
            self.EXCHANGE_RATE_URL,
            params={
                "q": "달러 환율",
                "con": "0",
                "frm": "nx",
                "ans": "2",
                "r_format": "json",
                "r_enc": "UTF-8",
                "r_unicode": "0",
                "t_koreng": "1",
                "run": "2",
                "rev": "4",
                "q_enc": "UTF-8",
                "st": "100",
            },
        )

        # JSONP 응답이면 괄호 안의 JSON만 사용
        if "(" in text:
            text = text[text.index("(") + 1 : text.rindex(")")]
        data = self._parse_json(text)

        try:
            rate_text = data["answer"][0][6]
        except (KeyError, IndexError, TypeError):
            return None

        rate = to_decimal(rate_text)
        return rate if rate > 0 else None
