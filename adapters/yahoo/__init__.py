"""
Yahoo Finance 어댑터

해외 종목 시세 및 통화 환율 조회
"""

from adapters.yahoo.rest_client import YahooRestClient

__all__ = ["YahooRestClient"]
