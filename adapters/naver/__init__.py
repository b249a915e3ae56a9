"""
네이버 증권 어댑터

국내 종목/금현물 시세, 원/달러 환율 조회
"""

from adapters.naver.rest_client import NaverRestClient

__all__ = ["NaverRestClient"]
