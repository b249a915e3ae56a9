"""
스토리지 모듈

원천 데이터, 정합 결과, 종목 마스터 저장소 제공
"""

from core.storage.master_store import MasterStore
from core.storage.raw_store import RawStore
from core.storage.result_store import ResultStore

__all__ = [
    "MasterStore",
    "RawStore",
    "ResultStore",
]
