"""
엑셀 어댑터

증권사 엑셀 내보내기(.xlsx) 읽기
"""

from adapters.excel.reader import ExcelImportError, ExcelReader

__all__ = ["ExcelImportError", "ExcelReader"]
