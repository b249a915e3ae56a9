"""
원가 계산 모듈

이동평균법 포지션 재생
"""

from engine.cost_basis.ledger import CostBasisLedger, PositionState, net_amount

__all__ = [
    "CostBasisLedger",
    "PositionState",
    "net_amount",
]
