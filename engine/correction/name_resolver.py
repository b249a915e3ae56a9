"""
종목명 보정 (NameResolver)

원장 거래명은 잘리거나 변형된 경우가 많다 (예: "삼성전자우" ↔ "삼성전자 우선주",
"TIGER 미국S&P500" ↔ "TIGER미국S&P500").
정확히 일치하면 그대로, 아니면 토큰 겹침 점수로 후보군에서 가장 가까운 이름을 찾는다.

토큰 종류:
- 연속된 영문자 (대문자로 정규화)
- 연속된 숫자
- 2자 이상 연속된 한글

점수 계산 (대상 토큰마다 후보 토큰 중 최고점):
- 완전 일치: 1.0
- 한쪽이 다른 쪽의 부분 문자열: 짧은 길이 / 긴 길이 (최대 0.8)
- 그 외: 0
합계를 대상 토큰 수로 나눈 값이 기준(기본 0.3)을 초과해야 채택한다.
"""

import re
from typing import Iterable, Sequence

from core.constants import Matching

_TOKEN_PATTERN = re.compile(r"[A-Za-z]+|[0-9]+|[가-힣]{2,}")


def tokenize(text: str) -> list[str]:
    """종목명을 매칭 토큰으로 분해

    Args:
        text: 종목명

    Returns:
        중복 없는 토큰 목록 (등장 순서 유지, 영문은 대문자)

    사용 예시:
        tokenize("KODEX 200선물인버스2X") → ["KODEX", "200", "선물인버스", "2", "X"]
    """
    return list(dict.fromkeys(token.upper() for token in _TOKEN_PATTERN.findall(text)))


def token_score(target: str, candidate: str) -> float:
    """토큰 하나의 일치 점수"""
    if target == candidate:
        return 1.0
    if target in candidate or candidate in target:
        shorter, longer = sorted((len(target), len(candidate)))
        return min(shorter / longer, Matching.PARTIAL_MATCH_CAP)
    return 0.0


def match_score(target_tokens: Sequence[str], candidate_tokens: Sequence[str]) -> float:
    """대상 토큰과 후보 토큰 집합의 일치 점수 (0.0 ~ 1.0)"""
    if not target_tokens or not candidate_tokens:
        return 0.0

    total = 0.0
    for target in target_tokens:
        total += max(token_score(target, candidate) for candidate in candidate_tokens)
    return total / len(target_tokens)


def resolve(
    target_name: str,
    name_pool: Iterable[str],
    threshold: float = Matching.NAME_MATCH_THRESHOLD,
) -> str | None:
    """종목명 보정

    Args:
        target_name: 원장 거래명
        name_pool: 후보 종목명 (순서가 동점 처리 기준)
        threshold: 채택 기준 점수 (초과해야 채택)

    Returns:
        보정된 종목명, 찾지 못하면 None
    """
    if not target_name:
        return None

    pool = list(name_pool)
    if target_name in pool:
        return target_name

    target_tokens = tokenize(target_name)
    if not target_tokens:
        return None

    best_name: str | None = None
    best_score = 0.0
    for candidate in pool:
        score = match_score(target_tokens, tokenize(candidate))
        # 동점이면 먼저 나온 후보 유지
        if score > best_score:
            best_name = candidate
            best_score = score

    if best_name is not None and best_score > threshold:
        return best_name
    return None


class NameResolver:
    """후보군을 고정한 종목명 보정기

    후보 토큰을 한 번만 계산해 두고 여러 거래명에 재사용한다.
    같은 입력에는 항상 같은 결과를 돌려주며 내부 상태를 바꾸지 않는다.

    Args:
        name_pool: 후보 종목명 (중복 제거 후 첫 등장 순서 유지)
        threshold: 채택 기준 점수
    """

    def __init__(
        self,
        name_pool: Iterable[str],
        threshold: float = Matching.NAME_MATCH_THRESHOLD,
    ):
        self._names: tuple[str, ...] = tuple(dict.fromkeys(n for n in name_pool if n))
        self._name_set = frozenset(self._names)
        self._tokens: tuple[tuple[str, ...], ...] = tuple(
            tuple(tokenize(name)) for name in self._names
        )
        self.threshold = threshold

    @property
    def names(self) -> tuple[str, ...]:
        return self._names

    def resolve(self, target_name: str) -> str | None:
        """종목명 보정 (모듈 함수 resolve와 동일 규칙)"""
        if not target_name:
            return None
        if target_name in self._name_set:
            return target_name

        target_tokens = tokenize(target_name)
        if not target_tokens:
            return None

        best_index = -1
        best_score = 0.0
        for index, candidate_tokens in enumerate(self._tokens):
            score = match_score(target_tokens, candidate_tokens)
            if score > best_score:
                best_index = index
                best_score = score

        if best_index >= 0 and best_score > self.threshold:
            return self._names[best_index]
        return None
