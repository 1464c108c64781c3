# =============================================
# File: app/utils/similarity.py
# Purpose: Lightweight string similarity used by the name-matching strategies
# =============================================
from __future__ import annotations

from typing import List

MIN_WORD_LEN = 3
WORD_WEIGHT = 0.7
CHAR_WEIGHT = 0.3


def _words_match(a: str, b: str) -> bool:
    return a == b or a in b or b in a


def _word_overlap(a: str, b: str) -> float:
    words_a: List[str] = a.split()
    words_b: List[str] = b.split()
    denom = max(len(words_a), len(words_b))
    if denom == 0:
        return 0.0
    long_b = [w for w in words_b if len(w) >= MIN_WORD_LEN]
    matched = 0
    for wa in words_a:
        if len(wa) < MIN_WORD_LEN:
            continue
        if any(_words_match(wa, wb) for wb in long_b):
            matched += 1
    return matched / denom


def _char_overlap(a: str, b: str) -> float:
    longest = max(len(a), len(b))
    if longest == 0:
        return 0.0
    same = sum(1 for i in range(min(len(a), len(b))) if a[i] == b[i])
    return same / longest


def similarity(a: str, b: str) -> float:
    """
    Score how close two strings are, in [0, 1].

    Containment is directional: 0.9 when `a` contains `b`, 0.85 when `b`
    contains `a`. Otherwise the best of weighted word overlap and weighted
    positional character overlap.
    """
    a = (a or "").lower()
    b = (b or "").lower()
    if a == b:
        return 1.0
    if b in a:
        return 0.9
    if a in b:
        return 0.85
    score = max(_word_overlap(a, b) * WORD_WEIGHT, _char_overlap(a, b) * CHAR_WEIGHT)
    return min(1.0, max(0.0, score))
