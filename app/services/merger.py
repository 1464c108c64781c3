# =============================================
# File: app/services/merger.py
# Purpose: Run strategies in priority order and keep the first unique items
# =============================================
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from loguru import logger

from app.models import CandidateMatch, CatalogItem
from app.services.strategies import STRATEGIES, MatchContext, Strategy

HARD_MAX_ITEMS = 3


def max_items() -> int:
    """REC_MAX_ITEMS, read at call time; never above 3."""
    try:
        n = int(os.getenv("REC_MAX_ITEMS", str(HARD_MAX_ITEMS)))
    except ValueError:
        n = HARD_MAX_ITEMS
    return max(1, min(HARD_MAX_ITEMS, n))


def average_similarity(matches: Sequence[CandidateMatch]) -> float:
    if not matches:
        return 0.0
    return sum(m.similarity for m in matches) / len(matches)


@dataclass
class MergeResult:
    matches: List[CandidateMatch] = field(default_factory=list)

    @property
    def items(self) -> List[CatalogItem]:
        return [m.item for m in self.matches]

    @property
    def relevance_score(self) -> float:
        return average_similarity(self.matches)


def merge(ctx: MatchContext, strategies: Optional[Sequence[Strategy]] = None, limit: Optional[int] = None) -> MergeResult:
    """
    Execute every strategy, then walk them by ascending priority (matches by
    descending similarity) and collect unique items until `limit` is reached.
    """
    strategies = sorted(strategies if strategies is not None else STRATEGIES, key=lambda s: s.priority)
    limit = max_items() if limit is None else max(0, min(HARD_MAX_ITEMS, limit))

    produced = [(s, s.execute(ctx)) for s in strategies]
    counts = ", ".join(f"{s.name}={len(ms)}" for s, ms in produced)
    logger.debug(f"[merge] candidates per strategy: {counts}")

    result = MergeResult()
    seen = set()
    for strategy, matches in produced:
        for match in sorted(matches, key=lambda m: m.similarity, reverse=True):
            if len(result.matches) >= limit:
                return result
            if match.item.id in seen:
                continue
            seen.add(match.item.id)
            result.matches.append(match)
    return result
