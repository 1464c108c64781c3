# =============================================
# File: app/services/engine.py
# Purpose: Recommendation decision for one chat turn (gates -> strategies -> merge -> relevance gate)
# =============================================
from __future__ import annotations

import os
from typing import Iterable, List, Optional

from loguru import logger

from app.models import CatalogItem, EngineResult, UserProfile
from app.services import classifier
from app.services.gender import detect_gender_preference, gender_signals, matches_gender
from app.services.merger import average_similarity, merge
from app.services.strategies import MatchContext
from app.utils import augment

GATE_NO_MATCH = "no_match"
GATE_RECOMMENDED = "recommended"
GATE_BELOW_THRESHOLD = "below_threshold"


def relevance_min() -> float:
    """REC_RELEVANCE_MIN, read at call time so tests/envs can tune it."""
    try:
        return float(os.getenv("REC_RELEVANCE_MIN", "0.3"))
    except ValueError:
        return 0.3


def _unchanged(answer_text: str, gate: str, refiltered: int = 0) -> EngineResult:
    return EngineResult(augmented_text=answer_text, recommendations=[], relevance_score=0.0,
                        gate=gate, refiltered=refiltered)


def decide_recommendations(
    query: str,
    answer_text: str,
    catalog: Optional[Iterable[CatalogItem]],
    known_categories: Optional[Iterable[str]] = None,
    known_sub_categories: Optional[Iterable[str]] = None,
    user_profile: Optional[UserProfile] = None,
) -> EngineResult:
    """
    Decide whether (and which) catalog items to attach to `answer_text`.

    Pure with respect to its inputs: the catalog snapshot is only read, and
    identical inputs give identical results.
    """
    query = query or ""
    answer_text = answer_text or ""

    gate = classifier.classify(query, answer_text)
    if gate is not None:
        logger.info(f"[engine] gate={gate} -> no recommendations")
        return _unchanged(answer_text, gate)

    ctx = MatchContext(
        query=query,
        answer_text=answer_text,
        catalog=list(catalog or []),
        known_categories=set(known_categories or ()),
        known_sub_categories=set(known_sub_categories or ()),
        profile=user_profile,
    )
    merged = merge(ctx)

    # Final gender pass over the merged set; anything removed here slipped past a strategy's own filter.
    preference = detect_gender_preference(query, answer_text)
    kept, leaked = [], []
    for m in merged.matches:
        (kept if matches_gender(m.item, preference) else leaked).append(m)
    for m in leaked:
        logger.warning(
            f"[engine] safety refilter removed id={m.item.id} name={m.item.name!r} "
            f"strategy={m.strategy} preference={preference} signals={gender_signals(m.item)}"
        )

    items: List[CatalogItem] = [m.item for m in kept]
    score = average_similarity(kept)
    wants_products = classifier.is_specific_product_query(query) or classifier.is_explicit_product_request(query)

    if not items:
        if wants_products and not classifier.is_general_info_or_faq(query, answer_text):
            logger.info("[engine] no candidates for a product request -> apology")
            return EngineResult(augmented_text=augment.with_apology(answer_text), recommendations=[],
                                relevance_score=0.0, gate=GATE_NO_MATCH, refiltered=len(leaked))
        return _unchanged(answer_text, GATE_NO_MATCH, len(leaked))

    if score >= relevance_min() and wants_products:
        logger.info(f"[engine] recommending {len(items)} item(s) relevance={score:.2f}")
        return EngineResult(
            augmented_text=augment.with_recommendations(answer_text, items),
            recommendations=items,
            relevance_score=min(1.0, max(0.0, score)),
            gate=GATE_RECOMMENDED,
            refiltered=len(leaked),
        )

    logger.info(f"[engine] relevance={score:.2f} below threshold -> answer unchanged")
    return _unchanged(answer_text, GATE_BELOW_THRESHOLD, len(leaked))
