# =============================================
# File: app/services/gender.py
# Purpose: Infer the shopper's target audience and filter catalog slices by it
# =============================================
from __future__ import annotations

from typing import Iterable, List

from app.models import CatalogItem
from app.utils.taxonomy import (
    MEN_GARMENT_RE,
    MEN_INDICATOR_RE,
    MEN_QUERY_RE,
    WOMEN_GARMENT_RE,
    WOMEN_INDICATOR_RE,
    WOMEN_QUERY_RE,
    normalize_text,
)

WOMEN = "women"
MEN = "men"
NEUTRAL = "neutral"


def detect_gender_preference(query: str, answer_text: str) -> str:
    combined = f"{normalize_text(query)} {normalize_text(answer_text)}"
    has_women = bool(WOMEN_QUERY_RE.search(combined))
    has_men = bool(MEN_QUERY_RE.search(combined))
    if has_women and not has_men:
        return WOMEN
    if has_men and not has_women:
        return MEN
    return NEUTRAL


def _fields(item: CatalogItem) -> List[str]:
    return [
        normalize_text(item.category),
        normalize_text(item.sub_category),
        normalize_text(item.keywords),
        normalize_text(item.name),
    ]


def gender_signals(item: CatalogItem) -> dict:
    """Indicator / garment-type flags for one item (exposed for tests and leak logs)."""
    fields = _fields(item)
    return {
        "women_indicator": any(WOMEN_INDICATOR_RE.search(f) for f in fields),
        "men_indicator": any(MEN_INDICATOR_RE.search(f) for f in fields),
        "women_category": any(WOMEN_GARMENT_RE.search(f) for f in fields),
        "men_category": any(MEN_GARMENT_RE.search(f) for f in fields),
    }


def matches_gender(item: CatalogItem, preference: str) -> bool:
    if preference not in (WOMEN, MEN):
        return True
    s = gender_signals(item)
    if preference == WOMEN:
        return (s["women_indicator"] or s["women_category"]) and not s["men_indicator"]
    # Women's items are excluded for men before anything else is considered.
    if s["women_indicator"] or s["women_category"]:
        return False
    # Remaining items are either men's or carry no gender signal at all.
    return True


def filter_products_by_gender(items: Iterable[CatalogItem], preference: str) -> List[CatalogItem]:
    items = list(items or [])
    if preference not in (WOMEN, MEN):
        return items
    return [it for it in items if matches_gender(it, preference)]
