# =============================================
# File: app/services/classifier.py
# Purpose: Decide whether a chat turn should get product recommendations at all
# =============================================
from __future__ import annotations

from typing import Optional

from app.utils.taxonomy import (
    ANSWER_POLICY_TERMS,
    AVAILABILITY_PHRASES,
    EXPLICIT_REQUEST_PHRASES,
    FAQ_KEYWORDS,
    NEGATIVE_AVAILABILITY_PATTERNS,
    OUTFIT_PHRASES,
    PRODUCT_CATEGORY_RE,
    PRODUCT_QUERY_KEYWORDS,
    RECOMMENDATION_PHRASES,
    SPECIFIC_GARMENT_RE,
    STRONG_FAQ_INDICATORS,
    normalize_text,
)

# Gate names, in evaluation order.
GATE_NEGATIVE = "negative_availability"
GATE_FAQ = "faq"
GATE_NOT_REQUESTED = "not_requested"


def _contains_any(text: str, phrases) -> bool:
    return any(p in text for p in phrases)


def is_negative_availability_response(answer_text: str) -> bool:
    """True when the generated answer already says the item isn't carried / in stock."""
    text = normalize_text(answer_text)
    return any(p.search(text) for p in NEGATIVE_AVAILABILITY_PATTERNS)


def is_product_availability_query(query: str) -> bool:
    q = normalize_text(query)
    return _contains_any(q, AVAILABILITY_PHRASES) and _contains_any(q, PRODUCT_QUERY_KEYWORDS)


def is_recommendation_query(query: str) -> bool:
    q = normalize_text(query)
    return _contains_any(q, RECOMMENDATION_PHRASES) and _contains_any(q, PRODUCT_QUERY_KEYWORDS)


def is_general_info_or_faq(query: str, answer_text: str) -> bool:
    """
    Policy / store-info questions suppress recommendations.
    Strong FAQ phrases always win; otherwise a product-availability or
    recommendation question is never FAQ, whatever else it mentions.
    """
    q = normalize_text(query)
    a = normalize_text(answer_text)

    if _contains_any(q, STRONG_FAQ_INDICATORS):
        return True
    if is_product_availability_query(q) or is_recommendation_query(q):
        return False

    has_faq_keyword = _contains_any(q, FAQ_KEYWORDS)
    has_policy_info = _contains_any(a, ANSWER_POLICY_TERMS) or (
        "contact" in a and "customer service" in a
    )
    return has_faq_keyword or has_policy_info


def is_explicit_product_request(query: str) -> bool:
    q = normalize_text(query)
    return _contains_any(q, EXPLICIT_REQUEST_PHRASES) or bool(PRODUCT_CATEGORY_RE.search(q))


def is_specific_product_query(query: str) -> bool:
    q = normalize_text(query)
    return bool(SPECIFIC_GARMENT_RE.search(q)) or _contains_any(q, OUTFIT_PHRASES)


def classify(query: str, answer_text: str) -> Optional[str]:
    """
    Run the three gates in order and return the name of the first one that
    fires, or None when the turn should proceed to candidate generation.
    """
    if is_negative_availability_response(answer_text):
        return GATE_NEGATIVE
    if is_general_info_or_faq(query, answer_text):
        return GATE_FAQ
    if not is_explicit_product_request(query):
        return GATE_NOT_REQUESTED
    return None
