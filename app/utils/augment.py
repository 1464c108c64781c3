# =============================================
# File: app/utils/augment.py
# Purpose: Compose the final chat text (apology / recommendation payload / unchanged)
# =============================================
from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Sequence, Tuple

from app.models import CatalogItem

APOLOGY_TEXT = (
    "I'm sorry, I couldn't find any products that match what you're looking for right now. "
    "Try different keywords or browse our categories."
)
RECOMMENDATIONS_DELIMITER = "[PRODUCT_RECOMMENDATIONS]"
MAX_PAYLOAD_ITEMS = 3

_DELIM_RE = re.compile(r"\n*\s*" + re.escape(RECOMMENDATIONS_DELIMITER) + r"\s*", flags=re.MULTILINE)


def with_apology(answer_text: str) -> str:
    body = (answer_text or "").rstrip()
    if not body:
        return APOLOGY_TEXT
    return f"{body}\n\n{APOLOGY_TEXT}"


def with_recommendations(answer_text: str, items: Sequence[CatalogItem]) -> str:
    """Append the delimiter followed by a JSON list of at most three item summaries."""
    payload = [it.summary() for it in list(items)[:MAX_PAYLOAD_ITEMS]]
    body = (answer_text or "").rstrip()
    return f"{body}\n\n{RECOMMENDATIONS_DELIMITER}\n{json.dumps(payload, ensure_ascii=False)}"


def split_recommendations(text: str) -> Tuple[str, List[Dict[str, Any]]]:
    """Inverse of with_recommendations for clients: (visible text, payload list)."""
    if not text:
        return "", []
    m = _DELIM_RE.search(text)
    if not m:
        return text, []
    body = text[: m.start()].rstrip()
    raw = text[m.end():].strip()
    try:
        data = json.loads(raw)
    except ValueError:
        return body, []
    return body, data if isinstance(data, list) else []
