# =============================================
# File: app/services/generation.py
# Purpose: Assistant answer via OpenAI (timeout + retries) with an extractive catalog/FAQ fallback
# =============================================
from __future__ import annotations
import os
from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger
from openai import OpenAI

from app.models import CatalogItem, UserProfile
from app.utils.prompting import STORE_FAQ, build_messages

DEFAULT_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")
DEFAULT_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.7"))
MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "500"))
TIMEOUT_S = float(os.getenv("LLM_TIMEOUT_SECONDS", "15"))
MAX_RETRIES = int(os.getenv("LLM_MAX_RETRIES", "1"))

FALLBACK_MODEL = "fallback-extractive"
CLARIFY_SENTENCE = "Could you tell me a bit more about what you're looking for?"


def _openai_client():
    return OpenAI()


def _query_terms(query: str) -> List[str]:
    terms = []
    for w in (query or "").lower().replace("'", " ").split():
        w = "".join(ch for ch in w if ch.isalnum() or ch == "-")
        if len(w) >= 4:
            terms.append(w[:-1] if w.endswith("s") else w)
    return terms


def _fallback_answer(query: str, products: Sequence[CatalogItem]) -> str:
    """
    No model available: answer a store FAQ verbatim when one matches, otherwise
    name up to three catalog items that share a word with the message.
    """
    q = (query or "").lower()
    for entry in STORE_FAQ:
        if any(k in q for k in entry["keywords"]):
            return str(entry["answer"])

    terms = _query_terms(query)
    hits = [p for p in products if terms and any(t in p.keywords for t in terms)][:3]
    if hits:
        listed = ", ".join(f"{p.name} (${p.price:.2f})" for p in hits)
        return f"Here are a few options you might like: {listed}."
    return CLARIFY_SENTENCE


def _chat_completion_with_retry(client, messages) -> Tuple[str | None, str | None]:
    """
    Try calling OpenAI up to MAX_RETRIES+1 times with TIMEOUT_S each.
    Returns (text, model) or (None, None) if all attempts fail.
    """
    attempts = max(1, MAX_RETRIES + 1)
    for i in range(attempts):
        try:
            resp = client.chat.completions.create(
                model=DEFAULT_MODEL,
                temperature=DEFAULT_TEMPERATURE,
                max_tokens=MAX_TOKENS,
                messages=messages,
                timeout=TIMEOUT_S,
            )
            text = (resp.choices[0].message.content or "").strip()
            return text, getattr(resp, "model", DEFAULT_MODEL)
        except Exception as e:  # SDK raises several unrelated error types (timeout, HTTP, auth)
            logger.warning(f"[generation] attempt {i + 1}/{attempts} failed: {e}")
    return None, None


def generate_answer(
    query: str,
    history: Optional[Sequence[Dict[str, str]]],
    products: Sequence[CatalogItem],
    profile: Optional[UserProfile] = None,
) -> Tuple[str, Dict]:
    """
    Returns: (answer_text, meta) with meta = {"model": str}.
    Never raises: a missing key or failed call yields the extractive fallback.
    """
    if not os.getenv("OPENAI_API_KEY"):
        return _fallback_answer(query, products), {"model": FALLBACK_MODEL}

    messages = build_messages(query, history or [], products, profile)
    client = _openai_client()
    text, model = _chat_completion_with_retry(client, messages)
    if not text:
        return _fallback_answer(query, products), {"model": FALLBACK_MODEL}
    return text, {"model": model}
