# =============================================
# File: app/utils/prompting.py
# Purpose: Build chat messages for the shopping assistant (store FAQ + product context)
# =============================================
from __future__ import annotations
from typing import Dict, List, Optional, Sequence

from app.models import CatalogItem, UserProfile

MAX_CONTEXT_PRODUCTS = 20

# Store FAQ injected into the system prompt; also used by the extractive fallback.
STORE_FAQ: List[Dict[str, object]] = [
    {
        "keywords": ("return policy", "return", "refund"),
        "answer": "Returns are accepted within 30 days of delivery for unworn items with tags attached. "
                  "Refunds are issued to the original payment method within 5-7 business days.",
    },
    {
        "keywords": ("shipping cost", "how much does shipping", "free shipping"),
        "answer": "Standard shipping is free on orders over $50; below that a flat $5.99 applies. "
                  "Express shipping costs $12.99.",
    },
    {
        "keywords": ("how long", "shipping take", "delivery time"),
        "answer": "Standard shipping takes 3-5 business days and express shipping 1-2 business days.",
    },
    {
        "keywords": ("track", "tracking"),
        "answer": "Once your order ships you'll receive a tracking number by email; you can also follow it under Order History.",
    },
    {
        "keywords": ("hours", "customer service", "contact"),
        "answer": "Customer service is available Monday to Friday, 9 AM to 6 PM, by email or live chat.",
    },
]

SYS_PROMPT = (
    "You are the store's friendly shopping assistant. Answer in English, be concise (under 100 words when possible). "
    "Use ONLY the PRODUCTS and STORE FAQ below; never invent products, prices or policies. "
    "When you recommend a product, write its exact name followed by its price in parentheses, e.g. \"Delia Dress ($8.40)\". "
    "If we don't carry what the shopper asks for, say so plainly."
)

USER_TEMPLATE = (
    "PRODUCTS:\n{products}\n\n"
    "STORE FAQ:\n{faq}\n\n"
    "SHOPPER CONTEXT:\n{profile}\n\n"
    "Shopper message:\n{question}"
)


def product_context(products: Sequence[CatalogItem], limit: int = MAX_CONTEXT_PRODUCTS) -> str:
    lines = []
    for p in list(products)[:limit]:
        sizes = ", ".join(sorted(p.sizes)) or "Not specified"
        lines.append(f"- {p.name} (${p.price:.2f}) | {p.category} / {p.sub_category} | sizes: {sizes}")
    return "\n".join(lines) or "(no products)"


def _faq_context() -> str:
    return "\n".join(f"- {e['answer']}" for e in STORE_FAQ)


def _profile_context(profile: Optional[UserProfile]) -> str:
    if profile is None:
        return "(none)"
    parts = []
    if profile.top_categories:
        parts.append("likes categories: " + ", ".join(profile.top_categories))
    if profile.top_colors:
        parts.append("likes colours: " + ", ".join(profile.top_colors))
    if profile.preferred_sizes_by_category:
        parts.append("sizes: " + ", ".join(f"{k}={v}" for k, v in profile.preferred_sizes_by_category.items()))
    if profile.preferred_fit_types:
        parts.append("fit: " + ", ".join(profile.preferred_fit_types))
    return "; ".join(parts) or "(none)"


def build_messages(
    query: str,
    history: Sequence[Dict[str, str]],
    products: Sequence[CatalogItem],
    profile: Optional[UserProfile] = None,
) -> List[Dict[str, str]]:
    """
    Messages for the Chat Completions API: system prompt, prior turns
    (role user/assistant), then the current message with catalog context.
    """
    messages: List[Dict[str, str]] = [{"role": "system", "content": SYS_PROMPT}]
    for turn in history or []:
        role = "assistant" if turn.get("role") in ("assistant", "model") else "user"
        content = (turn.get("content") or "").strip()
        if content:
            messages.append({"role": role, "content": content})
    messages.append({
        "role": "user",
        "content": USER_TEMPLATE.format(
            products=product_context(products),
            faq=_faq_context(),
            profile=_profile_context(profile),
            question=(query or "").strip(),
        ),
    })
    return messages
