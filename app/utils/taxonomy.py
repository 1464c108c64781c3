# =============================================
# File: app/utils/taxonomy.py
# Purpose: Vocabulary tables for query classification, gender inference and category matching
# =============================================
from __future__ import annotations

import re
from typing import Dict, Iterable, List, Pattern, Tuple

# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def word_pattern(terms: Iterable[str], plural: bool = False) -> Pattern[str]:
    """
    Whole-word alternation over `terms` (longest first).
    With plural=True each term also matches with a trailing "s"/"es".
    Hyphens count as word characters so "shirt" does not fire inside "t-shirt".
    """
    alts = sorted({t.lower() for t in terms if t}, key=len, reverse=True)
    body = "|".join(re.escape(t) for t in alts) or r"(?!x)x"
    suffix = r"(?:e?s)?" if plural else ""
    return re.compile(rf"(?<![\w-])(?:{body}){suffix}(?![\w-])", re.IGNORECASE)


def normalize_text(text: str) -> str:
    return (text or "").replace("’", "'").replace("‘", "'").lower()


# ---------------------------------------------------------------------
# Gender
# ---------------------------------------------------------------------

# Words in the user's message / generated answer that signal an audience.
WOMEN_QUERY_WORDS = ("women", "woman", "womens", "ladies", "lady", "female")
MEN_QUERY_WORDS = ("men", "man", "mens", "guys", "guy", "male")

# Explicit gendered words on a catalog item.
WOMEN_INDICATORS = ("women", "womens", "ladies", "woman", "lady")
MEN_INDICATORS = ("men", "man", "mens", "male", "guys", "boy", "boys")

# Garment types treated as intrinsically gendered.
WOMEN_GARMENTS = ("dress", "skirt", "crop", "legging", "bra", "blouse")
MEN_GARMENTS = ("suit", "tie", "boxer", "brief")

WOMEN_QUERY_RE = word_pattern(WOMEN_QUERY_WORDS)
MEN_QUERY_RE = word_pattern(MEN_QUERY_WORDS)
WOMEN_INDICATOR_RE = word_pattern(WOMEN_INDICATORS)
MEN_INDICATOR_RE = word_pattern(MEN_INDICATORS)
WOMEN_GARMENT_RE = word_pattern(WOMEN_GARMENTS, plural=True)
MEN_GARMENT_RE = word_pattern(MEN_GARMENTS, plural=True)

# ---------------------------------------------------------------------
# Response-category clusters (strategy priority 1)
# canonical -> (mention terms, item substrings, item-name exclusions)
# ---------------------------------------------------------------------

RESPONSE_CATEGORY_CLUSTERS: Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...], Tuple[str, ...]]] = {
    "dress": (("dress", "dresses"), ("dress",), ()),
    "skirt": (("skirt", "skirts"), ("skirt",), ()),
    "crop top": (("crop top", "crop tops", "crop", "crops"), ("crop",), ()),
    "leggings": (("legging", "leggings"), ("legging",), ()),
    "tank": (("tank", "tanks", "tank top", "tank tops"), ("tank",), ()),
    "shorts": (("shorts",), ("short",), ("shirt", "pant", "cargo", "jogger", "jean")),
    "hoodie": (("hoodie", "hoodies", "hoody", "hoodys"), ("hoodie", "hoody"), ()),
    "jacket": (("jacket", "jackets"), ("jacket",), ()),
    "jeans": (("jeans", "jean", "denim"), ("jean", "denim"), ()),
    "pants": (("pants", "pant", "trousers", "trouser", "cargo"), ("pant", "trouser"), ()),
    "t-shirt": (
        ("t-shirt", "t-shirts", "tshirt", "tshirts", "tee", "tees"),
        ("t-shirt", "tshirt", "tee"),
        ("tank", "crop", "jogger", "pant", "cargo"),
    ),
    "shirt": (("shirt", "shirts"), ("shirt",), ()),
    "accessories": (("accessories", "accessory", "bag", "bags"), ("accessor", "bag", "handbag"), ()),
    "gym": (
        ("gym", "workout", "workouts", "sport", "sports", "athletic", "jogger", "joggers", "activewear", "training"),
        ("gym", "sport", "athletic", "workout", "jogger", "activewear"),
        (),
    ),
}

RESPONSE_CATEGORY_PATTERNS: Dict[str, Pattern[str]] = {
    canon: word_pattern(mentions) for canon, (mentions, _, _) in RESPONSE_CATEGORY_CLUSTERS.items()
}

# ---------------------------------------------------------------------
# Category-match vocabulary (strategy priority 4)
# canonical -> synonyms; any synonym in the query selects the cluster,
# any synonym on the item matches it.
# ---------------------------------------------------------------------

CATEGORY_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "hoodie": ("hoodie", "hoodies", "hoody", "hoodys", "sweatshirt"),
    "t-shirt": ("t-shirt", "tshirt", "tee", "tees"),
    "shirt": ("shirt", "shirts"),
    "dress": ("dress", "dresses"),
    "skirt": ("skirt", "skirts"),
    "jacket": ("jacket", "jackets", "coat", "coats", "outerwear"),
    "jeans": ("jeans", "denim"),
    "pants": ("pants", "trousers", "cargo"),
    "shorts": ("shorts",),
    "leggings": ("leggings", "legging"),
    "tank": ("tank", "tanks"),
    "crop": ("crop", "crops"),
    "sweater": ("sweater", "sweaters", "jumper", "knit", "knitwear"),
    "shoes": ("shoe", "shoes", "sneakers", "trainers"),
    "accessories": ("accessories", "accessory", "bag", "bags", "handbag"),
    "sport": ("sport", "sports", "gym", "workout", "athletic", "activewear", "joggers", "jogger"),
}

CATEGORY_QUERY_PATTERNS: Dict[str, Pattern[str]] = {
    canon: word_pattern(syns) for canon, syns in CATEGORY_SYNONYMS.items()
}

# ---------------------------------------------------------------------
# Colours (strategy priority 6)
# ---------------------------------------------------------------------

COLOR_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "black": ("black",),
    "white": ("white",),
    "red": ("red",),
    "blue": ("blue",),
    "green": ("green",),
    "yellow": ("yellow",),
    "pink": ("pink",),
    "purple": ("purple",),
    "orange": ("orange",),
    "brown": ("brown",),
    "gray": ("gray", "grey"),
    "navy": ("navy",),
}

COLOR_PATTERNS: Dict[str, Pattern[str]] = {
    canon: word_pattern(syns) for canon, syns in COLOR_SYNONYMS.items()
}

# ---------------------------------------------------------------------
# Query classification phrases
# ---------------------------------------------------------------------

NEGATIVE_AVAILABILITY_PATTERNS: List[Pattern[str]] = [
    re.compile(r"\b(?:do not|don't|dont)\s+(?:currently\s+|yet\s+)?(?:have|carry|sell|stock|offer)\b", re.I),
    re.compile(r"\bnot\s+(?:currently\s+)?(?:available|in stock|carried)\b", re.I),
    re.compile(r"\bout\s+of\s+stock\b", re.I),
    re.compile(r"\bsorry\b[^.!?]*\b(?:do not|don't|dont)\s+have\b", re.I),
    re.compile(r"\b(?:currently\s+)?unavailable\b", re.I),
    re.compile(r"\bno longer\s+(?:available|carry|sell|stock)\b", re.I),
    re.compile(r"\bwe\s+(?:currently\s+)?(?:have no|carry no)\b", re.I),
]

STRONG_FAQ_INDICATORS = (
    "return policy", "shipping policy", "exchange policy", "refund policy",
    "how long does shipping take", "how much does shipping cost",
    "what is your return policy", "what are your hours",
    "how do i return", "how do i exchange", "how do i track",
    "customer service", "contact information", "business hours",
)

FAQ_KEYWORDS = (
    "policy", "policies", "shipping", "delivery", "return", "exchange", "payment",
    "order", "track", "contact", "help", "support", "faq", "question",
    "hours", "store", "location", "warranty", "guarantee", "refund",
    "how do i", "how can i", "how long", "what is", "what are", "when do",
    "process", "procedure", "steps", "method", "way to", "cost of shipping",
    "free shipping", "customer service", "business hours", "opening hours",
)

# Policy / service language in the generated answer.
ANSWER_POLICY_TERMS = (
    "policy", "policies", "shipping", "return", "exchange", "days", "hours", "business hours",
)

AVAILABILITY_PHRASES = ("do you have", "do you sell", "do you offer")

RECOMMENDATION_PHRASES = (
    "recommend", "suggest", "what should i wear", "what to wear",
    "outfit for", "help me find", "looking for", "show me", "need something",
)

# Garment / product nouns that make an availability or recommendation
# question a product question. Bare verbs (have, sell, offer) are not enough.
PRODUCT_QUERY_KEYWORDS = (
    "color", "colour", "size", "shirt", "top", "dress", "pant", "jean", "hoodie", "hoody",
    "sweater", "jacket", "coat", "shoe", "sneaker", "accessory", "accessories", "bag", "outfit",
    "tee", "short", "skirt", "legging", "tank", "crop", "jogger", "clothes", "clothing", "style",
)

EXPLICIT_REQUEST_PHRASES = (
    "recommend", "suggestion", "suggest", "show me", "help me find",
    "looking for", "need", "want to buy", "shopping for", "browse",
    "what should i wear", "what to wear", "outfit for", "clothes for",
    "do you have", "do you sell", "do you offer", "available",
    "in stock", "find me", "help me choose", "pick out", "options",
)

PRODUCT_CATEGORY_TERMS = (
    "women", "womens", "men", "mens", "ladies", "dress", "hoodie", "hoody", "jacket",
    "accessories", "accessory", "shirt", "t-shirt", "tshirt", "tee", "pant", "jean",
    "short", "skirt", "legging", "tank", "crop", "jogger", "sweater", "shoe", "top",
    "coat", "bag", "activewear",
)
PRODUCT_CATEGORY_RE = word_pattern(PRODUCT_CATEGORY_TERMS, plural=True)

SPECIFIC_GARMENT_TERMS = (
    "hoodie", "hoody", "t-shirt", "tshirt", "tee", "jacket", "dress", "shoe", "sneaker",
    "shirt", "pant", "trouser", "jean", "skirt", "short", "legging", "sweater", "coat",
    "tank", "crop top", "jogger", "blouse", "bag", "accessories",
)
SPECIFIC_GARMENT_RE = word_pattern(SPECIFIC_GARMENT_TERMS, plural=True)

OUTFIT_PHRASES = (
    "what should i wear", "what to wear", "outfit for", "outfit ideas",
    "clothes for", "something to wear", "dress up for",
)

NEW_TOKEN_RE = re.compile(r"(?<![\w-])new(?![\w-])", re.IGNORECASE)
