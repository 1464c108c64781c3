# =============================================
# File: app/services/strategies.py
# Purpose: Candidate generators; each one scores catalog items for a chat turn
# =============================================
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Pattern, Set

from app.models import CandidateMatch, CatalogItem, UserProfile
from app.services.gender import MEN, WOMEN, detect_gender_preference, filter_products_by_gender
from app.utils.similarity import similarity
from app.utils.taxonomy import (
    CATEGORY_QUERY_PATTERNS,
    CATEGORY_SYNONYMS,
    COLOR_PATTERNS,
    COLOR_SYNONYMS,
    MEN_INDICATOR_RE,
    MEN_QUERY_RE,
    NEW_TOKEN_RE,
    RESPONSE_CATEGORY_CLUSTERS,
    RESPONSE_CATEGORY_PATTERNS,
    WOMEN_INDICATOR_RE,
    WOMEN_QUERY_RE,
    normalize_text,
    word_pattern,
)

RESPONSE_CATEGORY_SCORE = 0.9
MENTION_MIN_SIMILARITY = 0.5
CATEGORY_CLUSTER_SCORE = 0.8
GENDER_CATEGORY_SCORE = 0.75
KNOWN_CATEGORY_SCORE = 0.7
COLOR_SCORE = 0.7
NEW_PRODUCT_SCORES = (0.9, 0.8, 0.7, 0.6, 0.5)
PROFILE_MAX_POINTS = 8.0

# "Delia Dress ($8.40)" / "**Arya Shorts** ($12)"
# Name: at most six words directly before the price.
_MENTION_RE = re.compile(
    r"((?:[A-Za-z0-9][A-Za-z0-9'&-]*[ \t]+){0,5}[A-Za-z0-9][A-Za-z0-9'&-]*)"
    r"[*_]*\s*\(\s*\$\s*\d[\d,]*(?:\.\d+)?\s*\)"
)

# Needles shorter than this only match whole words ("tee" is not in "guaranteed").
SUBSTRING_NEEDLE_MIN = 4
_word_needles: Dict[str, Pattern[str]] = {}


@dataclass
class MatchContext:
    query: str
    answer_text: str
    catalog: List[CatalogItem]
    known_categories: Set[str] = field(default_factory=set)
    known_sub_categories: Set[str] = field(default_factory=set)
    profile: Optional[UserProfile] = None


@dataclass
class Strategy:
    name: str
    priority: int
    execute: Callable[[MatchContext], List[CandidateMatch]]


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def _working_set(ctx: MatchContext) -> List[CatalogItem]:
    """Catalog slice every strategy scores against: gender-filtered for this turn."""
    preference = detect_gender_preference(ctx.query, ctx.answer_text)
    return filter_products_by_gender(ctx.catalog or [], preference)


def _item_text_fields(item: CatalogItem) -> List[str]:
    return [
        normalize_text(item.category),
        normalize_text(item.sub_category),
        normalize_text(item.keywords),
        normalize_text(item.name),
    ]


def _field_has(needle: str, field: str) -> bool:
    if len(needle) >= SUBSTRING_NEEDLE_MIN:
        return needle in field
    pat = _word_needles.get(needle)
    if pat is None:
        pat = _word_needles[needle] = word_pattern([needle], plural=True)
    return bool(pat.search(field))


def _best_per_item(matches: Iterable[CandidateMatch]) -> List[CandidateMatch]:
    """Keep one match per item id (highest score, first seen on ties), in first-seen order."""
    best: Dict[str, CandidateMatch] = {}
    for m in matches:
        cur = best.get(m.item.id)
        if cur is None or m.similarity > cur.similarity:
            best[m.item.id] = m
    return list(best.values())


# ---------------------------------------------------------------------
# 1. Categories mentioned in the query or the generated answer
# ---------------------------------------------------------------------

def response_category(ctx: MatchContext) -> List[CandidateMatch]:
    text = f"{normalize_text(ctx.query)} {normalize_text(ctx.answer_text)}"
    mentioned = [c for c, pat in RESPONSE_CATEGORY_PATTERNS.items() if pat.search(text)]
    if not mentioned:
        return []

    out: List[CandidateMatch] = []
    for item in _working_set(ctx):
        fields = _item_text_fields(item)
        name = normalize_text(item.name)
        for canon in mentioned:
            _, needles, name_exclusions = RESPONSE_CATEGORY_CLUSTERS[canon]
            if any(x in name for x in name_exclusions):
                continue
            if any(_field_has(n, f) for n in needles for f in fields):
                out.append(CandidateMatch(item, RESPONSE_CATEGORY_SCORE, "responseCategory"))
                break
    return out


# ---------------------------------------------------------------------
# 2. "<name> ($price)" mentions in the generated answer
# ---------------------------------------------------------------------

def extract_mentioned_names(answer_text: str) -> List[str]:
    names = []
    for m in _MENTION_RE.finditer(answer_text or ""):
        name = m.group(1).strip(" -'&")
        if name:
            names.append(name)
    return names


def explicit_mentions(ctx: MatchContext) -> List[CandidateMatch]:
    names = extract_mentioned_names(ctx.answer_text)
    if not names:
        return []
    out: List[CandidateMatch] = []
    for item in _working_set(ctx):
        best = max(similarity(n, item.name) for n in names)
        if best > MENTION_MIN_SIMILARITY:
            out.append(CandidateMatch(item, best, "explicitMentions"))
    return out


# ---------------------------------------------------------------------
# 3. Item name appears in the query (or the query in the name)
# ---------------------------------------------------------------------

def direct_name_match(ctx: MatchContext) -> List[CandidateMatch]:
    q = normalize_text(ctx.query).strip()
    if not q:
        return []
    out: List[CandidateMatch] = []
    for item in _working_set(ctx):
        name = item.normalized_name
        if name and (name in q or q in name):
            out.append(CandidateMatch(item, similarity(q, name), "directNameMatch"))
    return out


# ---------------------------------------------------------------------
# 4. Category vocabulary in the query (fixed clusters + live catalog values)
# ---------------------------------------------------------------------

def _known_terms(ctx: MatchContext) -> List[str]:
    terms = set()
    for value in list(ctx.known_categories or ()) + list(ctx.known_sub_categories or ()):
        v = normalize_text(str(value)).strip()
        if len(v) >= 3:
            terms.add(v)
    return sorted(terms)


def category_match(ctx: MatchContext) -> List[CandidateMatch]:
    q = normalize_text(ctx.query)
    working = _working_set(ctx)
    out: List[CandidateMatch] = []

    clusters = [c for c, pat in CATEGORY_QUERY_PATTERNS.items() if pat.search(q)]
    for item in working:
        fields = _item_text_fields(item)
        for canon in clusters:
            needles = (canon,) + CATEGORY_SYNONYMS[canon]
            if any(_field_has(n, f) for n in needles for f in fields):
                out.append(CandidateMatch(item, CATEGORY_CLUSTER_SCORE, "categoryMatch"))
                break

    # Values harvested from the live catalog ("Joggers", "Crop Tops", ...);
    # singular forms count, so "jogger" selects "joggers".
    for term in _known_terms(ctx):
        forms = {term, term[:-1]} if term.endswith("s") and len(term) > 3 else {term}
        if not word_pattern(forms, plural=True).search(q):
            continue
        for item in working:
            if term in (normalize_text(item.category).strip(), normalize_text(item.sub_category).strip()):
                out.append(CandidateMatch(item, KNOWN_CATEGORY_SCORE, "categoryMatch"))

    preference = detect_gender_preference(ctx.query, ctx.answer_text)
    if preference == WOMEN and WOMEN_QUERY_RE.search(q):
        indicator = WOMEN_INDICATOR_RE
    elif preference == MEN and MEN_QUERY_RE.search(q):
        indicator = MEN_INDICATOR_RE
    else:
        indicator = None
    if indicator is not None:
        for item in working:
            cat = f"{normalize_text(item.category)} {normalize_text(item.sub_category)}"
            if indicator.search(cat):
                out.append(CandidateMatch(item, GENDER_CATEGORY_SCORE, "categoryMatch"))

    return _best_per_item(out)


# ---------------------------------------------------------------------
# 5. Newest arrivals when the query says "new"
# ---------------------------------------------------------------------

def new_products(ctx: MatchContext) -> List[CandidateMatch]:
    if not NEW_TOKEN_RE.search(ctx.query or ""):
        return []
    working = _working_set(ctx)
    newest = sorted(working, key=lambda it: it.created_at or datetime.min, reverse=True)
    return [
        CandidateMatch(item, score, "newProducts")
        for item, score in zip(newest, NEW_PRODUCT_SCORES)
    ]


# ---------------------------------------------------------------------
# 6. Named colours in the query or answer
# ---------------------------------------------------------------------

def extract_colors(text: str) -> Set[str]:
    t = normalize_text(text)
    return {canon for canon, pat in COLOR_PATTERNS.items() if pat.search(t)}


def color_match(ctx: MatchContext) -> List[CandidateMatch]:
    wanted = extract_colors(f"{ctx.query} {ctx.answer_text}")
    if not wanted:
        return []
    wanted_words = {syn for canon in wanted for syn in COLOR_SYNONYMS[canon]}
    out: List[CandidateMatch] = []
    for item in _working_set(ctx):
        item_words = {w for c in item.colors for w in normalize_text(c).split()}
        if item_words & wanted_words:
            out.append(CandidateMatch(item, COLOR_SCORE, "colorMatch"))
    return out


# ---------------------------------------------------------------------
# 7. Profile affinity (only with a profile)
# ---------------------------------------------------------------------

def _lower_set(values: Iterable[str]) -> Set[str]:
    return {normalize_text(v).strip() for v in (values or []) if v}


def user_preference(ctx: MatchContext) -> List[CandidateMatch]:
    profile = ctx.profile
    if profile is None:
        return []
    top_categories = _lower_set(profile.top_categories)
    top_colors = _lower_set(profile.top_colors)
    top_sizes = _lower_set(profile.top_sizes)
    viewed = [v for v in _lower_set(profile.recently_viewed) if v]

    out: List[CandidateMatch] = []
    for item in _working_set(ctx):
        points = 0
        if normalize_text(item.category).strip() in top_categories:
            points += 3
        if _lower_set(item.colors) & top_colors:
            points += 2
        if _lower_set(item.sizes) & top_sizes:
            points += 1
        name = item.normalized_name
        if name and any(v in name or name in v for v in viewed):
            points += 2
        if points > 0:
            out.append(CandidateMatch(item, points / PROFILE_MAX_POINTS, "userPreference"))
    return out


STRATEGIES: List[Strategy] = [
    Strategy("responseCategory", 1, response_category),
    Strategy("explicitMentions", 2, explicit_mentions),
    Strategy("directNameMatch", 3, direct_name_match),
    Strategy("categoryMatch", 4, category_match),
    Strategy("newProducts", 5, new_products),
    Strategy("colorMatch", 6, color_match),
    Strategy("userPreference", 7, user_preference),
]
