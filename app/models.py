# =============================================
# File: app/models.py
# Purpose: Catalog, profile and engine result models shared by services and routers
# =============================================
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _as_str_set(value: Any) -> FrozenSet[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        value = [value]
    out = set()
    for v in value:
        s = str(v or "").strip()
        if s:
            out.add(s)
    return frozenset(out)


class CatalogItem(BaseModel):
    """
    One sellable product as seen by the recommender.
    Catalog JSON uses camelCase (subCategory, createdAt, normalizedName); both
    spellings are accepted. normalized_name and keywords are derived when missing.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str = ""
    normalized_name: str = Field("", alias="normalizedName")
    price: float = 0.0
    category: str = ""
    sub_category: str = Field("", alias="subCategory")
    sizes: FrozenSet[str] = frozenset()
    colors: FrozenSet[str] = frozenset()
    description: str = ""
    tag: str = ""
    keywords: str = ""
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    @model_validator(mode="before")
    @classmethod
    def _derive_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in ("name", "category", "description", "tag"):
            if data.get(key) is None:
                data[key] = ""
        for field, alias in (("sub_category", "subCategory"), ("normalized_name", "normalizedName")):
            if data.get(alias) is None:
                data.pop(alias, None)
                if data.get(field) is None:
                    data[field] = ""
        if data.get("price") is None:
            data["price"] = 0.0
        if "id" in data:
            data["id"] = str(data["id"])

        name = str(data.get("name") or "")
        if not (data.get("normalized_name") or data.get("normalizedName")):
            data["normalized_name"] = name.strip().lower()

        if not data.get("keywords"):
            colors = sorted(_as_str_set(data.get("colors")))
            sizes = sorted(_as_str_set(data.get("sizes")))
            parts = [
                name,
                str(data.get("category") or ""),
                str(data.get("sub_category") or data.get("subCategory") or ""),
                str(data.get("description") or ""),
                str(data.get("tag") or ""),
                " ".join(colors),
                " ".join(sizes),
            ]
            data["keywords"] = " ".join(p for p in parts if p).lower()
        return data

    @field_validator("sizes", "colors", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> FrozenSet[str]:
        return _as_str_set(v)

    @field_validator("created_at")
    @classmethod
    def _naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # Mixed aware/naive timestamps must stay comparable for "newest first" sorting.
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    def summary(self) -> Dict[str, Any]:
        """Compact, JSON-friendly view used in chat payloads and LLM context."""
        return {
            "id": self.id,
            "name": self.name,
            "price": round(self.price, 2),
            "category": self.category,
            "subCategory": self.sub_category,
            "colors": sorted(self.colors),
            "sizes": sorted(self.sizes),
        }


class UserProfile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recently_viewed: List[str] = Field(default_factory=list, alias="recentlyViewed")
    top_categories: List[str] = Field(default_factory=list, alias="topCategories")
    top_colors: List[str] = Field(default_factory=list, alias="topColors")
    top_sizes: List[str] = Field(default_factory=list, alias="topSizes")
    preferred_sizes_by_category: Dict[str, str] = Field(default_factory=dict, alias="preferredSizesByCategory")
    measurements: Dict[str, float] = Field(default_factory=dict)
    preferred_fit_types: List[str] = Field(default_factory=list, alias="preferredFitTypes")


@dataclass
class CandidateMatch:
    item: CatalogItem
    similarity: float
    strategy: str

    def __post_init__(self) -> None:
        self.similarity = min(1.0, max(0.0, float(self.similarity)))


class EngineResult(BaseModel):
    """
    Outcome of one recommendation decision.
    - gate: which branch decided the outcome (negative_availability, faq,
      not_requested, no_match, recommended, below_threshold).
    - refiltered: number of items the final gender pass removed.
    """
    augmented_text: str
    recommendations: List[CatalogItem] = Field(default_factory=list)
    relevance_score: float = 0.0
    gate: str = "recommended"
    refiltered: int = 0
