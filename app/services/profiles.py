# =============================================
# File: app/services/profiles.py
# Purpose: Shopper profile store backed by JSON; derives the UserProfile used for personalization
# =============================================

# app/services/profiles.py
from __future__ import annotations
import json
import os
import threading
from typing import Dict, List, Optional

from app.models import CatalogItem, UserProfile

_PROFILES_PATH = os.getenv(
    "PROFILES_PATH",
    os.path.join(os.path.dirname(os.path.dirname(__file__)), "data", "profiles", "profiles.json"),
)

# Weight added to category/colour/size affinities per tracked action.
EVENT_WEIGHTS: Dict[str, int] = {
    "view": 1,
    "add_to_cart": 2,
    "add_to_wishlist": 1,
    "remove_from_cart": 0,
    "remove_from_wishlist": 0,
}
VIEWED_CAP = 20
TOP_N = 3


def _top(weights: Dict[str, int], n: int = TOP_N) -> List[str]:
    ranked = sorted(((k, v) for k, v in weights.items() if v > 0), key=lambda kv: (-kv[1], kv[0]))
    return [k for k, _ in ranked[:n]]


class ProfileStore:
    """
    Minimal shopper profile store:
    - viewed: recently viewed product names, most recent first (capped)
    - categories / colors / sizes: affinity weights from views, cart and wishlist actions
    - sizes_by_category, measurements, fit_types: explicit size-profile data
    Persistence: JSON file (thread-safe best-effort). If the file/folder doesn't exist, it is created on first write.
    """
    def __init__(self, path: str = _PROFILES_PATH, viewed_cap: int = VIEWED_CAP) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._mem: Dict[str, Dict] = {}
        self._viewed_cap = viewed_cap
        self._load()

    def _ensure_dir(self) -> None:
        os.makedirs(os.path.dirname(self._path) or ".", exist_ok=True)

    def _load(self) -> None:
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                self._mem = json.load(f)
        except (OSError, ValueError):
            self._mem = {}

    def _flush(self) -> None:
        self._ensure_dir()
        tmp = self._path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(self._mem, f, ensure_ascii=False, indent=2)
        os.replace(tmp, self._path)

    def _get(self, user_id: str) -> Dict:
        if user_id not in self._mem:
            self._mem[user_id] = {
                "viewed": [],
                "categories": {},
                "colors": {},
                "sizes": {},
                "sizes_by_category": {},
                "measurements": {},
                "fit_types": [],
            }
        return self._mem[user_id]

    def track_event(self, user_id: str, event: str, product: CatalogItem) -> None:
        if event not in EVENT_WEIGHTS:
            raise ValueError(f"unknown event {event!r}")
        weight = EVENT_WEIGHTS[event]
        with self._lock:
            p = self._get(user_id)
            if event == "view" and product.name:
                viewed: List[str] = [v for v in p.get("viewed", []) if v != product.name]
                viewed.insert(0, product.name)
                p["viewed"] = viewed[: self._viewed_cap]
            if weight:
                if product.category:
                    cats = p.setdefault("categories", {})
                    cats[product.category] = cats.get(product.category, 0) + weight
                for color in product.colors:
                    cols = p.setdefault("colors", {})
                    cols[color] = cols.get(color, 0) + weight
                for size in product.sizes:
                    sz = p.setdefault("sizes", {})
                    sz[size] = sz.get(size, 0) + weight
            self._flush()

    def set_size_profile(
        self,
        user_id: str,
        sizes_by_category: Optional[Dict[str, str]] = None,
        measurements: Optional[Dict[str, float]] = None,
        fit_types: Optional[List[str]] = None,
    ) -> None:
        with self._lock:
            p = self._get(user_id)
            if sizes_by_category is not None:
                p["sizes_by_category"] = dict(sizes_by_category)
            if measurements is not None:
                p["measurements"] = {k: float(v) for k, v in measurements.items()}
            if fit_types is not None:
                p["fit_types"] = list(fit_types)
            self._flush()

    def has_profile(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._mem

    def get_profile(self, user_id: str) -> UserProfile:
        with self._lock:
            p = dict(self._get(user_id))  # shallow copy
        return UserProfile(
            recently_viewed=list(p.get("viewed", [])),
            top_categories=_top(p.get("categories", {})),
            top_colors=_top(p.get("colors", {})),
            top_sizes=_top(p.get("sizes", {})),
            preferred_sizes_by_category=dict(p.get("sizes_by_category", {})),
            measurements=dict(p.get("measurements", {})),
            preferred_fit_types=list(p.get("fit_types", [])),
        )

    def clear(self) -> None:
        with self._lock:
            self._mem = {}

# Global instance
PROFILE_STORE = ProfileStore()
