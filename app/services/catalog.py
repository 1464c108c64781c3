# =============================================
# File: app/services/catalog.py
# Purpose: Catalog snapshot cache (TTL + refresh on newly seen categories) and JSON catalog source
# =============================================
from __future__ import annotations

import json
import os
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Protocol, Tuple

from loguru import logger
from pydantic import ValidationError

from app.models import CatalogItem

_DEFAULT_PATH = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data", "catalog.json")
CATALOG_PATH = os.getenv("CATALOG_PATH", _DEFAULT_PATH)
CATALOG_TTL_SECONDS = float(os.getenv("CATALOG_TTL_SECONDS", "300"))


class CatalogError(RuntimeError):
    """The catalog source could not be read or parsed."""


class CatalogSource(Protocol):
    def load_items(self) -> List[CatalogItem]: ...

    def probe_categories(self) -> Tuple[FrozenSet[str], FrozenSet[str]]: ...


@dataclass(frozen=True)
class CatalogSnapshot:
    items: Tuple[CatalogItem, ...] = ()
    known_categories: FrozenSet[str] = frozenset()
    known_sub_categories: FrozenSet[str] = frozenset()
    last_refresh: float = 0.0
    reason: str = ""


def categories_of(items) -> Tuple[FrozenSet[str], FrozenSet[str]]:
    cats = frozenset(it.category for it in items if it.category)
    subs = frozenset(it.sub_category for it in items if it.sub_category)
    return cats, subs


def recent_items(items, now: datetime, hours: int = 24) -> List[CatalogItem]:
    """Items created within the last `hours` (naive UTC `now`)."""
    cutoff = now - timedelta(hours=hours)
    return [it for it in items if it.created_at is not None and it.created_at > cutoff]


class JsonCatalogSource:
    """
    Catalog stored as a JSON list of product objects (or {"products": [...]}).
    Invalid records are skipped with a warning; an unreadable file raises CatalogError.
    """
    def __init__(self, path: str = CATALOG_PATH) -> None:
        self.path = path

    def _read(self) -> List[Dict[str, Any]]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise CatalogError(f"cannot read catalog at {self.path}: {e}") from e
        if isinstance(data, dict):
            data = data.get("products", [])
        if not isinstance(data, list):
            raise CatalogError(f"catalog at {self.path} is not a list of products")
        return [r for r in data if isinstance(r, dict)]

    def _parse(self, warn: bool) -> List[CatalogItem]:
        items: List[CatalogItem] = []
        for raw in self._read():
            try:
                items.append(CatalogItem.model_validate(raw))
            except ValidationError as e:
                if warn:
                    logger.warning(f"[catalog] skipping invalid product id={raw.get('id')!r}: {e.error_count()} error(s)")
        return items

    def load_items(self) -> List[CatalogItem]:
        return self._parse(warn=True)

    def probe_categories(self) -> Tuple[FrozenSet[str], FrozenSet[str]]:
        # Validated rows only, the same set load_items keeps.
        return categories_of(self._parse(warn=False))


class CatalogCache:
    """
    Caller-owned catalog snapshot.

    fetch() reloads when forced, when the TTL has expired, or when the source
    reports a category / subcategory value the snapshot has not seen yet.
    A failed reload keeps serving the previous snapshot; with no snapshot the
    CatalogError propagates.
    """
    def __init__(
        self,
        source: CatalogSource,
        ttl_seconds: float = CATALOG_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._source = source
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._snapshot: Optional[CatalogSnapshot] = None

    @property
    def snapshot(self) -> Optional[CatalogSnapshot]:
        return self._snapshot

    def _expired(self, now: float) -> bool:
        return self._snapshot is None or (now - self._snapshot.last_refresh) >= self._ttl

    def _has_new_categories(self) -> bool:
        snap = self._snapshot
        if snap is None:
            return True
        cats, subs = self._source.probe_categories()
        new_cats = cats - snap.known_categories
        new_subs = subs - snap.known_sub_categories
        if new_cats or new_subs:
            logger.info(f"[catalog] new categories={sorted(new_cats)} subcategories={sorted(new_subs)}")
            return True
        return False

    def _refresh(self, now: float, reason: str) -> CatalogSnapshot:
        items = self._source.load_items()
        cats, subs = categories_of(items)
        snap = CatalogSnapshot(
            items=tuple(items),
            known_categories=cats,
            known_sub_categories=subs,
            last_refresh=now,
            reason=reason,
        )
        self._snapshot = snap
        logger.info(f"[catalog] refreshed ({reason}): {len(items)} products, {len(cats)} categories")
        return snap

    def fetch(self, force_refresh: bool = False) -> CatalogSnapshot:
        with self._lock:
            now = self._clock()
            try:
                if force_refresh:
                    return self._refresh(now, "forced")
                if self._expired(now):
                    return self._refresh(now, "ttl" if self._snapshot else "initial")
                if self._has_new_categories():
                    return self._refresh(now, "new_category")
            except CatalogError as e:
                if self._snapshot is None:
                    raise
                logger.error(f"[catalog] refresh failed, serving previous snapshot: {e}")
            return self._snapshot

    def clear(self) -> None:
        with self._lock:
            self._snapshot = None


_default_cache: Optional[CatalogCache] = None


def get_catalog_cache() -> CatalogCache:
    """Process-wide cache used by the routers (tests swap it via set_catalog_cache)."""
    global _default_cache
    if _default_cache is None:
        _default_cache = CatalogCache(JsonCatalogSource(os.getenv("CATALOG_PATH", CATALOG_PATH)))
    return _default_cache


def set_catalog_cache(cache: Optional[CatalogCache]) -> None:
    global _default_cache
    _default_cache = cache
