# =============================================
# File: tests/conftest.py
# Purpose: Shared catalog fixtures for engine, strategy and endpoint tests
# =============================================
import sys, os
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from datetime import datetime

import pytest

from app.models import CatalogItem


def _item(id, name, category="", sub_category="", colors=(), sizes=(), created_at=None, **extra):
    return CatalogItem(
        id=id,
        name=name,
        category=category,
        sub_category=sub_category,
        colors=list(colors),
        sizes=list(sizes),
        created_at=created_at,
        **extra,
    )


@pytest.fixture
def make_item():
    return _item


@pytest.fixture
def fashion_catalog():
    return [
        _item("w1", "Delia Dress", "Women", "Dresses", ["Red"], ["S", "M"], datetime(2025, 5, 1)),
        _item("w2", "Summer Dress", "Women", "Dresses", ["Yellow"], ["S"], datetime(2025, 6, 1)),
        _item("w3", "Evening Dress", "Women", "Dresses", ["Black"], ["M"], datetime(2025, 4, 1)),
        _item("w4", "Demia Crop", "Women", "Crop Tops", ["White"], ["S"], datetime(2025, 3, 1)),
        _item("w5", "MVT Shorts", "Women", "Shorts", ["Black"], ["M"], datetime(2025, 2, 1)),
        _item("m1", "Sanit Joggers", "Men", "Joggers", ["Gray"], ["M", "L"], datetime(2025, 5, 15)),
        _item("m2", "Parker Cargo Pant", "Men", "Pants", ["Green"], ["32"], datetime(2025, 1, 1)),
        _item("m3", "Core Tee", "Men", "T-Shirts", ["White"], ["M"], datetime(2025, 6, 10)),
        _item("m4", "Cloud Hoodie", "Men", "Hoodies", ["Gray"], ["M", "XL"], datetime(2025, 6, 20)),
        _item("u1", "Crossbody Bag", "Accessories", "Bags", ["Brown"], [], datetime(2025, 2, 14)),
    ]


@pytest.fixture
def known_values(fashion_catalog):
    cats = {it.category for it in fashion_catalog}
    subs = {it.sub_category for it in fashion_catalog}
    return cats, subs


class StaticSource:
    """In-memory catalog source; set `fail` to simulate an unreachable catalog."""
    def __init__(self, items):
        self.items = list(items)
        self.fail = False
        self.loads = 0

    def load_items(self):
        from app.services.catalog import CatalogError
        if self.fail:
            raise CatalogError("catalog offline")
        self.loads += 1
        return list(self.items)

    def probe_categories(self):
        from app.services.catalog import CatalogError, categories_of
        if self.fail:
            raise CatalogError("catalog offline")
        return categories_of(self.items)


@pytest.fixture
def mount_client(monkeypatch, tmp_path, fashion_catalog):
    """
    TestClient over the app with an in-memory catalog, a throwaway profile
    store, fresh metrics and a generous rate limit.
    """
    from fastapi.testclient import TestClient
    from app.services import catalog as catalog_mod
    from app.services.profiles import ProfileStore
    from app.utils import metrics
    from app.utils.ratelimit import reset_rate_limit
    import app.routers.chat as chat_mod
    import app.routers.profiles as profiles_mod

    def _mount(items=None):
        monkeypatch.setenv("RL_MAX_REQS", "100")
        monkeypatch.setenv("RL_WINDOW_SECONDS", "60")
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        reset_rate_limit()
        metrics.reset()

        source = StaticSource(fashion_catalog if items is None else items)
        catalog_mod.set_catalog_cache(catalog_mod.CatalogCache(source, ttl_seconds=300))
        store = ProfileStore(str(tmp_path / "profiles.json"))
        monkeypatch.setattr(chat_mod, "PROFILE_STORE", store)
        monkeypatch.setattr(profiles_mod, "PROFILE_STORE", store)

        from app.main import app
        return TestClient(app), source, store

    yield _mount
    catalog_mod.set_catalog_cache(None)
