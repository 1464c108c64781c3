# =============================================
# File: app/routers/catalog.py
# Purpose: Force a catalog cache refresh and report what the snapshot contains
# =============================================
from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException
from loguru import logger

from app.services.catalog import CatalogError, get_catalog_cache, recent_items
from app.utils.metrics import record_catalog_error

router = APIRouter(tags=["catalog"])


@router.post("/catalog/refresh")
def refresh_catalog():
    """Reload the catalog now; includes how many products were created in the last 24h."""
    try:
        snap = get_catalog_cache().fetch(force_refresh=True)
    except CatalogError as e:
        record_catalog_error()
        raise HTTPException(status_code=503, detail=str(e))

    now = datetime.now(timezone.utc).replace(tzinfo=None)
    recent = recent_items(snap.items, now)
    if recent:
        logger.info(f"[catalog] recent products (24h): {', '.join(p.name for p in recent)}")
    return {
        "success": True,
        "productCount": len(snap.items),
        "timestamp": now.isoformat(timespec="seconds") + "Z",
        "categories": sorted(snap.known_categories),
        "subCategories": sorted(snap.known_sub_categories),
        "recentProducts": len(recent),
    }
