# app/routers/profiles.py
from __future__ import annotations

from typing import Dict, List, Literal, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from app.services.catalog import CatalogError, get_catalog_cache
from app.services.profiles import PROFILE_STORE

router = APIRouter(tags=["profiles"])


class ProductEvent(BaseModel):
    event: Literal["view", "add_to_cart", "remove_from_cart", "add_to_wishlist", "remove_from_wishlist"]
    product_id: str = Field(..., min_length=1)


class SizeProfile(BaseModel):
    sizes_by_category: Optional[Dict[str, str]] = None
    measurements: Optional[Dict[str, float]] = None
    fit_types: Optional[List[str]] = None


@router.post("/profiles/{user_id}/events")
def track_event(user_id: str, ev: ProductEvent):
    """Record a product interaction; returns the derived profile."""
    try:
        snap = get_catalog_cache().fetch()
    except CatalogError:
        raise HTTPException(status_code=503, detail="Product catalog unavailable")
    product = next((p for p in snap.items if p.id == ev.product_id), None)
    if product is None:
        raise HTTPException(status_code=404, detail=f"Unknown product {ev.product_id}")
    PROFILE_STORE.track_event(user_id, ev.event, product)
    return PROFILE_STORE.get_profile(user_id).model_dump()


@router.put("/profiles/{user_id}/size")
def put_size_profile(user_id: str, body: SizeProfile):
    PROFILE_STORE.set_size_profile(
        user_id,
        sizes_by_category=body.sizes_by_category,
        measurements=body.measurements,
        fit_types=body.fit_types,
    )
    return PROFILE_STORE.get_profile(user_id).model_dump()


@router.get("/profiles/{user_id}")
def get_profile(user_id: str):
    if not PROFILE_STORE.has_profile(user_id):
        raise HTTPException(status_code=404, detail="No profile for this user")
    return PROFILE_STORE.get_profile(user_id).model_dump()
