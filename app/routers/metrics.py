# =============================================
# File: app/routers/metrics.py
# Purpose: Expose in-process recommendation/request metrics as JSON
# =============================================
from __future__ import annotations
from fastapi import APIRouter
from app.utils.metrics import snapshot

router = APIRouter(tags=["metrics"])

@router.get("/metrics")
def get_metrics():
    """Counters (requests, gate outcomes, items served, refilter removals) and histograms."""
    return snapshot()
