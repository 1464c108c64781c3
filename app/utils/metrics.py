# =============================================
# File: app/utils/metrics.py
# Purpose: In-process counters & histograms for /metrics (requests, gate outcomes, recommendations)
# =============================================
from __future__ import annotations
from typing import Dict, Any, List
import threading
import time

_lock = threading.Lock()

_counters: Dict[str, int] = {
    "requests_total": 0,
    "rate_limit_hits_total": 0,
    "recommendations_served_total": 0,
    "safety_refilter_removed_total": 0,
    "catalog_errors_total": 0,
}

# gate name -> count (negative_availability, faq, not_requested, no_match, recommended, below_threshold)
_gate_counts: Dict[str, int] = {}
_model_usage: Dict[str, int] = {}   # model -> count

# Fixed-bucket histogram for latency (milliseconds); last bucket is +Inf
_latency_buckets: List[int] = [50, 100, 200, 500, 1000, 2000, 5000, 10000]
_latency_counts: List[int] = [0 for _ in _latency_buckets] + [0]

# Relevance of turns that attached recommendations, bucketed by upper bound
_relevance_buckets: List[float] = [0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0]
_relevance_counts: List[int] = [0 for _ in _relevance_buckets]

def _observe(buckets: List[float], counts: List[int], value: float) -> None:
    idx = len(counts) - 1
    for i, thr in enumerate(buckets):
        if value <= thr:
            idx = i
            break
    counts[idx] += 1

def record_request(latency_ms: int, model: str | None, gate: str | None) -> None:
    with _lock:
        _counters["requests_total"] += 1
        if gate:
            _gate_counts[gate] = _gate_counts.get(gate, 0) + 1
        if model:
            _model_usage[model] = _model_usage.get(model, 0) + 1
        _observe(_latency_buckets, _latency_counts, int(latency_ms))

def record_decision(recommended: int, relevance: float, refiltered: int) -> None:
    with _lock:
        _counters["recommendations_served_total"] += int(recommended)
        _counters["safety_refilter_removed_total"] += int(refiltered)
        if recommended:
            _observe(_relevance_buckets, _relevance_counts, float(relevance))

def record_rate_limit_hit() -> None:
    with _lock:
        _counters["rate_limit_hits_total"] += 1

def record_catalog_error() -> None:
    with _lock:
        _counters["catalog_errors_total"] += 1

def snapshot() -> Dict[str, Any]:
    with _lock:
        return {
            "counters": dict(_counters),
            "gates": dict(_gate_counts),
            "model_usage": dict(_model_usage),
            "latency_ms": {
                "buckets": list(_latency_buckets) + ["+Inf"],
                "counts": list(_latency_counts),
            },
            "relevance": {
                "buckets": list(_relevance_buckets),
                "counts": list(_relevance_counts),
            },
            "generated_at": time.time(),
        }

def reset() -> None:
    with _lock:
        for k in _counters:
            _counters[k] = 0
        _gate_counts.clear()
        _model_usage.clear()
        for i in range(len(_latency_counts)):
            _latency_counts[i] = 0
        for i in range(len(_relevance_counts)):
            _relevance_counts[i] = 0
