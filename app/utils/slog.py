# =============================================
# File: app/utils/slog.py
# Purpose: Structured JSON request/decision logs + helpers for FastAPI
# =============================================
from __future__ import annotations
import json
import logging
import os
import uuid
import hashlib
from typing import Any, Dict, Optional

_LOGGER_NAME = "recsys"
_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

_logger = logging.getLogger(_LOGGER_NAME)
if not _logger.handlers:
    _logger.setLevel(getattr(logging, _LEVEL, logging.INFO))
    _handler = logging.StreamHandler()
    # One JSON object per line, already serialized
    _handler.setFormatter(logging.Formatter("%(message)s"))
    _logger.addHandler(_handler)
    _logger.propagate = True  # allow pytest caplog to capture

def qhash(text: str) -> str:
    """Short hash of a normalized chat message (messages are never logged verbatim)."""
    norm = " ".join((text or "").strip().lower().split())
    return hashlib.sha256(norm.encode("utf-8")).hexdigest()[:10]

def new_request_id() -> str:
    return uuid.uuid4().hex

def _emit(payload: Dict[str, Any]) -> None:
    _logger.info(json.dumps(payload, ensure_ascii=False, default=str))

def log_event(event: str, **fields: Any) -> None:
    rec: Dict[str, Any] = {"event": event}
    rec.update(fields)
    _emit(rec)

def decision_context(result: Any) -> Dict[str, Any]:
    """Log fields describing an EngineResult (gate, item ids, relevance, refilter removals)."""
    recs = list(getattr(result, "recommendations", []) or [])
    return {
        "gate": getattr(result, "gate", None),
        "recommendations": len(recs),
        "rec_ids": [r.id for r in recs],
        "relevance": round(float(getattr(result, "relevance_score", 0.0) or 0.0), 3),
        "refiltered": int(getattr(result, "refiltered", 0) or 0),
    }

def log_decision(result: Any, user_id: Optional[str] = None, query: Optional[str] = None) -> None:
    """One `recommendation.decided` event per chat turn."""
    fields = decision_context(result)
    if user_id:
        fields["user_id"] = user_id
    if query is not None:
        fields["qhash"] = qhash(query)
    log_event("recommendation.decided", **fields)

def finalize_request_log(
    request_id: str,
    method: str,
    path: str,
    status: int,
    latency_ms: int,
    client_ip: str | None,
    ctx: Dict[str, Any] | None = None,
) -> None:
    payload: Dict[str, Any] = {
        "event": "request.completed",
        "request_id": request_id,
        "method": method,
        "path": path,
        "status": status,
        "latency_ms": latency_ms,
        "client_ip": client_ip or "",
    }
    if ctx:
        payload.update(ctx)
    _emit(payload)
