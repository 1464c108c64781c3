# app/routers/chat.py
from __future__ import annotations

import time
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field, field_validator

from app.services.catalog import CatalogError, get_catalog_cache
from app.services.engine import decide_recommendations
from app.services.generation import generate_answer
from app.services.profiles import PROFILE_STORE
from app.utils import slog
from app.utils.augment import split_recommendations
from app.utils.metrics import record_catalog_error, record_decision, record_rate_limit_hit, record_request
from app.utils.ratelimit import RateLimitExceeded, check_rate_limit

router = APIRouter(tags=["chat"])


# --------- Schemas ---------

class ChatTurn(BaseModel):
    role: Literal["user", "assistant", "model"] = "user"
    content: str = Field("", max_length=4000)


class ChatRequest(BaseModel):
    """
    Incoming chat turn.
    - user_id: shopper identifier (rate limiting + profile lookup).
    - message: the shopper's message.
    - history: previous turns, oldest first.
    - answer_text: pre-generated assistant answer; when present the model call is skipped.
    - personalize: use the stored shopper profile for the userPreference strategy.
    """
    user_id: str = Field(..., min_length=1, max_length=128)
    message: str = Field(..., min_length=1, max_length=500)
    history: List[ChatTurn] = Field(default_factory=list, max_length=50)
    answer_text: Optional[str] = Field(None, max_length=8000)
    personalize: bool = True

    @field_validator("message")
    @classmethod
    def _trim_message(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("message must not be empty")
        return v


class ChatResponse(BaseModel):
    """
    - response: final text (answer, answer + apology, or answer + recommendation payload).
    - answer: display text, `response` without the recommendation payload.
    - recommendations: structured copy of the attached items (0..3).
    - gate: which decision branch produced the outcome.
    """
    response: str
    answer: str
    recommendations: List[Dict[str, Any]]
    relevance_score: float
    gate: str
    model: Optional[str] = None


# --------- Route ---------

@router.post("/chat", response_model=ChatResponse)
def post_chat(req: ChatRequest, request: Request) -> ChatResponse:
    """
    Chat turn pipeline:
      rate limit -> catalog snapshot -> answer (LLM or supplied) -> recommendation decision
    """
    t0 = time.time()
    request.state.log_context = {"user_id": req.user_id, "qhash": slog.qhash(req.message)}

    try:
        check_rate_limit(req.user_id)
    except RateLimitExceeded as e:
        record_rate_limit_hit()
        request.state.log_context["rate_limited"] = True
        raise HTTPException(status_code=429, detail="Too Many Requests",
                            headers={"Retry-After": str(e.retry_after)})

    try:
        snap = get_catalog_cache().fetch()
    except CatalogError as e:
        record_catalog_error()
        request.state.log_context["catalog_error"] = str(e)
        raise HTTPException(status_code=503, detail="Product catalog unavailable")

    profile = None
    if req.personalize and PROFILE_STORE.has_profile(req.user_id):
        profile = PROFILE_STORE.get_profile(req.user_id)

    if req.answer_text is not None:
        answer, model = req.answer_text, None
    else:
        history = [t.model_dump() for t in req.history]
        answer, meta = generate_answer(req.message, history, snap.items, profile)
        model = meta.get("model")

    result = decide_recommendations(
        req.message,
        answer,
        snap.items,
        snap.known_categories,
        snap.known_sub_categories,
        profile,
    )

    latency_ms = int((time.time() - t0) * 1000)
    record_request(latency_ms=latency_ms, model=model, gate=result.gate)
    record_decision(len(result.recommendations), result.relevance_score, result.refiltered)
    request.state.log_context.update({"model": model, **slog.decision_context(result)})
    slog.log_decision(result, user_id=req.user_id, query=req.message)

    return ChatResponse(
        response=result.augmented_text,
        answer=split_recommendations(result.augmented_text)[0],
        recommendations=[it.summary() for it in result.recommendations],
        relevance_score=result.relevance_score,
        gate=result.gate,
        model=model,
    )
