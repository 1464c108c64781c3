# =============================================
# File: tests/test_rate_limit.py
# Purpose: Validate per-user rate limiting on /chat
# =============================================
import sys, os
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

import pytest

from app.utils import ratelimit
from app.utils.ratelimit import RateLimitExceeded, check_rate_limit, reset_rate_limit


def test_sliding_window(monkeypatch):
    monkeypatch.setenv("RL_MAX_REQS", "2")
    monkeypatch.setenv("RL_WINDOW_SECONDS", "10")
    now = {"t": 100.0}
    monkeypatch.setattr(ratelimit, "_clock", lambda: now["t"])
    reset_rate_limit()

    check_rate_limit("k")
    check_rate_limit("k")
    with pytest.raises(RateLimitExceeded) as exc:
        check_rate_limit("k")
    assert exc.value.retry_after == 10

    check_rate_limit("other-key")  # keys are independent

    now["t"] += 10.5
    check_rate_limit("k")

def test_chat_returns_429(mount_client, monkeypatch):
    client, _, _ = mount_client()
    monkeypatch.setenv("RL_MAX_REQS", "1")
    body = {"user_id": "rl-user", "message": "hi there", "answer_text": "Hello!"}

    assert client.post("/chat", json=body).status_code == 200
    r = client.post("/chat", json=body)
    assert r.status_code == 429
    assert int(r.headers["Retry-After"]) >= 1

    # another shopper is unaffected
    assert client.post("/chat", json={**body, "user_id": "someone-else"}).status_code == 200
