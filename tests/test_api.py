"""
Integration tests for the HTTP API.

Tests:
1. Health and root endpoints
2. Policy administration (get, replace, patch, reset)
3. Quality gate evaluation and gate log observability
4. Helpfulness endpoints
5. Decision endpoint with caching
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from intel_engine.config import PolicyConfiguration
from intel_engine.gate import GateAuditLog
from intel_engine.main import create_app


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def policy():
    return PolicyConfiguration()


@pytest.fixture
def gate_log():
    return GateAuditLog()


@pytest.fixture
def client(policy, gate_log):
    return TestClient(create_app(policy=policy, gate_log=gate_log))


HEADLINE = {
    "domain": "headlines",
    "bias": "long",
    "bias_strength": 80,
    "confidence": 70,
    "freshness_sec": 60,
    "reason": "ETF inflow headline",
    "quality_score": 90,
    "helpfulness_score": 85,
}


# ============================================================================
# Basics
# ============================================================================

def test_root(client):
    body = client.get("/").json()
    assert body["status"] == "running"
    assert body["policy_version"] == "intel-v1.0.0"


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


# ============================================================================
# Policy
# ============================================================================

def test_get_policy(client):
    body = client.get("/policy").json()
    assert body["quality_gate"]["pass_threshold"] == 65
    assert body["domain_weights"]["headlines"] == 0.30


def test_patch_policy(client, policy):
    response = client.patch("/policy", json={"no_trade": {"min_coverage_pct": 40}, "bogus": 1})

    assert response.status_code == 200
    assert response.json()["no_trade"]["min_coverage_pct"] == 40
    assert policy.get().no_trade.min_coverage_pct == 40


def test_put_policy_replaces(client):
    client.patch("/policy", json={"no_trade": {"min_edge_to_trade": 2}})
    body = client.put("/policy", json={"policy_version": "intel-v9"}).json()

    assert body["policy_version"] == "intel-v9"
    assert body["no_trade"]["min_edge_to_trade"] == 8


def test_reset_policy(client):
    client.patch("/policy", json={"policy_version": "temp"})
    assert client.post("/policy/reset").json()["policy_version"] == "intel-v1.0.0"


# ============================================================================
# Quality Gate
# ============================================================================

def test_evaluate_scores(client):
    body = client.post("/gate/evaluate", json={
        "source": "headlines",
        "scores": {"actionability": 90, "timeliness": 85, "reliability": 80, "relevance": 75, "helpfulness": 70},
    }).json()

    assert body["pass"] is True
    assert body["visibility"] == "full"


def test_evaluate_features(client):
    body = client.post("/gate/evaluate", json={
        "source": "trending",
        "features": {
            "action_type_count": 1,
            "clarity_score": 20,
            "delay_minutes": 100,
            "source_reliability": 40,
            "failure_rate_pct": 10,
            "manipulation_risk": "high",
            "pair_keyword_match_pct": 30,
        },
    }).json()

    assert body["pass"] is False
    assert body["visibility"] == "hidden"
    assert "helpfulness_hard_hide" in body["blockers"]


def test_evaluate_requires_input(client):
    assert client.post("/gate/evaluate", json={"source": "x"}).status_code == 422


def test_logs_and_stats(client):
    weak = {"actionability": 10, "timeliness": 10, "reliability": 10, "relevance": 10, "helpfulness": 10}
    for source in ("events", "flow", "flow"):
        client.post("/gate/evaluate", json={"source": source, "scores": weak})

    logs = client.get("/gate/logs", params={"limit": 2}).json()
    assert logs["entries_returned"] == 2
    assert logs["entries"][0]["source"] == "flow"

    filtered = client.get("/gate/logs", params={"source": "events"}).json()
    assert filtered["entries_returned"] == 1
    assert filtered["filters"]["source"] == "events"

    stats = client.get("/gate/logs/stats").json()
    assert stats["total_entries"] == 3
    assert stats["by_visibility"]["hidden"] == 3


def test_clear_logs(client, gate_log):
    client.post("/gate/evaluate", json={"source": "flow", "scores": {"actionability": 0}})
    assert len(gate_log) == 1

    assert client.delete("/gate/logs").json() == {"cleared": True}
    assert len(gate_log) == 0


# ============================================================================
# Helpfulness
# ============================================================================

SUMMARY = {
    "baseline_win_rate_pct": 50,
    "policy_win_rate_pct": 55,
    "baseline_sharpe": 1.0,
    "policy_sharpe": 1.3,
    "baseline_max_drawdown_pct": 20,
    "policy_max_drawdown_pct": 15,
    "sample_size": 300,
}


def test_helpfulness_impact(client):
    body = client.post("/helpfulness/impact", json=SUMMARY).json()
    assert body["meets_target"] is True
    assert body["win_rate_lift_pct"] == 5


def test_helpfulness_evaluate(client):
    body = client.post("/helpfulness/evaluate", json={
        "summary": SUMMARY,
        "feedback": {"positive_pct": 60, "apply_rate_pct": 40},
    }).json()
    assert body["score"] == pytest.approx(90.67, abs=0.01)
    assert body["meets_target"] is True


# ============================================================================
# Decision
# ============================================================================

def test_empty_evidence(client):
    body = client.post("/decision", json={}).json()
    assert body["cached"] is False
    assert body["decision"]["blockers"] == ["no_evidence"]


def test_single_headline(client):
    decision = client.post("/decision", json={"evidence": [HEADLINE]}).json()["decision"]

    assert decision["bias"] == "long"
    assert decision["should_trade"] is True
    assert decision["coverage_pct"] == pytest.approx(30.0)


def test_hidden_gate_in_request(client):
    hidden = dict(HEADLINE, domain="trending", gate={
        "scores": {"actionability": 70, "timeliness": 70, "reliability": 70, "relevance": 70, "helpfulness": 10},
        "weighted_score": 58,
        "pass": False,
        "visibility": "hidden",
        "blockers": ["helpfulness_low", "helpfulness_hard_hide"],
    })
    decision = client.post("/decision", json={"evidence": [HEADLINE, hidden]}).json()["decision"]

    assert decision["bias"] == "wait"
    assert "trending_hidden_by_gate" in decision["blockers"]


def test_context_gates(client):
    decision = client.post("/decision", json={
        "evidence": [HEADLINE],
        "context": {"volatility_index": 95},
    }).json()["decision"]
    assert "volatility_too_high" in decision["blockers"]


def test_gate_without_visibility_rejected(client):
    gated = dict(HEADLINE, gate={
        "scores": {"actionability": 70, "timeliness": 70, "reliability": 70, "relevance": 70, "helpfulness": 70},
        "weighted_score": 70,
        "pass": True,
    })
    response = client.post("/decision", json={"evidence": [gated]})

    assert response.status_code == 422


def test_identical_request_hits_cache(client):
    request = {"evidence": [HEADLINE], "pair": "BTCUSDT", "timeframe": "1h"}

    first = client.post("/decision", json=request).json()
    second = client.post("/decision", json=request).json()

    assert first["cached"] is False
    assert second["cached"] is True
    assert second["decision"] == first["decision"]


def test_different_evidence_same_pair_recomputes(client):
    first = client.post("/decision", json={
        "evidence": [HEADLINE], "pair": "BTCUSDT", "timeframe": "1h",
    }).json()
    second = client.post("/decision", json={
        "evidence": [dict(HEADLINE, bias="short")], "pair": "BTCUSDT", "timeframe": "1h",
    }).json()

    assert first["decision"]["bias"] == "long"
    assert second["cached"] is False
    assert second["decision"]["bias"] == "short"


def test_different_context_same_pair_recomputes(client):
    request = {"evidence": [HEADLINE], "pair": "BTCUSDT", "timeframe": "1h"}
    client.post("/decision", json=request)

    body = client.post("/decision", json=dict(request, context={"volatility_index": 95})).json()

    assert body["cached"] is False
    assert "volatility_too_high" in body["decision"]["blockers"]


def test_policy_change_invalidates_cache(client):
    request = {"evidence": [HEADLINE], "pair": "BTCUSDT", "timeframe": "1h"}
    client.post("/decision", json=request)

    client.patch("/policy", json={"policy_version": "intel-v2"})
    body = client.post("/decision", json=request).json()

    assert body["cached"] is False
    assert body["decision"]["policy_version"] == "intel-v2"


@pytest.mark.asyncio
async def test_async_client_decision(policy, gate_log):
    transport = httpx.ASGITransport(app=create_app(policy=policy, gate_log=gate_log))
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.post("/decision", json={"evidence": [HEADLINE]})

    assert response.status_code == 200
    assert response.json()["decision"]["bias"] == "long"
