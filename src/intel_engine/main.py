"""
Main entry point for the intel engine.

Serves the policy admin, gate observability and decision endpoints over
FastAPI. All scoring happens in-process; this layer only converts JSON to
the core data classes and back.
"""

import hashlib
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from .config.loader import get_app_config
from .config.policy import PolicyConfiguration
from .decision import DecisionCache, DecisionFusionEngine
from .gate import (
    ActionabilityInput,
    BacktestSummary,
    GateAuditLog,
    HelpfulnessEvaluator,
    HelpfulnessInput,
    QualityGate,
    QualityGateFeatureInput,
    RelevanceInput,
    ReliabilityInput,
    RuntimeFeedback,
    TimelinessInput,
)
from .types import (
    DecisionContext,
    DecisionEvidence,
    GateVisibility,
    QualityGateResult,
    QualityGateScores,
    coerce_enum,
)
from .utils.logger import setup_logging

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


# ============================================================================
# Request Models
# ============================================================================

class ScoresModel(BaseModel):
    actionability: Optional[float] = None
    timeliness: Optional[float] = None
    reliability: Optional[float] = None
    relevance: Optional[float] = None
    helpfulness: Optional[float] = None


class FeaturesModel(BaseModel):
    action_type_count: float = 0
    clarity_score: float = 0
    delay_minutes: float = 0
    horizon_minutes: Optional[float] = None
    source_reliability: float = 0
    failure_rate_pct: float = 0
    manipulation_risk: str = "medium"
    pair_keyword_match_pct: float = 0
    timeframe_aligned: bool = False
    backtest_win_rate_lift_pct: float = 0
    feedback_positive_pct: float = 0
    apply_rate_pct: float = 0
    pnl_lift_pct: Optional[float] = None

    def to_feature_input(self) -> QualityGateFeatureInput:
        return QualityGateFeatureInput(
            actionability=ActionabilityInput(self.action_type_count, self.clarity_score),
            timeliness=TimelinessInput(self.delay_minutes, self.horizon_minutes),
            reliability=ReliabilityInput(self.source_reliability, self.failure_rate_pct, self.manipulation_risk),
            relevance=RelevanceInput(self.pair_keyword_match_pct, self.timeframe_aligned),
            helpfulness=HelpfulnessInput(
                self.backtest_win_rate_lift_pct,
                self.feedback_positive_pct,
                self.apply_rate_pct,
                self.pnl_lift_pct,
            ),
        )


class GateEvaluateRequest(BaseModel):
    source: str = "unknown"
    scores: Optional[ScoresModel] = None
    features: Optional[FeaturesModel] = None


class GateResultModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    scores: ScoresModel
    weighted_score: float = 0
    passed: bool = Field(default=False, alias="pass")
    visibility: str
    blockers: List[str] = Field(default_factory=list)

    def to_result(self) -> QualityGateResult:
        raw = self.scores.model_dump()
        return QualityGateResult(
            scores=QualityGateScores(**{k: (v if v is not None else 0.0) for k, v in raw.items()}),
            weighted_score=self.weighted_score,
            passed=self.passed,
            visibility=coerce_enum(GateVisibility, self.visibility),
            blockers=tuple(self.blockers),
        )


class EvidenceModel(BaseModel):
    domain: str
    bias: str
    bias_strength: float
    confidence: float
    freshness_sec: float
    reason: str = ""
    quality_score: Optional[float] = None
    helpfulness_score: Optional[float] = None
    gate: Optional[GateResultModel] = None

    def to_evidence(self) -> DecisionEvidence:
        return DecisionEvidence(
            domain=self.domain,
            bias=self.bias,
            bias_strength=self.bias_strength,
            confidence=self.confidence,
            freshness_sec=self.freshness_sec,
            reason=self.reason,
            quality_score=self.quality_score,
            helpfulness_score=self.helpfulness_score,
            gate=self.gate.to_result() if self.gate is not None else None,
        )


class ContextModel(BaseModel):
    coverage_pct: Optional[float] = None
    backtest_win_rate_pct: Optional[float] = None
    volatility_index: Optional[float] = None


class DecisionRequest(BaseModel):
    evidence: List[EvidenceModel] = Field(default_factory=list)
    context: Optional[ContextModel] = None
    pair: Optional[str] = None
    timeframe: Optional[str] = None

    def fingerprint(self) -> str:
        """Digest of the evidence and context; pair and timeframe are excluded."""
        payload = self.model_dump_json(exclude={"pair", "timeframe"})
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class BacktestSummaryModel(BaseModel):
    baseline_win_rate_pct: float
    policy_win_rate_pct: float
    baseline_sharpe: float
    policy_sharpe: float
    baseline_max_drawdown_pct: float
    policy_max_drawdown_pct: float
    sample_size: int
    window_months: Optional[float] = None


class FeedbackModel(BaseModel):
    positive_pct: float
    apply_rate_pct: float


class HelpfulnessRequest(BaseModel):
    summary: BacktestSummaryModel
    feedback: FeedbackModel


# ============================================================================
# Application Factory
# ============================================================================

def create_app(
    policy: Optional[PolicyConfiguration] = None,
    gate_log: Optional[GateAuditLog] = None
) -> FastAPI:
    """
    Build the FastAPI app around one policy and one gate audit log.

    Args:
        policy: Policy configuration (fresh instance if None)
        gate_log: Gate audit log (fresh instance if None)
    """
    policy = policy if policy is not None else PolicyConfiguration()
    gate_log = gate_log if gate_log is not None else GateAuditLog()

    quality_gate = QualityGate(policy=policy, audit_log=gate_log)
    engine = DecisionFusionEngine(policy=policy)
    evaluator = HelpfulnessEvaluator(policy=policy)
    cache = DecisionCache(policy=policy)

    app = FastAPI(title="Intel Engine API", version=API_VERSION)
    app.state.policy = policy
    app.state.gate_log = gate_log
    app.state.decision_cache = cache

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "Intel Engine",
            "version": API_VERSION,
            "status": "running",
            "policy_version": policy.get().policy_version,
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    # ------------------------------------------------------------------
    # Policy administration
    # ------------------------------------------------------------------

    @app.get("/policy")
    async def get_policy():
        return policy.get().model_dump()

    @app.put("/policy")
    async def replace_policy(body: Dict[str, Any]):
        """Replace the policy wholesale; invalid fields fall back to defaults."""
        result = policy.set(body).model_dump()
        cache.clear()
        return result

    @app.patch("/policy")
    async def patch_policy(body: Dict[str, Any]):
        """Deep-merge a partial policy; invalid fields are ignored."""
        result = policy.patch(body).model_dump()
        cache.clear()
        return result

    @app.post("/policy/reset")
    async def reset_policy():
        result = policy.reset().model_dump()
        cache.clear()
        return result

    # ------------------------------------------------------------------
    # Quality gate
    # ------------------------------------------------------------------

    @app.post("/gate/evaluate")
    async def evaluate_gate(request: GateEvaluateRequest):
        """
        Evaluate one evidence item.

        Send either ``scores`` (precomputed sub-scores) or ``features``
        (raw calculator inputs).
        """
        if request.features is not None:
            result = quality_gate.evaluate_from_features(request.features.to_feature_input(), request.source)
        elif request.scores is not None:
            result = quality_gate.evaluate(request.scores.model_dump(), request.source)
        else:
            raise HTTPException(status_code=422, detail="Either scores or features is required")
        return result.to_dict()

    @app.get("/gate/logs")
    async def get_gate_logs(
        limit: int = 50,
        visibility: Optional[str] = None,
        source: Optional[str] = None
    ):
        """
        Get recent gate log entries.

        Examples:
            /gate/logs?limit=20
            /gate/logs?visibility=hidden
            /gate/logs?source=headlines
        """
        entries = gate_log.list(limit=limit, visibility=visibility, source=source)
        return {
            "timestamp": datetime.now().isoformat(),
            "entries_returned": len(entries),
            "filters": {"visibility": visibility, "source": source},
            "entries": [entry.to_dict() for entry in entries],
        }

    @app.get("/gate/logs/stats")
    async def get_gate_log_stats():
        stats = gate_log.get_stats()
        stats["timestamp"] = datetime.now().isoformat()
        return stats

    @app.delete("/gate/logs")
    async def clear_gate_logs():
        gate_log.clear()
        return {"cleared": True}

    # ------------------------------------------------------------------
    # Helpfulness
    # ------------------------------------------------------------------

    @app.post("/helpfulness/impact")
    async def backtest_impact(summary: BacktestSummaryModel):
        return evaluator.evaluate_backtest_impact(BacktestSummary(**summary.model_dump())).to_dict()

    @app.post("/helpfulness/evaluate")
    async def evaluate_helpfulness(request: HelpfulnessRequest):
        evaluation = evaluator.evaluate_helpfulness(
            BacktestSummary(**request.summary.model_dump()),
            RuntimeFeedback(**request.feedback.model_dump()),
        )
        return evaluation.to_dict()

    # ------------------------------------------------------------------
    # Decision
    # ------------------------------------------------------------------

    @app.post("/decision")
    async def decide(request: DecisionRequest):
        """Fuse evidence into a decision; pair + timeframe cache it per distinct request body."""
        evidence = [item.to_evidence() for item in request.evidence]
        context = DecisionContext(**request.context.model_dump()) if request.context else DecisionContext()

        def compute():
            return engine.compute_decision(evidence, context)

        if request.pair and request.timeframe:
            decision, cached = cache.get_or_compute(
                request.pair, request.timeframe, compute, fingerprint=request.fingerprint()
            )
        else:
            decision, cached = compute(), False

        return {"cached": cached, "decision": decision.to_dict()}

    return app


def main():
    """Entry point for the application."""
    import uvicorn

    config = get_app_config()
    setup_logging(
        log_level=config.system.log_level,
        json_format=config.system.json_logs,
    )

    policy = PolicyConfiguration(defaults=config.intel)
    application = create_app(policy=policy)

    logger.info("=" * 70)
    logger.info(f"Starting Intel Engine (policy {config.intel.policy_version})")
    logger.info("=" * 70)

    uvicorn.run(
        application,
        host=config.system.api_host,
        port=config.system.api_port,
        log_level=str(config.system.log_level).lower(),
    )


if __name__ == "__main__":
    main()
