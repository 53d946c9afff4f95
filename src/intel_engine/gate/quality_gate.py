"""
Evidence Quality Gate

Grades one piece of evidence on five sub-scores and decides whether it is
shown in full, shown as low impact, or hidden.

Sub-score calculators (each total, result clamped to [0, 100]):
- Actionability: 20 points per concrete action type + clarity (capped at 40)
- Timeliness: linear decay of delay over a horizon (default 120 minutes)
- Reliability: source reliability - failure rate +/- manipulation risk
- Relevance: pair keyword match + 20 when the timeframe is aligned
- Helpfulness: positive backtest/pnl lift + feedback + apply rate

Visibility precedence:
1. helpfulness under the hard-hide floor -> hidden (never overridable)
2. no blockers and weighted score >= pass threshold -> full
3. no blockers but weighted score too low -> low_impact
4. any per-score minimum missed -> hidden
"""

import logging
import math
from dataclasses import dataclass
from typing import Mapping, Optional, Union

from ..config.policy import PolicyConfiguration, get_policy_configuration
from ..types import (
    SCORE_FIELDS,
    GateVisibility,
    ManipulationRisk,
    QualityGateResult,
    QualityGateScores,
    coerce_enum,
)
from ..utils.math_utils import clamp, is_finite_number, round2
from .audit_log import GateAuditLog, gate_audit_log

logger = logging.getLogger(__name__)

DEFAULT_HORIZON_MINUTES = 120.0

RISK_ADJUSTMENT = {
    ManipulationRisk.LOW: 20.0,
    ManipulationRisk.MEDIUM: 0.0,
    ManipulationRisk.HIGH: -20.0,
}


def _non_negative(value) -> float:
    """max(0, value); -inf maps to 0, NaN and +inf stay non-finite so the final clamp floors them."""
    if value == -math.inf:
        return 0.0
    if not is_finite_number(value):
        return math.nan
    return max(0.0, float(value))


# ============================================================================
# Feature Inputs
# ============================================================================

@dataclass
class ActionabilityInput:
    action_type_count: float
    clarity_score: float


@dataclass
class TimelinessInput:
    delay_minutes: float
    horizon_minutes: Optional[float] = None


@dataclass
class ReliabilityInput:
    source_reliability: float
    failure_rate_pct: float
    manipulation_risk: Union[ManipulationRisk, str] = ManipulationRisk.MEDIUM


@dataclass
class RelevanceInput:
    pair_keyword_match_pct: float
    timeframe_aligned: bool


@dataclass
class HelpfulnessInput:
    backtest_win_rate_lift_pct: float
    feedback_positive_pct: float
    apply_rate_pct: float
    pnl_lift_pct: Optional[float] = None


@dataclass
class QualityGateFeatureInput:
    """Raw features for all five sub-scores."""
    actionability: ActionabilityInput
    timeliness: TimelinessInput
    reliability: ReliabilityInput
    relevance: RelevanceInput
    helpfulness: HelpfulnessInput


# ============================================================================
# Sub-score Calculators
# ============================================================================

def calculate_actionability(action_type_count: float, clarity_score: float) -> float:
    """20 x floor(action types) + clarity capped at 40."""
    count = _non_negative(action_type_count)
    if math.isfinite(count):
        count = math.floor(count)
    return clamp(count * 20 + clamp(clarity_score, 0, 40))


def calculate_timeliness(delay_minutes: float, horizon_minutes: Optional[float] = None) -> float:
    """Linear decay from 100 (no delay) to 0 (delay >= horizon)."""
    if is_finite_number(horizon_minutes) and horizon_minutes > 0:
        horizon = float(horizon_minutes)
    else:
        horizon = DEFAULT_HORIZON_MINUTES
    delay = _non_negative(delay_minutes)
    return clamp(((horizon - delay) / horizon) * 100)


def calculate_reliability(
    source_reliability: float,
    failure_rate_pct: float,
    manipulation_risk: Union[ManipulationRisk, str]
) -> float:
    """Source reliability minus failure rate, adjusted by manipulation risk."""
    risk = coerce_enum(ManipulationRisk, manipulation_risk)
    adjustment = RISK_ADJUSTMENT.get(risk, 0.0)
    return clamp(clamp(source_reliability) - _non_negative(failure_rate_pct) + adjustment)


def calculate_relevance(pair_keyword_match_pct: float, timeframe_aligned: bool) -> float:
    """Keyword match plus a 20 point timeframe bonus."""
    bonus = 20.0 if timeframe_aligned else 0.0
    return clamp(clamp(pair_keyword_match_pct) + bonus)


def calculate_helpfulness(
    backtest_win_rate_lift_pct: float,
    feedback_positive_pct: float,
    apply_rate_pct: float,
    pnl_lift_pct: Optional[float] = None
) -> float:
    """
    Historical helpfulness of a signal type.

    Only positive lifts count; negative lift is not penalized here, it simply
    fails the helpfulness minimum.
    """
    win_rate_contribution = _non_negative(backtest_win_rate_lift_pct) * 10
    feedback_contribution = clamp(feedback_positive_pct) * 0.5
    apply_contribution = clamp(apply_rate_pct) * 0.1
    pnl_contribution = _non_negative(0.0 if pnl_lift_pct is None else pnl_lift_pct) * 4
    return clamp(win_rate_contribution + feedback_contribution + apply_contribution + pnl_contribution)


def score_quality_gate(features: QualityGateFeatureInput) -> QualityGateScores:
    """Run all five calculators over raw features."""
    return QualityGateScores(
        actionability=calculate_actionability(
            features.actionability.action_type_count,
            features.actionability.clarity_score,
        ),
        timeliness=calculate_timeliness(
            features.timeliness.delay_minutes,
            features.timeliness.horizon_minutes,
        ),
        reliability=calculate_reliability(
            features.reliability.source_reliability,
            features.reliability.failure_rate_pct,
            features.reliability.manipulation_risk,
        ),
        relevance=calculate_relevance(
            features.relevance.pair_keyword_match_pct,
            features.relevance.timeframe_aligned,
        ),
        helpfulness=calculate_helpfulness(
            features.helpfulness.backtest_win_rate_lift_pct,
            features.helpfulness.feedback_positive_pct,
            features.helpfulness.apply_rate_pct,
            features.helpfulness.pnl_lift_pct,
        ),
    )


# ============================================================================
# Quality Gate
# ============================================================================

class QualityGate:
    """
    Scores evidence against the current policy.

    Every evaluation that does not pass is appended to the gate audit log;
    nothing else has side effects.
    """

    def __init__(
        self,
        policy: Optional[PolicyConfiguration] = None,
        audit_log: Optional[GateAuditLog] = None,
        name: str = "QualityGate"
    ):
        """
        Initialize quality gate.

        Args:
            policy: Policy configuration (process-wide instance if None)
            audit_log: Gate audit log (process-wide instance if None)
            name: Gate name for logging
        """
        self.policy = policy if policy is not None else get_policy_configuration()
        self.audit_log = audit_log if audit_log is not None else gate_audit_log
        self.name = name
        self.logger = logging.getLogger(f"{__name__}.{name}")

    def evaluate(
        self,
        scores: Union[QualityGateScores, Mapping[str, Optional[float]]],
        source: str = "unknown"
    ) -> QualityGateResult:
        """
        Evaluate already-computed sub-scores.

        Args:
            scores: QualityGateScores or a mapping; a missing helpfulness
                defaults to the policy minimum
            source: Evidence source name recorded in the audit log

        Returns:
            QualityGateResult
        """
        thresholds = self.policy.get()
        gate = thresholds.quality_gate
        minimum = gate.minimum
        weights = gate.weights

        if isinstance(scores, QualityGateScores):
            raw = scores.to_dict()
        else:
            raw = {name: scores.get(name) for name in SCORE_FIELDS}
        if raw.get("helpfulness") is None:
            raw["helpfulness"] = minimum.helpfulness

        clamped = QualityGateScores(**{name: clamp(raw.get(name)) for name in SCORE_FIELDS})

        weighted_score = round2(sum(
            getattr(clamped, name) * getattr(weights, name) for name in SCORE_FIELDS
        ))

        blockers = [
            f"{name}_low" for name in SCORE_FIELDS
            if getattr(clamped, name) < getattr(minimum, name)
        ]

        passed = False
        visibility = GateVisibility.HIDDEN

        if clamped.helpfulness < gate.hard_hide_helpfulness_below:
            blockers.append("helpfulness_hard_hide")
        elif not blockers and weighted_score >= gate.pass_threshold:
            passed = True
            visibility = GateVisibility.FULL
        elif not blockers:
            visibility = GateVisibility.LOW_IMPACT
            blockers.append("weighted_score_low")

        if not passed:
            self.logger.debug(
                f"Gate not passed: source={source} visibility={visibility.value} "
                f"score={weighted_score:.2f} blockers={blockers}",
                extra={'source': source, 'visibility': visibility.value},
            )
            self.audit_log.record(
                source=source,
                visibility=visibility,
                weighted_score=weighted_score,
                blockers=blockers,
                scores=clamped,
            )

        return QualityGateResult(
            scores=clamped,
            weighted_score=weighted_score,
            passed=passed,
            visibility=visibility,
            blockers=tuple(blockers),
        )

    def evaluate_from_features(
        self,
        features: QualityGateFeatureInput,
        source: str = "unknown"
    ) -> QualityGateResult:
        """Score raw features, then evaluate them."""
        return self.evaluate(score_quality_gate(features), source)
