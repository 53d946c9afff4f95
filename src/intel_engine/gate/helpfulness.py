"""
Helpfulness Evaluator

Turns a backtest comparison (baseline vs. policy) plus runtime user
feedback into the quality gate's helpfulness sub-score, and reports
whether a policy change met its backtest targets.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from ..config.policy import PolicyConfiguration, get_policy_configuration
from ..utils.math_utils import clamp, is_finite_number, round2
from .quality_gate import calculate_helpfulness

logger = logging.getLogger(__name__)

MIN_SAMPLE_SIZE = 200

# Drawdown reduction stands in for pnl lift at one third of its size.
DRAWDOWN_TO_PNL_DISCOUNT = 3.0


@dataclass
class BacktestSummary:
    """Baseline vs. policy backtest metrics."""
    baseline_win_rate_pct: float
    policy_win_rate_pct: float
    baseline_sharpe: float
    policy_sharpe: float
    baseline_max_drawdown_pct: float
    policy_max_drawdown_pct: float
    sample_size: int
    window_months: Optional[float] = None


@dataclass
class RuntimeFeedback:
    """User feedback collected while the policy was live."""
    positive_pct: float
    apply_rate_pct: float


@dataclass
class BacktestImpact:
    win_rate_lift_pct: float
    sharpe_lift: float
    max_drawdown_reduction_pct: float
    meets_target: bool
    reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class HelpfulnessEvaluation:
    score: float
    impact: BacktestImpact
    feedback: RuntimeFeedback
    meets_target: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class HelpfulnessEvaluator:
    """Computes helpfulness scores and backtest target checks from policy targets."""

    def __init__(self, policy: Optional[PolicyConfiguration] = None):
        self.policy = policy if policy is not None else get_policy_configuration()

    def evaluate_backtest_impact(self, summary: BacktestSummary) -> BacktestImpact:
        """
        Compare policy vs. baseline backtest metrics against targets.

        Args:
            summary: Backtest summary

        Returns:
            BacktestImpact with lifts (2 decimals) and unmet-target reasons
        """
        targets = self.policy.get().backtest_targets

        win_rate_lift = round2(summary.policy_win_rate_pct - summary.baseline_win_rate_pct)
        sharpe_lift = round2(summary.policy_sharpe - summary.baseline_sharpe)
        drawdown_reduction = round2(summary.baseline_max_drawdown_pct - summary.policy_max_drawdown_pct)

        reasons = []
        if win_rate_lift < targets.win_rate_lift_pct:
            reasons.append("win_rate_lift_below_target")
        if sharpe_lift < targets.sharpe_lift:
            reasons.append("sharpe_lift_below_target")
        if drawdown_reduction < targets.max_drawdown_reduction_pct:
            reasons.append("drawdown_reduction_below_target")

        sample_size = summary.sample_size if is_finite_number(summary.sample_size) else 0
        if sample_size < MIN_SAMPLE_SIZE:
            reasons.append("sample_size_low")

        impact = BacktestImpact(
            win_rate_lift_pct=win_rate_lift,
            sharpe_lift=sharpe_lift,
            max_drawdown_reduction_pct=drawdown_reduction,
            meets_target=not reasons,
            reasons=reasons,
        )
        logger.debug(f"Backtest impact: {impact}")
        return impact

    def evaluate_helpfulness(
        self,
        summary: BacktestSummary,
        feedback: RuntimeFeedback
    ) -> HelpfulnessEvaluation:
        """Backtest impact plus feedback folded into a helpfulness score."""
        impact = self.evaluate_backtest_impact(summary)

        score = calculate_helpfulness(
            backtest_win_rate_lift_pct=impact.win_rate_lift_pct,
            feedback_positive_pct=feedback.positive_pct,
            apply_rate_pct=feedback.apply_rate_pct,
            pnl_lift_pct=impact.max_drawdown_reduction_pct / DRAWDOWN_TO_PNL_DISCOUNT,
        )

        return HelpfulnessEvaluation(
            score=score,
            impact=impact,
            feedback=feedback,
            meets_target=impact.meets_target,
        )

    @staticmethod
    def estimate_nps_positive_rate(positive_votes: float, total_votes: float) -> float:
        """Share of positive votes as a percentage; 0 without a positive vote total."""
        if not is_finite_number(total_votes) or total_votes <= 0:
            return 0.0
        positive = max(0.0, positive_votes) if is_finite_number(positive_votes) else 0.0
        return round2(clamp((positive / total_votes) * 100))

    def meets_nps_target(self, positive_votes: float, total_votes: float) -> bool:
        """Whether the positive feedback rate reaches the policy's NPS target."""
        rate = self.estimate_nps_positive_rate(positive_votes, total_votes)
        return rate >= self.policy.get().backtest_targets.nps_positive_target_pct
