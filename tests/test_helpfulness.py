"""
Test suite for the helpfulness evaluator.

Tests:
1. Backtest impact lifts and unmet-target reasons
2. Helpfulness score from impact + runtime feedback
3. NPS positive rate estimation
"""

import pytest

from intel_engine.config import PolicyConfiguration
from intel_engine.gate import BacktestSummary, HelpfulnessEvaluator, RuntimeFeedback


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def policy():
    return PolicyConfiguration()


@pytest.fixture
def evaluator(policy):
    return HelpfulnessEvaluator(policy=policy)


@pytest.fixture
def improved_summary():
    """Policy beats baseline on every target."""
    return BacktestSummary(
        baseline_win_rate_pct=50,
        policy_win_rate_pct=55,
        baseline_sharpe=1.0,
        policy_sharpe=1.3,
        baseline_max_drawdown_pct=20,
        policy_max_drawdown_pct=15,
        sample_size=300,
        window_months=12,
    )


@pytest.fixture
def flat_summary():
    """Marginal improvements on a thin sample."""
    return BacktestSummary(
        baseline_win_rate_pct=50,
        policy_win_rate_pct=51,
        baseline_sharpe=1.0,
        policy_sharpe=1.05,
        baseline_max_drawdown_pct=20,
        policy_max_drawdown_pct=19,
        sample_size=100,
    )


# ============================================================================
# Backtest Impact
# ============================================================================

def test_meets_all_targets(evaluator, improved_summary):
    impact = evaluator.evaluate_backtest_impact(improved_summary)

    assert impact.win_rate_lift_pct == 5
    assert impact.sharpe_lift == pytest.approx(0.3)
    assert impact.max_drawdown_reduction_pct == 5
    assert impact.meets_target is True
    assert impact.reasons == []


def test_reports_every_unmet_target(evaluator, flat_summary):
    impact = evaluator.evaluate_backtest_impact(flat_summary)

    assert impact.meets_target is False
    assert impact.reasons == [
        "win_rate_lift_below_target",
        "sharpe_lift_below_target",
        "drawdown_reduction_below_target",
        "sample_size_low",
    ]


def test_lifts_rounded_to_two_decimals(evaluator, improved_summary):
    improved_summary.policy_sharpe = 1.23456
    impact = evaluator.evaluate_backtest_impact(improved_summary)
    assert impact.sharpe_lift == 0.23


def test_targets_follow_policy(evaluator, policy, improved_summary):
    policy.patch({"backtest_targets": {"win_rate_lift_pct": 10}})
    impact = evaluator.evaluate_backtest_impact(improved_summary)
    assert impact.reasons == ["win_rate_lift_below_target"]


# ============================================================================
# Helpfulness Score
# ============================================================================

def test_score_combines_impact_and_feedback(evaluator, improved_summary):
    evaluation = evaluator.evaluate_helpfulness(
        improved_summary, RuntimeFeedback(positive_pct=60, apply_rate_pct=40)
    )

    # 5 x 10 + 60 x 0.5 + 40 x 0.1 + (5 / 3) x 4
    assert evaluation.score == pytest.approx(50 + 30 + 4 + 20 / 3)
    assert evaluation.meets_target is True
    assert evaluation.feedback.positive_pct == 60


def test_negative_impact_contributes_nothing(evaluator):
    worse = BacktestSummary(
        baseline_win_rate_pct=55,
        policy_win_rate_pct=50,
        baseline_sharpe=1.2,
        policy_sharpe=1.0,
        baseline_max_drawdown_pct=10,
        policy_max_drawdown_pct=14,
        sample_size=500,
    )
    evaluation = evaluator.evaluate_helpfulness(worse, RuntimeFeedback(positive_pct=40, apply_rate_pct=20))

    assert evaluation.score == pytest.approx(22)
    assert evaluation.meets_target is False


def test_to_dict(evaluator, improved_summary):
    data = evaluator.evaluate_helpfulness(
        improved_summary, RuntimeFeedback(positive_pct=60, apply_rate_pct=40)
    ).to_dict()
    assert data["impact"]["meets_target"] is True
    assert data["feedback"] == {"positive_pct": 60, "apply_rate_pct": 40}


# ============================================================================
# NPS
# ============================================================================

def test_positive_rate():
    assert HelpfulnessEvaluator.estimate_nps_positive_rate(45, 60) == 75.0


def test_no_votes():
    assert HelpfulnessEvaluator.estimate_nps_positive_rate(0, 0) == 0
    assert HelpfulnessEvaluator.estimate_nps_positive_rate(5, float("nan")) == 0


def test_rate_clamped():
    assert HelpfulnessEvaluator.estimate_nps_positive_rate(-3, 10) == 0
    assert HelpfulnessEvaluator.estimate_nps_positive_rate(12, 10) == 100


def test_meets_target(evaluator):
    assert evaluator.meets_nps_target(45, 60) is True
    assert evaluator.meets_nps_target(30, 60) is False
