"""
Decision Fusion Engine - fuses gated evidence into one trading bias.

Single-pass pure computation:
1. Accumulate long/short/wait contributions per evidence item, weighted by
   domain, freshness, quality and helpfulness (hidden items only leave a
   blocker trail)
2. Discount directional scores by the pool's mean helpfulness
3. Dampen near-balanced long vs. short conflicts
4. Apply no-trade gates (coverage, backtest win rate, volatility, edge)
5. Pick the bias and derive confidence from a softmax over the scores

The engine never raises: out-of-range or non-finite inputs are clamped or
replaced by neutral defaults, and reasons for caution are reported as
named blockers.
"""

import logging
from typing import Iterable, List, Mapping, Optional, Union

from ..config.policy import PolicyConfiguration, get_policy_configuration
from ..types import (
    DecisionBias,
    DecisionContext,
    DecisionEvidence,
    DomainScoreBreakdown,
    GateVisibility,
    IntelDecisionOutput,
    coerce_enum,
)
from ..utils.math_utils import (
    StatisticalUtils,
    clamp,
    freshness_factor,
    is_finite_number,
    round2,
    softmax,
    unique_strings,
)

logger = logging.getLogger(__name__)

EPSILON = 1e-6
UNCERTAINTY_WAIT_SCALE = 30.0
DEFAULT_BACKTEST_WIN_RATE_PCT = 100.0
MAX_REASONS = 3

NO_TRADE_BLOCKERS = frozenset({
    "coverage_low",
    "backtest_win_rate_low",
    "volatility_too_high",
    "edge_below_threshold",
})

ContextLike = Union[DecisionContext, Mapping[str, Optional[float]], None]


def _default_reason(reason: Optional[str], domain: str) -> str:
    trimmed = (reason or "").strip()
    return trimmed if trimmed else f"{domain} evidence"


def _first_present(*values):
    for value in values:
        if value is not None:
            return value
    return None


def _as_context(context: ContextLike) -> DecisionContext:
    if isinstance(context, DecisionContext):
        return context
    if isinstance(context, Mapping):
        return DecisionContext(
            coverage_pct=context.get("coverage_pct"),
            backtest_win_rate_pct=context.get("backtest_win_rate_pct"),
            volatility_index=context.get("volatility_index"),
        )
    return DecisionContext()


class DecisionFusionEngine:
    """
    Fuses multi-domain evidence into an IntelDecisionOutput.

    Stateless apart from the injected policy; identical evidence under an
    unchanged policy yields identical output.
    """

    def __init__(
        self,
        policy: Optional[PolicyConfiguration] = None,
        name: str = "DecisionFusionEngine"
    ):
        """
        Initialize decision fusion engine.

        Args:
            policy: Policy configuration (process-wide instance if None)
            name: Engine name for logging
        """
        self.policy = policy if policy is not None else get_policy_configuration()
        self.name = name
        self.logger = logging.getLogger(f"{__name__}.{name}")

    def compute_decision(
        self,
        evidence_list: Optional[Iterable[DecisionEvidence]],
        context: ContextLike = None
    ) -> IntelDecisionOutput:
        """
        Fuse evidence into one decision.

        Args:
            evidence_list: Evidence for one market/timeframe
            context: Optional coverage / backtest win rate / volatility telemetry

        Returns:
            IntelDecisionOutput with scores, blockers and per-domain breakdown
        """
        thresholds = self.policy.get()
        gate = thresholds.quality_gate
        evidence_list = list(evidence_list or [])
        ctx = _as_context(context)

        if not evidence_list:
            self.logger.info("No evidence supplied; returning explicit no_evidence wait")
            return IntelDecisionOutput(
                bias=DecisionBias.WAIT,
                confidence=100.0,
                should_trade=False,
                quality_gate_score=0.0,
                long_score=0.0,
                short_score=0.0,
                wait_score=100.0,
                net_edge=0.0,
                edge_pct=0.0,
                coverage_pct=0.0,
                reasons=[],
                blockers=["no_evidence"],
                policy_version=thresholds.policy_version,
                breakdown=[],
            )

        blockers: List[str] = []
        breakdown: List[DomainScoreBreakdown] = []
        covered_domains = set()
        quality_samples: List[float] = []
        helpfulness_samples: List[float] = []

        long_score = 0.0
        short_score = 0.0
        wait_score = 0.0

        # Step 1: per-evidence accumulation
        for evidence in evidence_list:
            domain = evidence.domain_key
            domain_weight = thresholds.domain_weights.get(domain)
            if not is_finite_number(domain_weight) or domain_weight <= 0:
                continue

            reason = _default_reason(evidence.reason, domain)
            evidence_gate = evidence.gate

            if evidence_gate is not None and coerce_enum(GateVisibility, evidence_gate.visibility) == GateVisibility.HIDDEN:
                blockers.append(f"{domain}_hidden_by_gate")
                breakdown.append(DomainScoreBreakdown(
                    domain=domain,
                    weighted_long=0.0,
                    weighted_short=0.0,
                    weighted_wait=0.0,
                    quality_score=round2(clamp(evidence_gate.weighted_score)),
                    helpfulness_score=round2(clamp(evidence_gate.scores.helpfulness)),
                    reason=reason,
                ))
                continue

            freshness = freshness_factor(
                thresholds.max_signal_age_sec.get(domain, 0.0),
                evidence.freshness_sec,
            )

            quality_score = clamp(_first_present(
                evidence.quality_score,
                evidence_gate.weighted_score if evidence_gate is not None else None,
                gate.pass_threshold,
            ))
            helpfulness_score = clamp(_first_present(
                evidence.helpfulness_score,
                evidence_gate.scores.helpfulness if evidence_gate is not None else None,
                gate.minimum.helpfulness,
            ))

            quality_samples.append(quality_score)
            helpfulness_samples.append(helpfulness_score)

            strength = clamp(evidence.bias_strength) / 100
            confidence = clamp(evidence.confidence) / 100

            base_contribution = (
                strength * confidence * freshness
                * (quality_score / 100) * (helpfulness_score / 100)
                * domain_weight * 100
            )

            weighted_long = 0.0
            weighted_short = 0.0
            weighted_wait = domain_weight * (1 - confidence) * UNCERTAINTY_WAIT_SCALE

            if evidence.bias == DecisionBias.LONG:
                weighted_long = base_contribution
            elif evidence.bias == DecisionBias.SHORT:
                weighted_short = base_contribution
            else:
                weighted_wait += base_contribution

            long_score += weighted_long
            short_score += weighted_short
            wait_score += weighted_wait

            if quality_score > 0:
                covered_domains.add(domain)

            breakdown.append(DomainScoreBreakdown(
                domain=domain,
                weighted_long=round2(weighted_long),
                weighted_short=round2(weighted_short),
                weighted_wait=round2(weighted_wait),
                quality_score=round2(quality_score),
                helpfulness_score=round2(helpfulness_score),
                reason=reason,
            ))

        # Step 2: helpfulness overlay on directional scores only
        mean_helpfulness = StatisticalUtils.mean(helpfulness_samples, default=gate.minimum.helpfulness)
        overlay = clamp(mean_helpfulness) / 100
        long_score *= overlay
        short_score *= overlay

        # Step 3: conflict dampening
        conflict = thresholds.conflict
        pre_conflict_edge_pct = abs(long_score - short_score) / max(long_score, short_score, EPSILON) * 100
        if long_score > 0 and short_score > 0 and pre_conflict_edge_pct < conflict.edge_band_pct:
            penalty_factor = max(0.0, (100 - conflict.confidence_penalty_pct) / 100)
            long_score *= penalty_factor
            short_score *= penalty_factor
            wait_score += conflict.wait_prior * 100
            blockers.append("conflict_penalty_applied")
            self.logger.debug(
                f"Conflict dampening: edge {pre_conflict_edge_pct:.2f}% < band {conflict.edge_band_pct:.2f}%"
            )

        # Step 4: final edge
        net_edge = long_score - short_score
        abs_edge = abs(net_edge)
        edge_pct = abs_edge / max(long_score, short_score, EPSILON) * 100

        # Step 5: coverage
        configured = [
            w for w in (thresholds.domain_weights.get(name) for name in type(thresholds.domain_weights).model_fields)
            if is_finite_number(w) and w > 0
        ]
        domain_weight_total = sum(configured)
        covered_weight = sum(thresholds.domain_weights.get(domain) for domain in covered_domains)
        inferred_coverage_pct = StatisticalUtils.safe_divide(covered_weight, domain_weight_total) * 100

        if is_finite_number(ctx.coverage_pct) and ctx.coverage_pct >= 0:
            coverage_pct = float(ctx.coverage_pct)
        else:
            coverage_pct = inferred_coverage_pct

        if is_finite_number(ctx.backtest_win_rate_pct):
            backtest_win_rate_pct = float(ctx.backtest_win_rate_pct)
        else:
            backtest_win_rate_pct = DEFAULT_BACKTEST_WIN_RATE_PCT

        volatility_index = float(ctx.volatility_index) if is_finite_number(ctx.volatility_index) else None

        # Step 6: no-trade gates
        no_trade = thresholds.no_trade
        if coverage_pct < no_trade.min_coverage_pct:
            blockers.append("coverage_low")
        if backtest_win_rate_pct < no_trade.min_backtest_win_rate_pct:
            blockers.append("backtest_win_rate_low")
        if volatility_index is not None and volatility_index > no_trade.max_volatility_index:
            blockers.append("volatility_too_high")
        if abs_edge < no_trade.min_edge_to_trade:
            blockers.append("edge_below_threshold")

        # Step 7: bias selection
        probabilities = softmax([long_score, short_score, wait_score])
        forced_wait = any(
            b in NO_TRADE_BLOCKERS or b.endswith("_hidden_by_gate") for b in blockers
        )

        bias = DecisionBias.WAIT
        if not forced_wait:
            if long_score >= short_score and long_score >= wait_score:
                bias = DecisionBias.LONG
            elif short_score > long_score and short_score >= wait_score:
                bias = DecisionBias.SHORT

        if bias == DecisionBias.WAIT:
            wait_score = max(wait_score, 100 * conflict.wait_prior)
            if forced_wait:
                self.logger.debug(f"Wait forced by blockers: {blockers}")

        # Step 8: confidence from the softmax of the chosen bias
        probability = {
            DecisionBias.LONG: probabilities[0],
            DecisionBias.SHORT: probabilities[1],
            DecisionBias.WAIT: probabilities[2],
        }[bias]

        # Step 9: top reasons by contribution
        ranked = sorted(breakdown, key=lambda row: row.max_contribution, reverse=True)
        reasons = unique_strings(row.reason for row in ranked)[:MAX_REASONS]

        output = IntelDecisionOutput(
            bias=bias,
            confidence=round2(clamp(probability * 100)),
            should_trade=bias != DecisionBias.WAIT,
            quality_gate_score=round2(StatisticalUtils.mean(quality_samples)),
            long_score=round2(long_score),
            short_score=round2(short_score),
            wait_score=round2(wait_score),
            net_edge=round2(net_edge),
            edge_pct=round2(edge_pct),
            coverage_pct=round2(clamp(coverage_pct)),
            reasons=reasons,
            blockers=unique_strings(blockers),
            policy_version=thresholds.policy_version,
            breakdown=breakdown,
        )

        self.logger.info(
            f"Decision: {output.bias.value.upper()} | confidence={output.confidence:.2f} | "
            f"edge={output.net_edge:.2f} ({output.edge_pct:.1f}%) | coverage={output.coverage_pct:.1f}% | "
            f"blockers={output.blockers}",
            extra={'bias': output.bias.value, 'policy_version': output.policy_version},
        )

        return output


def compute_decision(
    evidence_list: Optional[Iterable[DecisionEvidence]],
    context: ContextLike = None,
    policy: Optional[PolicyConfiguration] = None
) -> IntelDecisionOutput:
    """Convenience wrapper: fuse evidence with a throwaway engine."""
    return DecisionFusionEngine(policy=policy).compute_decision(evidence_list, context)
