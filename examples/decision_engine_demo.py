"""
Intel Engine Demo

Demonstrates how to:
1. Grade raw evidence with the quality gate
2. Fuse gated evidence into a long/short/wait decision
3. See conflict dampening and no-trade gates at work
4. Tune the policy at runtime
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from intel_engine import (
    DecisionContext,
    DecisionEvidence,
    DecisionFusionEngine,
    GateAuditLog,
    PolicyConfiguration,
    QualityGate,
)
from intel_engine.gate import (
    ActionabilityInput,
    HelpfulnessInput,
    QualityGateFeatureInput,
    RelevanceInput,
    ReliabilityInput,
    TimelinessInput,
)


def print_decision(decision):
    print(f"\n  Bias:        {decision.bias.value.upper()}")
    print(f"  Confidence:  {decision.confidence:.2f}%")
    print(f"  Trade:       {'yes' if decision.should_trade else 'no'}")
    print(f"  Scores:      long={decision.long_score:.2f} short={decision.short_score:.2f} "
          f"wait={decision.wait_score:.2f}")
    print(f"  Edge:        {decision.net_edge:.2f} ({decision.edge_pct:.1f}%)")
    print(f"  Coverage:    {decision.coverage_pct:.1f}%")
    print(f"  Reasons:     {decision.reasons}")
    print(f"  Blockers:    {decision.blockers or '-'}")


def demo_quality_gate(gate: QualityGate):
    """Demo 1: Grading evidence from raw features."""
    print("\n" + "="*80)
    print("DEMO 1: Quality Gate")
    print("="*80)

    samples = {
        "headlines": QualityGateFeatureInput(
            actionability=ActionabilityInput(action_type_count=2, clarity_score=35),
            timeliness=TimelinessInput(delay_minutes=4),
            reliability=ReliabilityInput(source_reliability=85, failure_rate_pct=3, manipulation_risk="low"),
            relevance=RelevanceInput(pair_keyword_match_pct=80, timeframe_aligned=True),
            helpfulness=HelpfulnessInput(backtest_win_rate_lift_pct=3, feedback_positive_pct=70,
                                         apply_rate_pct=40, pnl_lift_pct=2),
        ),
        "trending": QualityGateFeatureInput(
            actionability=ActionabilityInput(action_type_count=1, clarity_score=10),
            timeliness=TimelinessInput(delay_minutes=90),
            reliability=ReliabilityInput(source_reliability=40, failure_rate_pct=15, manipulation_risk="high"),
            relevance=RelevanceInput(pair_keyword_match_pct=20, timeframe_aligned=False),
            helpfulness=HelpfulnessInput(backtest_win_rate_lift_pct=0, feedback_positive_pct=20,
                                         apply_rate_pct=5),
        ),
    }

    results = {}
    for source, features in samples.items():
        result = gate.evaluate_from_features(features, source=source)
        results[source] = result
        print(f"\n  {source}: {result.visibility.value.upper()} (score {result.weighted_score:.2f})")
        for name, value in result.scores.to_dict().items():
            print(f"    - {name}: {value:.1f}")
        if result.blockers:
            print(f"    blockers: {list(result.blockers)}")

    return results


def demo_fusion(engine: DecisionFusionEngine, gate_results):
    """Demo 2: Fusing gated evidence."""
    print("\n" + "="*80)
    print("DEMO 2: Decision Fusion")
    print("="*80)

    evidence = [
        DecisionEvidence(domain="headlines", bias="long", bias_strength=80, confidence=70,
                         freshness_sec=240, reason="Spot ETF inflows accelerate",
                         gate=gate_results["headlines"]),
        DecisionEvidence(domain="derivatives", bias="long", bias_strength=65, confidence=75,
                         freshness_sec=300, reason="Funding turned negative while OI rises",
                         quality_score=78, helpfulness_score=72),
        DecisionEvidence(domain="flow", bias="long", bias_strength=55, confidence=80,
                         freshness_sec=120, reason="Taker buy volume z-score 2.4",
                         quality_score=74, helpfulness_score=68),
    ]
    print_decision(engine.compute_decision(evidence, DecisionContext(backtest_win_rate_pct=58)))

    print("\n  Adding hidden trending evidence forces a wait:")
    evidence.append(DecisionEvidence(domain="trending", bias="short", bias_strength=60, confidence=50,
                                     freshness_sec=600, reason="Coin trending on social",
                                     gate=gate_results["trending"]))
    print_decision(engine.compute_decision(evidence))


def demo_conflict(engine: DecisionFusionEngine):
    """Demo 3: Opposing evidence of similar size."""
    print("\n" + "="*80)
    print("DEMO 3: Conflict Dampening")
    print("="*80)

    evidence = [
        DecisionEvidence(domain="flow", bias="long", bias_strength=80, confidence=80, freshness_sec=0,
                         reason="Large bid wall", quality_score=90, helpfulness_score=90),
        DecisionEvidence(domain="flow", bias="short", bias_strength=78, confidence=80, freshness_sec=0,
                         reason="Large ask wall", quality_score=90, helpfulness_score=90),
    ]
    print_decision(engine.compute_decision(evidence))


def demo_policy_tuning(policy: PolicyConfiguration, engine: DecisionFusionEngine):
    """Demo 4: Tightening the policy at runtime."""
    print("\n" + "="*80)
    print("DEMO 4: Policy Tuning")
    print("="*80)

    evidence = [
        DecisionEvidence(domain="headlines", bias="short", bias_strength=80, confidence=70,
                         freshness_sec=60, reason="Exchange hack rumor",
                         quality_score=90, helpfulness_score=85),
    ]

    print("\n  Default policy:")
    print_decision(engine.compute_decision(evidence))

    policy.patch({"no_trade": {"min_coverage_pct": 40}, "policy_version": "intel-demo-strict"})
    print("\n  After requiring 40% domain coverage:")
    print_decision(engine.compute_decision(evidence))

    policy.reset()


def main():
    """Run all demos."""
    print("\n" + "="*80)
    print("INTEL ENGINE DEMO")
    print("="*80)

    policy = PolicyConfiguration()
    audit_log = GateAuditLog()
    gate = QualityGate(policy=policy, audit_log=audit_log)
    engine = DecisionFusionEngine(policy=policy)

    gate_results = demo_quality_gate(gate)
    demo_fusion(engine, gate_results)
    demo_conflict(engine)
    demo_policy_tuning(policy, engine)

    stats = audit_log.get_stats()
    print("\n" + "="*80)
    print("DEMO COMPLETE")
    print("="*80)
    print(f"\nGate log: {stats['total_entries']} entries {stats['by_visibility']}")
    print("\nNext Steps:")
    print("  1. Run tests: pytest tests/")
    print("  2. Serve the API: intel-engine")
    print("  3. Tune config/intel_thresholds.yaml")
    print("\n" + "="*80 + "\n")


if __name__ == '__main__':
    main()
