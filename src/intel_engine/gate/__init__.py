"""
Quality Gate - evidence grading and visibility decisions.

Components:
- QualityGate: Scores evidence and assigns full / low_impact / hidden
- GateAuditLog: Bounded log of evaluations that did not pass
- HelpfulnessEvaluator: Backtest + feedback -> helpfulness sub-score
"""

from .audit_log import MAX_LOG_ENTRIES, GateAuditLog, gate_audit_log
from .quality_gate import (
    ActionabilityInput,
    HelpfulnessInput,
    QualityGate,
    QualityGateFeatureInput,
    RelevanceInput,
    ReliabilityInput,
    TimelinessInput,
    calculate_actionability,
    calculate_helpfulness,
    calculate_relevance,
    calculate_reliability,
    calculate_timeliness,
    score_quality_gate,
)
from .helpfulness import (
    BacktestImpact,
    BacktestSummary,
    HelpfulnessEvaluation,
    HelpfulnessEvaluator,
    RuntimeFeedback,
)

__all__ = [
    'MAX_LOG_ENTRIES',
    'GateAuditLog',
    'gate_audit_log',
    'ActionabilityInput',
    'HelpfulnessInput',
    'QualityGate',
    'QualityGateFeatureInput',
    'RelevanceInput',
    'ReliabilityInput',
    'TimelinessInput',
    'calculate_actionability',
    'calculate_helpfulness',
    'calculate_relevance',
    'calculate_reliability',
    'calculate_timeliness',
    'score_quality_gate',
    'BacktestImpact',
    'BacktestSummary',
    'HelpfulnessEvaluation',
    'HelpfulnessEvaluator',
    'RuntimeFeedback',
]
