"""
Intel Engine - evidence quality gate and decision fusion.

Grades incoming market evidence (headlines, events, flow, derivatives,
trending coins, positions), decides whether each item is shown, and fuses
admitted evidence into a long/short/wait recommendation with an auditable
breakdown.
"""

from .config import PolicyConfiguration, PolicyThresholds, get_policy_configuration
from .decision import DecisionCache, DecisionFusionEngine, compute_decision
from .gate import GateAuditLog, HelpfulnessEvaluator, QualityGate, gate_audit_log
from .types import (
    DecisionBias,
    DecisionContext,
    DecisionEvidence,
    DomainScoreBreakdown,
    EvidenceDomain,
    GateLogEntry,
    GateVisibility,
    IntelDecisionOutput,
    ManipulationRisk,
    QualityGateResult,
    QualityGateScores,
)

__version__ = "0.1.0"

__all__ = [
    'PolicyConfiguration',
    'PolicyThresholds',
    'get_policy_configuration',
    'DecisionCache',
    'DecisionFusionEngine',
    'compute_decision',
    'GateAuditLog',
    'HelpfulnessEvaluator',
    'QualityGate',
    'gate_audit_log',
    'DecisionBias',
    'DecisionContext',
    'DecisionEvidence',
    'DomainScoreBreakdown',
    'EvidenceDomain',
    'GateLogEntry',
    'GateVisibility',
    'IntelDecisionOutput',
    'ManipulationRisk',
    'QualityGateResult',
    'QualityGateScores',
]
