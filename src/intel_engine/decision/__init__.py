"""
Decision Engine - evidence fusion into a trading bias.

This module implements the decision-making layer that:
1. Weights gated evidence by domain, freshness, quality and helpfulness
2. Dampens conflicting long/short evidence
3. Applies no-trade gates
4. Emits a long/short/wait bias with calibrated confidence

Components:
- DecisionFusionEngine: Main fusion computation
- DecisionCache: Short-lived cache of decisions per pair/timeframe
"""

from .engine import DecisionFusionEngine, compute_decision
from .cache import DecisionCache

__all__ = [
    'DecisionFusionEngine',
    'compute_decision',
    'DecisionCache',
]
