"""
Core data structures for the intel decision pipeline.

Enums:
- DecisionBias: long / short / wait
- EvidenceDomain: fixed set of evidence sources
- GateVisibility: full / low_impact / hidden
- ManipulationRisk: low / medium / high

Data classes:
- QualityGateScores, QualityGateResult: quality gate input/output
- GateLogEntry: audit record for gate evaluations that did not pass
- DecisionEvidence, DecisionContext: fusion engine input
- DomainScoreBreakdown, IntelDecisionOutput: fusion engine output
"""

from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class DecisionBias(str, Enum):
    """Directional output of the engine."""
    LONG = "long"
    SHORT = "short"
    WAIT = "wait"


class EvidenceDomain(str, Enum):
    """Category of evidence source."""
    HEADLINES = "headlines"
    EVENTS = "events"
    FLOW = "flow"
    DERIVATIVES = "derivatives"
    TRENDING = "trending"
    POSITIONS = "positions"


class GateVisibility(str, Enum):
    """How a gated item is shown to the user."""
    FULL = "full"
    LOW_IMPACT = "low_impact"
    HIDDEN = "hidden"


class ManipulationRisk(str, Enum):
    """Manipulation risk level of a source."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


SCORE_FIELDS = ('actionability', 'timeliness', 'reliability', 'relevance', 'helpfulness')


def _plain(value: Any) -> Any:
    """Convert enums/datetimes/tuples nested in asdict() output to JSON-friendly values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def coerce_enum(enum_cls, value):
    """Return ``enum_cls(value)`` when possible, otherwise the raw value."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        return value


@dataclass(frozen=True)
class QualityGateScores:
    """
    Five quality sub-scores, each a percentage in [0, 100].

    Attributes:
        actionability: Can this evidence trigger a concrete action?
        timeliness: Is it still fresh for the target horizon?
        reliability: Source and calculation trust level
        relevance: Pair/timeframe relevance
        helpfulness: Historical lift from acting on this kind of evidence
    """
    actionability: float
    timeliness: float
    reliability: float
    relevance: float
    helpfulness: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class QualityGateResult:
    """Outcome of one quality gate evaluation."""
    scores: QualityGateScores
    weighted_score: float
    passed: bool
    visibility: GateVisibility
    blockers: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'scores': self.scores.to_dict(),
            'weighted_score': self.weighted_score,
            'pass': self.passed,
            'visibility': self.visibility.value,
            'blockers': list(self.blockers),
        }


@dataclass(frozen=True)
class GateLogEntry:
    """Audit record of a gate evaluation that did not cleanly pass."""
    id: str
    created_at: datetime
    source: str
    visibility: GateVisibility
    weighted_score: float
    blockers: Tuple[str, ...]
    scores: QualityGateScores

    def to_dict(self) -> Dict[str, Any]:
        return _plain(asdict(self))


@dataclass
class DecisionEvidence:
    """
    One domain's directional opinion, handed to the fusion engine.

    ``domain`` and ``bias`` accept their enum or string forms. Unknown
    domains are kept as-is and ignored by the engine; unknown biases are
    treated as ``wait``.
    """
    domain: Union[EvidenceDomain, str]
    bias: Union[DecisionBias, str]
    bias_strength: float
    confidence: float
    freshness_sec: float
    reason: str = ""
    quality_score: Optional[float] = None
    helpfulness_score: Optional[float] = None
    gate: Optional[QualityGateResult] = None

    def __post_init__(self):
        self.domain = coerce_enum(EvidenceDomain, self.domain)
        self.bias = coerce_enum(DecisionBias, self.bias)
        if self.reason is None:
            self.reason = ""

    @property
    def domain_key(self) -> str:
        return self.domain.value if isinstance(self.domain, EvidenceDomain) else str(self.domain)


@dataclass
class DecisionContext:
    """Live telemetry supplied by the caller alongside the evidence."""
    coverage_pct: Optional[float] = None
    backtest_win_rate_pct: Optional[float] = None
    volatility_index: Optional[float] = None


@dataclass
class DomainScoreBreakdown:
    """Per-evidence contribution snapshot."""
    domain: str
    weighted_long: float
    weighted_short: float
    weighted_wait: float
    quality_score: float
    helpfulness_score: float
    reason: str

    @property
    def max_contribution(self) -> float:
        return max(self.weighted_long, self.weighted_short, self.weighted_wait)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class IntelDecisionOutput:
    """Fused decision for one market/timeframe."""
    bias: DecisionBias
    confidence: float
    should_trade: bool
    quality_gate_score: float
    long_score: float
    short_score: float
    wait_score: float
    net_edge: float
    edge_pct: float
    coverage_pct: float
    reasons: List[str] = field(default_factory=list)
    blockers: List[str] = field(default_factory=list)
    policy_version: str = ""
    breakdown: List[DomainScoreBreakdown] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self) if f.name != 'breakdown'}
        data['breakdown'] = [row.to_dict() for row in self.breakdown]
        return _plain(data)
