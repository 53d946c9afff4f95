"""
Configuration models using Pydantic for type-safe validation.

This module defines all configuration models for the intel engine:
- QualityGateConfig: Per-score minimums, weights, pass threshold, hard-hide floor
- DomainValues: One number per evidence domain (weights, max signal age)
- ConflictConfig: Conflict dampening band and penalty
- NoTradeConfig: Coverage/backtest/volatility/edge gates
- PanelRulesConfig: Display limits for the evidence-construction layer
- BacktestTargetsConfig: Targets a policy change must hit
- PolicyThresholds: The complete versioned policy
- SystemConfig / AppConfig: Process settings plus policy
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Enums for Configuration
# ============================================================================

class LogLevel(str, Enum):
    """Logging level."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


FALLBACK_QUALITY_WEIGHTS = {
    "actionability": 0.25,
    "timeliness": 0.15,
    "reliability": 0.25,
    "relevance": 0.15,
    "helpfulness": 0.20,
}


# ============================================================================
# Quality Gate Configuration
# ============================================================================

class QualityGateScoreSet(BaseModel):
    """One number per quality sub-score (used for minimums and weights)."""

    model_config = ConfigDict(extra="ignore")

    actionability: float = Field(description="Actionability value")
    timeliness: float = Field(description="Timeliness value")
    reliability: float = Field(description="Reliability value")
    relevance: float = Field(description="Relevance value")
    helpfulness: float = Field(description="Helpfulness value")


class QualityGateConfig(BaseModel):
    """Quality gate thresholds."""

    model_config = ConfigDict(extra="ignore")

    minimum: QualityGateScoreSet = Field(
        default_factory=lambda: QualityGateScoreSet(
            actionability=60.0,
            timeliness=55.0,
            reliability=60.0,
            relevance=55.0,
            helpfulness=50.0,
        ),
        description="Per-score minimums; any score below its minimum blocks the item"
    )

    weights: QualityGateScoreSet = Field(
        default_factory=lambda: QualityGateScoreSet(**FALLBACK_QUALITY_WEIGHTS),
        description="Weights of the weighted quality score (normalized to sum 1.0)"
    )

    pass_threshold: float = Field(
        default=65.0,
        description="Weighted score needed for full visibility"
    )

    hard_hide_helpfulness_below: float = Field(
        default=30.0,
        description="Helpfulness floor under which an item is always hidden"
    )

    cache_ttl_sec: float = Field(
        default=20.0,
        description="TTL of cached decisions per pair/timeframe"
    )


# ============================================================================
# Domain Configuration
# ============================================================================

class DomainValues(BaseModel):
    """One number per evidence domain."""

    model_config = ConfigDict(extra="ignore")

    headlines: float = Field(description="Headlines value")
    events: float = Field(description="Events value")
    flow: float = Field(description="Flow value")
    derivatives: float = Field(description="Derivatives value")
    trending: float = Field(description="Trending value")
    positions: float = Field(description="Positions value")

    def get(self, domain, default=None):
        """Look up a domain by enum or name; unknown domains return ``default``."""
        key = getattr(domain, "value", domain)
        if key not in type(self).model_fields:
            return default
        return getattr(self, key)


# ============================================================================
# Decision Configuration
# ============================================================================

class ConflictConfig(BaseModel):
    """Conflict dampening between opposing evidence."""

    model_config = ConfigDict(extra="ignore")

    edge_band_pct: float = Field(
        default=15.0,
        description="Relative edge (%) under which long/short are considered in conflict"
    )

    confidence_penalty_pct: float = Field(
        default=18.0,
        description="Percent by which both directional scores are cut on conflict"
    )

    wait_prior: float = Field(
        default=0.2,
        description="Prior mass (x100) added to wait on conflict and used as wait floor"
    )


class NoTradeConfig(BaseModel):
    """Hard gates that force a wait decision."""

    model_config = ConfigDict(extra="ignore")

    min_coverage_pct: float = Field(
        default=25.0,
        description="Minimum domain coverage (%)"
    )

    min_backtest_win_rate_pct: float = Field(
        default=52.0,
        description="Minimum backtest win rate (%)"
    )

    max_volatility_index: float = Field(
        default=80.0,
        description="Maximum volatility index"
    )

    min_edge_to_trade: float = Field(
        default=8.0,
        description="Minimum absolute long/short edge"
    )


class PanelRulesConfig(BaseModel):
    """Display rules consumed by the evidence-construction layer."""

    model_config = ConfigDict(extra="ignore")

    max_cards_per_panel: int = Field(default=5, description="Cards shown per panel")
    positions_pnl_alert_pct: float = Field(default=3.0, description="PnL move that raises a position alert")
    flow_outlier_z_score_cut: float = Field(default=2.0, description="Z-score for flow outliers")
    headline_impact_cut_pct: float = Field(default=55.0, description="Minimum headline impact")
    event_impact_cut_pct: float = Field(default=50.0, description="Minimum event impact")


class BacktestTargetsConfig(BaseModel):
    """Targets a policy change must hit versus baseline."""

    model_config = ConfigDict(extra="ignore")

    win_rate_lift_pct: float = Field(default=3.0, description="Win rate lift (percentage points)")
    sharpe_lift: float = Field(default=0.15, description="Sharpe ratio lift")
    max_drawdown_reduction_pct: float = Field(default=2.0, description="Max drawdown reduction (points)")
    nps_positive_target_pct: float = Field(default=60.0, description="Positive feedback rate target")


# ============================================================================
# Complete Policy
# ============================================================================

class PolicyThresholds(BaseModel):
    """Complete, versioned intel policy."""

    model_config = ConfigDict(extra="ignore")

    policy_version: str = Field(
        default="intel-v1.0.0",
        description="Free-form policy version tag"
    )

    quality_gate: QualityGateConfig = Field(
        default_factory=QualityGateConfig,
        description="Quality gate thresholds"
    )

    domain_weights: DomainValues = Field(
        default_factory=lambda: DomainValues(
            headlines=0.30,
            events=0.12,
            flow=0.20,
            derivatives=0.22,
            trending=0.06,
            positions=0.10,
        ),
        description="Fusion weight per evidence domain"
    )

    max_signal_age_sec: DomainValues = Field(
        default_factory=lambda: DomainValues(
            headlines=7200,
            events=21600,
            flow=2700,
            derivatives=1800,
            trending=7200,
            positions=3600,
        ),
        description="Age at which a domain's evidence stops contributing"
    )

    conflict: ConflictConfig = Field(
        default_factory=ConflictConfig,
        description="Conflict dampening"
    )

    no_trade: NoTradeConfig = Field(
        default_factory=NoTradeConfig,
        description="No-trade gates"
    )

    panel_rules: PanelRulesConfig = Field(
        default_factory=PanelRulesConfig,
        description="Panel display rules"
    )

    backtest_targets: BacktestTargetsConfig = Field(
        default_factory=BacktestTargetsConfig,
        description="Backtest targets"
    )


# ============================================================================
# Application Configuration
# ============================================================================

class SystemConfig(BaseModel):
    """System-wide settings."""

    model_config = ConfigDict(use_enum_values=True)

    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level"
    )

    json_logs: bool = Field(
        default=True,
        description="Emit JSON log lines"
    )

    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )

    api_port: int = Field(
        default=8000,
        ge=1024,
        le=65535,
        description="API server port"
    )


class AppConfig(BaseModel):
    """Complete application configuration."""

    system: SystemConfig = Field(
        default_factory=SystemConfig,
        description="System configuration"
    )

    intel: PolicyThresholds = Field(
        default_factory=PolicyThresholds,
        description="Intel policy thresholds"
    )
