"""
Configuration management module.

Typed policy schema, runtime policy owner and YAML loader.
"""

from .settings import (
    AppConfig,
    BacktestTargetsConfig,
    ConflictConfig,
    DomainValues,
    NoTradeConfig,
    PanelRulesConfig,
    PolicyThresholds,
    QualityGateConfig,
    QualityGateScoreSet,
    SystemConfig,
)
from .policy import (
    PolicyConfiguration,
    get_policy_configuration,
    merge_policy,
    normalize_quality_weights,
)
from .loader import ConfigLoader, get_app_config, get_config_loader, reload_config

__all__ = [
    'AppConfig',
    'BacktestTargetsConfig',
    'ConflictConfig',
    'DomainValues',
    'NoTradeConfig',
    'PanelRulesConfig',
    'PolicyThresholds',
    'QualityGateConfig',
    'QualityGateScoreSet',
    'SystemConfig',
    'PolicyConfiguration',
    'get_policy_configuration',
    'merge_policy',
    'normalize_quality_weights',
    'ConfigLoader',
    'get_app_config',
    'get_config_loader',
    'reload_config',
]
