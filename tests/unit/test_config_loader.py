"""
Unit tests for ConfigLoader.

Tests:
- Policy loading from YAML (partial files merge over defaults)
- Environment placeholders and overrides
- Invalid files and invalid values
- Caching and reload
"""

import pytest

from intel_engine.config import ConfigLoader
from intel_engine.config.loader import PROJECT_ROOT
from intel_engine.exceptions import ConfigurationError

ENV_VARS = ("INTEL_POLICY_VERSION", "INTEL_CONFIG_DIR", "LOG_LEVEL", "LOG_JSON", "API_HOST", "API_PORT")


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_dir(tmp_path):
    return tmp_path


def write(config_dir, name, text):
    (config_dir / f"{name}.yaml").write_text(text)


PARTIAL_POLICY = """
policy_version: intel-v2.0.0
no_trade:
  min_coverage_pct: 40
domain_weights:
  trending: 0
"""

INVALID_VALUE_POLICY = """
quality_gate:
  pass_threshold: very-high
  cache_ttl_sec: 45
"""

PLACEHOLDER_POLICY = """
policy_version: ${POLICY_TAG:intel-fallback}
no_trade:
  max_volatility_index: ${MAX_VOL:70}
"""

SYSTEM_CONFIG = """
log_level: WARNING
json_logs: true
api_port: 9000
"""


# ============================================================================
# Policy Loading
# ============================================================================

def test_missing_file_gives_defaults(config_dir):
    policy = ConfigLoader(config_dir).load_policy()

    assert policy.policy_version == "intel-v1.0.0"
    assert policy.quality_gate.pass_threshold == 65


def test_partial_file_merges_over_defaults(config_dir):
    write(config_dir, "intel_thresholds", PARTIAL_POLICY)
    policy = ConfigLoader(config_dir).load_policy()

    assert policy.policy_version == "intel-v2.0.0"
    assert policy.no_trade.min_coverage_pct == 40
    assert policy.no_trade.min_edge_to_trade == 8
    assert policy.domain_weights.trending == 0
    assert policy.domain_weights.headlines == 0.30


def test_invalid_values_skipped(config_dir):
    write(config_dir, "intel_thresholds", INVALID_VALUE_POLICY)
    policy = ConfigLoader(config_dir).load_policy()

    assert policy.quality_gate.pass_threshold == 65
    assert policy.quality_gate.cache_ttl_sec == 45


def test_env_placeholders(config_dir, monkeypatch):
    write(config_dir, "intel_thresholds", PLACEHOLDER_POLICY)
    monkeypatch.setenv("MAX_VOL", "90")
    monkeypatch.delenv("POLICY_TAG", raising=False)

    policy = ConfigLoader(config_dir).load_policy()

    assert policy.policy_version == "intel-fallback"
    assert policy.no_trade.max_volatility_index == 90


def test_policy_version_env_override(config_dir, monkeypatch):
    write(config_dir, "intel_thresholds", "policy_version: from-file\n")
    monkeypatch.setenv("INTEL_POLICY_VERSION", "from-env")

    assert ConfigLoader(config_dir).load_policy().policy_version == "from-env"


def test_invalid_yaml_raises(config_dir):
    write(config_dir, "intel_thresholds", "quality_gate: [unclosed\n")
    with pytest.raises(ConfigurationError):
        ConfigLoader(config_dir).load_policy()


def test_non_mapping_raises(config_dir):
    write(config_dir, "intel_thresholds", "- just\n- a list\n")
    with pytest.raises(ConfigurationError):
        ConfigLoader(config_dir).load_policy()


def test_shipped_policy_file_matches_defaults():
    policy = ConfigLoader(PROJECT_ROOT / "config").load_policy(use_cache=False)

    assert policy.policy_version == "intel-v1.0.0"
    assert policy.quality_gate.minimum.actionability == 60
    assert policy.domain_weights.derivatives == 0.22
    assert policy.backtest_targets.nps_positive_target_pct == 60


def test_create_policy_configuration_uses_file_as_baseline(config_dir):
    write(config_dir, "intel_thresholds", "policy_version: file-baseline\n")
    config = ConfigLoader(config_dir).create_policy_configuration()

    config.patch({"policy_version": "patched"})
    assert config.reset().policy_version == "file-baseline"


# ============================================================================
# Application Config
# ============================================================================

def test_system_defaults(config_dir):
    app = ConfigLoader(config_dir).load_app_config()

    assert app.system.log_level == "INFO"
    assert app.system.api_port == 8000
    assert app.intel.policy_version == "intel-v1.0.0"


def test_system_file_and_env_overrides(config_dir, monkeypatch):
    write(config_dir, "system", SYSTEM_CONFIG)
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("LOG_JSON", "no")

    app = ConfigLoader(config_dir).load_app_config()

    assert app.system.log_level == "DEBUG"
    assert app.system.json_logs is False
    assert app.system.api_port == 9000


def test_invalid_system_config_raises(config_dir, monkeypatch):
    monkeypatch.setenv("API_PORT", "80")
    with pytest.raises(ConfigurationError):
        ConfigLoader(config_dir).load_app_config()


def test_config_dir_from_env(config_dir, monkeypatch):
    monkeypatch.setenv("INTEL_CONFIG_DIR", str(config_dir))
    assert ConfigLoader().config_dir == config_dir


# ============================================================================
# Caching
# ============================================================================

def test_cached_until_reload(config_dir):
    write(config_dir, "intel_thresholds", "policy_version: one\n")
    loader = ConfigLoader(config_dir)
    assert loader.load_app_config().intel.policy_version == "one"

    write(config_dir, "intel_thresholds", "policy_version: two\n")
    assert loader.load_app_config().intel.policy_version == "one"
    assert loader.reload().intel.policy_version == "two"


def test_clear_cache(config_dir):
    write(config_dir, "intel_thresholds", "policy_version: one\n")
    loader = ConfigLoader(config_dir)
    loader.load_policy()

    write(config_dir, "intel_thresholds", "policy_version: two\n")
    loader.clear_cache()
    assert loader.load_policy().policy_version == "two"
