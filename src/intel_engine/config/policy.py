"""
Runtime policy configuration.

Owns the compiled-in default policy and a mutable current copy that
operators can replace, deep-patch or reset without a restart.

Semantics:
- get() always returns a deep copy; callers never alias shared state
- set()/patch() validate each leaf independently against the typed schema;
  a leaf that does not validate is skipped, never raised
- quality gate weights are re-normalized to sum 1.0 after every change
"""

import copy
import logging
import math
import threading
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ValidationError

from .settings import FALLBACK_QUALITY_WEIGHTS, PolicyThresholds, QualityGateScoreSet

logger = logging.getLogger(__name__)

PolicyPatch = Union[PolicyThresholds, Mapping[str, Any]]


def normalize_quality_weights(weights: QualityGateScoreSet) -> QualityGateScoreSet:
    """
    Scale the five quality weights so they sum to 1.0.

    A non-finite or non-positive total substitutes the fallback distribution.
    """
    values = weights.model_dump()
    total = sum(values.values())
    if not math.isfinite(total) or total <= 0:
        return QualityGateScoreSet(**FALLBACK_QUALITY_WEIGHTS)
    return QualityGateScoreSet(**{name: value / total for name, value in values.items()})


def _normalized(thresholds: PolicyThresholds) -> PolicyThresholds:
    result = thresholds.model_copy(deep=True)
    result.quality_gate.weights = normalize_quality_weights(result.quality_gate.weights)
    return result


def _leaf_updates(
    current: Dict[str, Any],
    patch: Mapping[str, Any],
    path: Tuple[str, ...] = ()
) -> Iterator[Tuple[Tuple[str, ...], Any]]:
    """Yield (path, value) for every patch leaf, recursing where both sides are mappings."""
    for key, value in patch.items():
        if value is None:
            continue
        existing = current.get(key) if isinstance(current, dict) else None
        if isinstance(value, Mapping) and isinstance(existing, dict):
            yield from _leaf_updates(existing, value, path + (key,))
        else:
            yield path + (key,), value


def _assign(target: Dict[str, Any], path: Tuple[str, ...], value: Any) -> bool:
    node = target
    for key in path[:-1]:
        node = node.get(key)
        if not isinstance(node, dict):
            return False
    if path[-1] not in node:
        return False
    node[path[-1]] = copy.deepcopy(value)
    return True


def merge_policy(base: PolicyThresholds, patch: Mapping[str, Any]) -> PolicyThresholds:
    """
    Deep-merge a partial policy into ``base`` over the typed schema.

    Mapping values merge recursively, scalars and lists overwrite, ``None``
    values and unknown keys are ignored, and any leaf that fails validation
    is dropped with a warning.
    """
    merged = base.model_dump()
    for path, value in _leaf_updates(merged, patch):
        dotted = ".".join(str(part) for part in path)
        candidate = copy.deepcopy(merged)
        if not _assign(candidate, path, value):
            logger.warning(f"Ignoring unknown policy key: {dotted}")
            continue
        try:
            merged = PolicyThresholds.model_validate(candidate).model_dump()
        except ValidationError as e:
            logger.warning(f"Ignoring invalid policy value for {dotted}: {e.errors()[0]['msg']}")
    return PolicyThresholds.model_validate(merged)


class PolicyConfiguration:
    """
    Thread-safe owner of the intel policy.

    Each instance is independent, so tests and multi-tenant hosts can run
    several policies side by side. Components take an instance by reference.
    """

    def __init__(self, defaults: Optional[PolicyThresholds] = None):
        """
        Initialize policy configuration.

        Args:
            defaults: Baseline policy restored by reset() (compiled-in default if None)
        """
        self._default = _normalized(defaults or PolicyThresholds())
        self._current = self._default.model_copy(deep=True)
        self._lock = threading.RLock()

    @property
    def default(self) -> PolicyThresholds:
        """Deep copy of the baseline policy."""
        return self._default.model_copy(deep=True)

    def get(self) -> PolicyThresholds:
        """Deep copy of the current policy."""
        with self._lock:
            return self._current.model_copy(deep=True)

    def set(self, thresholds: PolicyPatch) -> PolicyThresholds:
        """
        Replace the current policy wholesale.

        Args:
            thresholds: Complete PolicyThresholds, or a mapping validated
                leaf-by-leaf over the compiled-in default

        Returns:
            The new effective policy
        """
        if isinstance(thresholds, PolicyThresholds):
            replacement = thresholds
        elif isinstance(thresholds, Mapping):
            replacement = merge_policy(PolicyThresholds(), thresholds)
        else:
            logger.warning(f"Ignoring policy replacement of type {type(thresholds).__name__}")
            return self.get()

        with self._lock:
            self._current = _normalized(replacement)
            logger.info(f"Policy replaced: version={self._current.policy_version}")
            return self._current.model_copy(deep=True)

    def patch(self, partial: PolicyPatch) -> PolicyThresholds:
        """
        Deep-merge a partial policy into the current one.

        Args:
            partial: Mapping (or model with only the set fields) to merge

        Returns:
            The new effective policy
        """
        if isinstance(partial, BaseModel):
            partial = partial.model_dump(exclude_unset=True)
        if not isinstance(partial, Mapping):
            logger.warning(f"Ignoring policy patch of type {type(partial).__name__}")
            return self.get()

        with self._lock:
            self._current = _normalized(merge_policy(self._current, partial))
            logger.info(f"Policy patched: version={self._current.policy_version}")
            return self._current.model_copy(deep=True)

    def reset(self) -> PolicyThresholds:
        """Restore the baseline policy."""
        with self._lock:
            self._current = self._default.model_copy(deep=True)
            logger.info(f"Policy reset: version={self._current.policy_version}")
            return self._current.model_copy(deep=True)


# ============================================================================
# Global PolicyConfiguration Instance
# ============================================================================

_global_policy: Optional[PolicyConfiguration] = None
_global_lock = threading.Lock()


def get_policy_configuration() -> PolicyConfiguration:
    """
    Get or create the process-wide PolicyConfiguration.

    Returns:
        Global PolicyConfiguration instance
    """
    global _global_policy
    with _global_lock:
        if _global_policy is None:
            _global_policy = PolicyConfiguration()
        return _global_policy
