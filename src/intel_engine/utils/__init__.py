"""Shared numeric and logging helpers."""

from .math_utils import (
    StatisticalUtils,
    clamp,
    freshness_factor,
    is_finite_number,
    round2,
    softmax,
    unique_strings,
)
from .logger import JSONFormatter, setup_logging

__all__ = [
    'StatisticalUtils',
    'clamp',
    'freshness_factor',
    'is_finite_number',
    'round2',
    'softmax',
    'unique_strings',
    'JSONFormatter',
    'setup_logging',
]
