"""
Exceptions raised outside the scoring core.

The gate, audit log, helpfulness evaluator and fusion engine are total and
never raise; these exceptions only cover startup configuration errors.
"""


class IntelEngineError(Exception):
    """Base exception for the intel engine."""
    pass


class ConfigurationError(IntelEngineError):
    """Configuration file or directory is unusable."""
    pass
