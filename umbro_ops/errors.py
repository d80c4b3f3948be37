from __future__ import annotations


class UmbroOpsError(Exception):
    pass


class UsageError(UmbroOpsError):
    pass


class OpError(UmbroOpsError):
    pass


class ConfigurationError(UsageError):
    """Raised when a required input (seed, org, project, env var) is missing or empty."""


class InvalidStageError(UsageError):
    """Raised when a stage value is not one of the known deployment stages."""


class AmbiguousRoleLabelError(UsageError):
    """Raised when two distinct stages would produce the same role label."""
