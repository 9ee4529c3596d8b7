"""Core configuration and errors for Hydra contest engine."""

from hydra_contest.core.config import (
    DEFAULT_ROLE_CRITERIA,
    DiscrepancyConfig,
    HydraConfig,
    ScoringConfig,
    ScoringScheme,
    VerdictConfig,
    load_config,
)
from hydra_contest.core.errors import (
    APIKeyError,
    ConfigurationError,
    ContestResultNotFoundError,
    DecisionConflictError,
    DiscrepancyError,
    HydraError,
    SessionNotFoundError,
    ValidationError,
    VerdictError,
)

__all__ = [
    "DEFAULT_ROLE_CRITERIA",
    "DiscrepancyConfig",
    "HydraConfig",
    "ScoringConfig",
    "ScoringScheme",
    "VerdictConfig",
    "load_config",
    "APIKeyError",
    "ConfigurationError",
    "ContestResultNotFoundError",
    "DecisionConflictError",
    "DiscrepancyError",
    "HydraError",
    "SessionNotFoundError",
    "ValidationError",
    "VerdictError",
]
