"""Configuration schemas and loading for Hydra contest scoring and verdicts."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator

from hydra_contest.core.errors import APIKeyError

ScoringScheme = Literal["weighted-avg", "tournament", "elo"]

DEFAULT_INTERVIEW_CRITERIA = ["quality", "accuracy", "completeness"]

# Arbiter criteria per role category used by interview verdicts.
DEFAULT_ROLE_CRITERIA: dict[str, list[str]] = {
    # Technical roles
    "archivist": ["knowledge_accuracy", "organization_quality", "completeness"],
    "analyst": ["analytical_depth", "methodology", "actionability"],
    "webhunter": ["search_strategy", "source_quality", "relevance"],
    "promptengineer": ["prompt_quality", "token_efficiency", "creativity"],
    "flowregulator": ["architecture_quality", "optimization", "scalability"],
    "toolsmith": ["api_design", "error_handling", "usability"],
    "guide": ["clarity", "user_empathy", "completeness"],
    # Expert roles
    "assistant": ["depth", "accuracy", "structure"],
    "critic": ["error_detection", "constructiveness", "thoroughness"],
    "arbiter": ["objectivity", "fairness", "reasoning_quality"],
    "moderator": ["mediation_skill", "synthesis_quality", "neutrality"],
    "advisor": ["strategic_thinking", "risk_awareness", "actionability"],
    "consultant": ["expertise_depth", "practical_value", "clarity"],
    # Legal roles
    "patent_attorney": [
        "novelty_assessment",
        "claim_structure",
        "prior_art_search",
        "legal_accuracy",
        "risk_assessment",
    ],
    "translator": ["accuracy", "fluency", "terminology_consistency"],
}


class ScoringConfig(BaseModel):
    """Contest scoring configuration.

    Attributes:
        scheme: Aggregation scheme ("weighted-avg", "tournament" or "elo").
        user_weight: Percentage weight of the human score (0-100). The arbiter
            score receives the remainder.
        elo_initial: Starting Elo rating for every model.
        k_factor: Elo K-factor.
    """

    scheme: ScoringScheme = "weighted-avg"
    user_weight: int = Field(default=50, ge=0, le=100)
    elo_initial: float = 1500.0
    k_factor: float = Field(default=32.0, gt=0)


class VerdictConfig(BaseModel):
    """Interview verdict pipeline configuration."""

    arbiter_model: str = "google/gemini-3-flash-preview"
    fallback_models: list[str] = Field(
        default_factory=lambda: ["google/gemini-2.5-flash", "google/gemini-2.5-pro"]
    )
    moderator_model: str = "google/gemini-2.5-flash-lite"
    arbiter_tokens: int = 1500
    moderator_tokens: int = 2048
    arbiter_temperature: float = 0.2
    moderator_temperature: float = 0.3
    # Arbiter confidence above which a disagreeing recommendation is reported
    override_confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    phantom_score_offset: float = Field(default=0.5, ge=0.0)
    default_criteria: list[str] = Field(default_factory=lambda: list(DEFAULT_INTERVIEW_CRITERIA))
    role_criteria: dict[str, list[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_ROLE_CRITERIA.items()}
    )

    @field_validator("default_criteria")
    @classmethod
    def validate_default_criteria(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("At least one default criterion must be defined")
        return v

    def criteria_for(self, role: str) -> list[str]:
        """Get arbiter criteria for a role, falling back to the defaults."""
        return list(self.role_criteria.get(role) or self.default_criteria)

    @property
    def arbiter_chain(self) -> list[str]:
        """Arbiter models in the order they are tried."""
        chain = [self.arbiter_model]
        chain.extend(m for m in self.fallback_models if m not in chain)
        return chain


class DiscrepancyConfig(BaseModel):
    """Contest discrepancy trigger configuration.

    Attributes:
        threshold: Minimum |user - arbiter| gap (0-10 scale) that escalates.
        entry_prefix: Prefix of generated chronicle entry codes.
        evolutioner_model: Model asked for a calibration hypothesis.
        round_prompt_chars: Maximum round prompt characters shown to the model.
    """

    threshold: float = Field(default=2.5, gt=0.0, le=10.0)
    entry_prefix: str = "HYDRA-EVO"
    evolutioner_model: str = "google/gemini-2.5-flash"
    max_tokens: int = 600
    temperature: float = 0.6
    round_prompt_chars: int = Field(default=300, ge=1)


class HydraConfig(BaseModel):
    """Complete engine configuration."""

    user_id: str = "local"
    database_path: str = "./hydra.db"
    seed: int = 42
    api_key: str | None = None
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    verdict: VerdictConfig = Field(default_factory=VerdictConfig)
    discrepancy: DiscrepancyConfig = Field(default_factory=DiscrepancyConfig)

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, v: str) -> str:
        if not v or not v.strip():
            msg = "user_id cannot be empty"
            raise ValueError(msg)
        return v

    def get_api_key(self) -> str:
        """Get API key from config or environment."""
        key = self.api_key or os.environ.get("OPENROUTER_API_KEY")
        if not key:
            raise APIKeyError()
        return key


def load_config(path: str | Path) -> HydraConfig:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to YAML configuration file.

    Returns:
        Validated HydraConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        pydantic.ValidationError: If config is invalid.
    """
    config_path = Path(path)
    if not config_path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with config_path.open() as f:
        data = yaml.safe_load(f) or {}

    return HydraConfig.model_validate(data)
