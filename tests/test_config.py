"""Tests for configuration loading and validation."""

import pydantic
import pytest
import yaml

from hydra_contest.core.config import (
    DiscrepancyConfig,
    HydraConfig,
    ScoringConfig,
    VerdictConfig,
    load_config,
)
from hydra_contest.core.errors import APIKeyError


class TestScoringConfig:
    def test_defaults(self):
        config = ScoringConfig()
        assert config.scheme == "weighted-avg"
        assert config.user_weight == 50
        assert config.elo_initial == 1500
        assert config.k_factor == 32

    def test_user_weight_bounds(self):
        with pytest.raises(pydantic.ValidationError):
            ScoringConfig(user_weight=101)
        with pytest.raises(pydantic.ValidationError):
            ScoringConfig(user_weight=-1)

    def test_unknown_scheme_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            ScoringConfig(scheme="glicko")


class TestVerdictConfig:
    def test_role_criteria(self):
        config = VerdictConfig()
        assert config.criteria_for("critic") == [
            "error_detection",
            "constructiveness",
            "thoroughness",
        ]
        assert config.criteria_for("unknown_role") == ["quality", "accuracy", "completeness"]

    def test_arbiter_chain_without_duplicates(self):
        config = VerdictConfig(arbiter_model="a", fallback_models=["b", "a", "c"])
        assert config.arbiter_chain == ["a", "b", "c"]

    def test_empty_default_criteria_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            VerdictConfig(default_criteria=[])


class TestDiscrepancyConfig:
    def test_threshold_must_be_positive(self):
        assert DiscrepancyConfig().threshold == 2.5
        with pytest.raises(pydantic.ValidationError):
            DiscrepancyConfig(threshold=0)


class TestHydraConfig:
    def test_empty_user_id_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            HydraConfig(user_id="  ")

    def test_api_key_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENROUTER_API_KEY", "env-key")
        assert HydraConfig().get_api_key() == "env-key"
        assert HydraConfig(api_key="cfg-key").get_api_key() == "cfg-key"

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
        with pytest.raises(APIKeyError):
            HydraConfig().get_api_key()


class TestLoadConfig:
    def test_load_yaml(self, tmp_path):
        path = tmp_path / "hydra.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "user_id": "alice",
                    "scoring": {"scheme": "elo", "user_weight": 30},
                    "discrepancy": {"threshold": 3.0},
                    "verdict": {"role_criteria": {"poet": ["rhythm", "imagery"]}},
                }
            )
        )

        config = load_config(path)

        assert config.user_id == "alice"
        assert config.scoring.scheme == "elo"
        assert config.scoring.user_weight == 30
        assert config.discrepancy.threshold == 3.0
        assert config.verdict.criteria_for("poet") == ["rhythm", "imagery"]

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path).user_id == "local"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")
