"""Shared fixtures for Hydra contest tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from hydra_contest.core.config import HydraConfig
from hydra_contest.services.storage import HydraStore


@pytest.fixture
def config(tmp_path) -> HydraConfig:
    return HydraConfig(user_id="user-1", database_path=str(tmp_path / "hydra.db"))


@pytest.fixture
def store(config) -> Iterator[HydraStore]:
    db = HydraStore.from_config(config)
    yield db
    db.close_sync()
