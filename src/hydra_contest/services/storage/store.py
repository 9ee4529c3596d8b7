"""Unified storage layer wiring the engine to the domain repositories."""

from __future__ import annotations

import gc
from pathlib import Path

import structlog
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel, create_engine

from hydra_contest.core.config import HydraConfig

from .assignment_repository import AssignmentRepository
from .chronicle_repository import ChronicleRepository
from .contest_repository import ContestRepository
from .interview_repository import InterviewRepository
from .memory_repository import MemoryRepository

logger = structlog.get_logger()


class HydraStore:
    """Persistence layer for contests, interviews and role history.

    Handles:
    - contest results (scores, criteria)
    - interview sessions and verdicts
    - role assignment history
    - chronicles, supervisor notifications and role memory
    """

    def __init__(self, database_path: str | Path) -> None:
        """Initialize store and create tables.

        Args:
            database_path: SQLite database file.
        """
        self.database_path = Path(database_path)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)
        # Sessions run in worker threads; NullPool opens a connection per session
        self._engine = create_engine(
            f"sqlite:///{self.database_path}",
            poolclass=NullPool,
            connect_args={"check_same_thread": False},
        )
        SQLModel.metadata.create_all(self._engine)
        logger.info("store_init", path=str(self.database_path))

        self.contests = ContestRepository(self._engine)
        self.interviews = InterviewRepository(self._engine)
        self.assignments = AssignmentRepository(self._engine)
        self.chronicles = ChronicleRepository(self._engine)
        self.memories = MemoryRepository(self._engine)

    @classmethod
    def from_config(cls, config: HydraConfig) -> HydraStore:
        return cls(config.database_path)

    async def close(self) -> None:
        """Dispose of the database engine."""
        self.close_sync()

    def close_sync(self) -> None:
        """Synchronously dispose of the database engine."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

        gc.collect()
