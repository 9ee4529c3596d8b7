"""Judged contest response model."""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Column
from sqlmodel import JSON, Field, SQLModel


class ContestResult(SQLModel, table=True):
    """One model's judged response in one contest round.

    Scores are on a 0-10 scale; either may be missing until rated.
    """

    __tablename__ = "contest_results"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    session_id: str | None = Field(default=None, index=True)
    model_id: str
    round_id: str
    round_index: int | None = None
    user_score: float | None = None
    arbiter_score: float | None = None
    criteria_scores: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    response_text: str | None = None
    arbiter_comment: str | None = None
    arbiter_model: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
