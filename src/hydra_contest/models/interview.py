"""Interview session model."""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Column
from sqlmodel import JSON, Field, SQLModel


class InterviewSession(SQLModel, table=True):
    """A candidate model's interview for a named role.

    Status moves briefed -> testing -> tested -> verdict -> completed,
    or back to briefed when a retest is requested.
    """

    __tablename__ = "interview_sessions"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_id: str = Field(index=True)
    role: str
    candidate_model: str
    status: str = "briefed"
    test_results: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    verdict: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    config: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    source_contest_id: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None
