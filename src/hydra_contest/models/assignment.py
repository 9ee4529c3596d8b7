"""Role assignment history model."""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Column
from sqlmodel import JSON, Field, SQLModel


class RoleAssignment(SQLModel, table=True):
    """Which model held which role, over [assigned_at, removed_at]."""

    __tablename__ = "role_assignment_history"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_id: str = Field(index=True)
    role: str = Field(index=True)
    model_id: str
    interview_session_id: str | None = None
    assigned_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    removed_at: datetime | None = None
    removal_reason: str | None = None  # "replaced" or "upskilled"
    interview_avg_score: float | None = None
    is_synthetic: bool = False
    metadata_: dict[str, Any] | None = Field(
        default=None, sa_column=Column("metadata", JSON)
    )
