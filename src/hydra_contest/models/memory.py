"""Role memory model."""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Column
from sqlmodel import JSON, Field, SQLModel


class RoleMemory(SQLModel, table=True):
    """Experience a role accumulates (e.g. interview outcomes)."""

    __tablename__ = "role_memory"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_id: str = Field(index=True)
    role: str = Field(index=True)
    content: str
    memory_type: str = "experience"
    confidence_score: float | None = None
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    metadata_: dict[str, Any] | None = Field(
        default=None, sa_column=Column("metadata", JSON)
    )
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
