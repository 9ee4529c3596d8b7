"""Chronicle audit records and supervisor notifications."""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Column
from sqlmodel import JSON, Field, SQLModel


class ChronicleEntry(SQLModel, table=True):
    """Durable audit record of an escalated quality anomaly."""

    __tablename__ = "chronicles"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    entry_code: str = Field(index=True, unique=True)
    title: str
    role_object: str
    initiator: str
    status: str = "pending"
    supervisor_resolution: str = "pending"
    source_result_id: str | None = Field(default=None, index=True, unique=True)
    hypothesis: str
    metrics_before: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    metrics_after: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    summary: str
    is_visible: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class SupervisorNotification(SQLModel, table=True):
    """Notice that a chronicle entry awaits a supervisor resolution."""

    __tablename__ = "supervisor_notifications"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_id: str = Field(index=True)
    chronicle_id: str
    entry_code: str
    message: str
    is_read: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class UserRole(SQLModel, table=True):
    """Application role granted to a user (e.g. "supervisor")."""

    __tablename__ = "user_roles"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_id: str = Field(index=True)
    role: str
