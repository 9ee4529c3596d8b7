"""Database persistence for interview sessions and their decisions."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy import update
from sqlmodel import Session, col

from hydra_contest.models import InterviewSession, RoleAssignment

from .assignment_repository import open_assignments_statement
from .repository import AsyncRepository

logger = structlog.get_logger()

AWAITING_DECISION = "verdict"


@dataclass(frozen=True)
class DecisionWrite:
    """Outcome of a decision write.

    Attributes:
        applied: False when the session was no longer awaiting a decision.
        verdict: Verdict payload now stored on the session.
        closed: Number of assignments closed.
    """

    applied: bool
    verdict: dict[str, Any] | None
    closed: int


class InterviewRepository(AsyncRepository):
    """Persist interview sessions, verdicts and decision side effects."""

    async def create(self, interview: InterviewSession) -> InterviewSession:
        def _save(session: Session) -> InterviewSession:
            session.add(interview)
            session.commit()
            session.refresh(interview)
            return interview

        return await self._run_session(_save)

    async def get(self, session_id: str, user_id: str) -> InterviewSession | None:
        """Load a session owned by the given user."""

        def _get(session: Session) -> InterviewSession | None:
            interview = session.get(InterviewSession, session_id)
            if interview is None or interview.user_id != user_id:
                return None
            return interview

        return await self._run_session(_get)

    async def save_verdict(self, session_id: str, verdict: dict[str, Any], status: str) -> None:
        """Store a freshly produced verdict and move the session to its status."""

        def _save(session: Session) -> None:
            interview = session.get(InterviewSession, session_id)
            if interview is None:
                msg = f"Interview session not found: {session_id}"
                raise LookupError(msg)
            interview.verdict = verdict
            interview.status = status
            interview.config = {**(interview.config or {}), "phase": status}
            session.add(interview)
            session.commit()

        await self._run_session(_save)

    async def record_decision(
        self,
        session_id: str,
        verdict: dict[str, Any],
        status: str,
        completed_at: datetime | None,
        removal_reason: str | None = None,
        new_assignments: Sequence[RoleAssignment] = (),
    ) -> DecisionWrite:
        """Persist a decision and its assignment changes in one transaction.

        The session row is claimed with a conditional update on its
        ``verdict`` status, so only one of several concurrent decisions is
        written. A losing call changes nothing and gets the stored verdict.

        Args:
            session_id: Interview session ID.
            verdict: Updated verdict payload.
            status: New session status.
            completed_at: Completion timestamp (None while a retest is pending).
            removal_reason: When set, every open assignment of the session's
                role is closed with this reason.
            new_assignments: Assignment rows to insert.

        Returns:
            DecisionWrite describing what was stored.
        """

        def _save(session: Session) -> DecisionWrite:
            # Must be the first statement: the write lock is taken before any read
            claimed = session.connection().execute(
                update(InterviewSession)
                .where(
                    col(InterviewSession.id) == session_id,
                    col(InterviewSession.status) == AWAITING_DECISION,
                )
                .values(verdict=verdict, status=status, completed_at=completed_at)
            )
            if claimed.rowcount != 1:
                session.rollback()
                interview = session.get(InterviewSession, session_id)
                if interview is None:
                    msg = f"Interview session not found: {session_id}"
                    raise LookupError(msg)
                return DecisionWrite(applied=False, verdict=interview.verdict, closed=0)

            interview = session.get(InterviewSession, session_id)
            closed = 0
            if removal_reason is not None:
                now = datetime.now(UTC)
                statement = open_assignments_statement(interview.user_id, interview.role)
                for holder in session.exec(statement).all():
                    holder.removed_at = now
                    holder.removal_reason = removal_reason
                    session.add(holder)
                    closed += 1

            session.add_all(new_assignments)
            session.commit()
            return DecisionWrite(applied=True, verdict=verdict, closed=closed)

        written = await self._run_session(_save)
        logger.debug(
            "decision_recorded",
            session_id=session_id,
            status=status,
            applied=written.applied,
            closed=written.closed,
            inserted=len(new_assignments) if written.applied else 0,
        )
        return written
