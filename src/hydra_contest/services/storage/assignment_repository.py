"""Database persistence for role assignment history."""

from __future__ import annotations

from sqlmodel import Session, col, select

from hydra_contest.models import RoleAssignment

from .repository import AsyncRepository


class AssignmentRepository(AsyncRepository):
    """Query and record which model holds which role."""

    async def add(self, assignment: RoleAssignment) -> RoleAssignment:
        def _save(session: Session) -> RoleAssignment:
            session.add(assignment)
            session.commit()
            session.refresh(assignment)
            return assignment

        return await self._run_session(_save)

    async def recent_history(self, user_id: str, role: str, limit: int = 3) -> list[RoleAssignment]:
        """Most recent assignments for a role, newest first."""

        def _get(session: Session) -> list[RoleAssignment]:
            statement = (
                select(RoleAssignment)
                .where(RoleAssignment.user_id == user_id, RoleAssignment.role == role)
                .order_by(col(RoleAssignment.assigned_at).desc())
                .limit(limit)
            )
            return list(session.exec(statement).all())

        return await self._run_session(_get)

    async def list_for_role(self, user_id: str, role: str) -> list[RoleAssignment]:
        """Full assignment history for a role, oldest first."""

        def _get(session: Session) -> list[RoleAssignment]:
            statement = (
                select(RoleAssignment)
                .where(RoleAssignment.user_id == user_id, RoleAssignment.role == role)
                .order_by(col(RoleAssignment.assigned_at))
            )
            return list(session.exec(statement).all())

        return await self._run_session(_get)

    async def open_assignments(self, user_id: str, role: str) -> list[RoleAssignment]:
        """Assignments for a role that have not been closed yet."""

        def _get(session: Session) -> list[RoleAssignment]:
            return list(session.exec(open_assignments_statement(user_id, role)).all())

        return await self._run_session(_get)


def open_assignments_statement(user_id: str, role: str):
    """Select open (removed_at IS NULL) assignments for a role."""
    return select(RoleAssignment).where(
        RoleAssignment.user_id == user_id,
        RoleAssignment.role == role,
        col(RoleAssignment.removed_at).is_(None),
    )
