"""Database persistence for role memory."""

from __future__ import annotations

from sqlmodel import Session, select

from hydra_contest.models import RoleMemory

from .repository import AsyncRepository


class MemoryRepository(AsyncRepository):
    """Persist experience memories for roles."""

    async def add(self, memory: RoleMemory) -> None:
        def _save(session: Session) -> None:
            session.add(memory)
            session.commit()

        await self._run_session(_save)

    async def list_for_role(self, user_id: str, role: str) -> list[RoleMemory]:
        def _get(session: Session) -> list[RoleMemory]:
            statement = select(RoleMemory).where(
                RoleMemory.user_id == user_id, RoleMemory.role == role
            )
            return list(session.exec(statement).all())

        return await self._run_session(_get)
