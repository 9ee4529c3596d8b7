"""Database persistence for judged contest results."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlmodel import Session, col, select

from hydra_contest.models import ContestResult

from .repository import AsyncRepository

_UNSET: Any = object()


class ContestRepository(AsyncRepository):
    """Persist and query contest results."""

    async def save_results(self, results: Sequence[ContestResult]) -> None:
        def _save(session: Session) -> None:
            session.add_all(results)
            session.commit()

        await self._run_session(_save)

    async def list_results(self, session_id: str) -> list[ContestResult]:
        """All results of one contest in insertion order."""

        def _get(session: Session) -> list[ContestResult]:
            statement = (
                select(ContestResult)
                .where(ContestResult.session_id == session_id)
                .order_by(col(ContestResult.created_at))
            )
            return list(session.exec(statement).all())

        return await self._run_session(_get)

    async def update_scores(
        self,
        result_id: str,
        user_score: float | None = _UNSET,
        arbiter_score: float | None = _UNSET,
        criteria_scores: dict[str, Any] | None = _UNSET,
    ) -> ContestResult | None:
        """Correct the scores of one result; omitted fields are left untouched."""

        def _update(session: Session) -> ContestResult | None:
            result = session.get(ContestResult, result_id)
            if result is None:
                return None
            if user_score is not _UNSET:
                result.user_score = user_score
            if arbiter_score is not _UNSET:
                result.arbiter_score = arbiter_score
            if criteria_scores is not _UNSET:
                result.criteria_scores = criteria_scores
            session.add(result)
            session.commit()
            session.refresh(result)
            return result

        return await self._run_session(_update)
