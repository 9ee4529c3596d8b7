"""Contest result recording with discrepancy escalation."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import structlog

from hydra_contest.core.config import HydraConfig, ScoringScheme
from hydra_contest.core.errors import ContestResultNotFoundError, DiscrepancyError
from hydra_contest.models import ContestResult
from hydra_contest.services.discrepancy import DiscrepancyOutcome, DiscrepancyTrigger
from hydra_contest.services.llm import LLMClient
from hydra_contest.services.scoring import ScoredModel, compute_scores
from hydra_contest.services.storage import HydraStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class ScoreUpdate:
    """Stored result after a score change.

    Attributes:
        result: Result as persisted.
        discrepancy: Outcome of the discrepancy check; None when a score is
            still missing or the check failed.
    """

    result: ContestResult
    discrepancy: DiscrepancyOutcome | None = None


class ContestService:
    """Persist contest results and keep user and arbiter scores calibrated."""

    def __init__(self, config: HydraConfig, store: HydraStore, client: LLMClient) -> None:
        self.config = config
        self.store = store
        self.trigger = DiscrepancyTrigger(config.discrepancy, store, client)

    async def record_results(self, results: Sequence[ContestResult]) -> None:
        await self.store.contests.save_results(results)
        logger.info("contest_results_saved", count=len(results))

    async def record_scores(
        self,
        result_id: str,
        scores: Mapping[str, Any],
        round_prompt: str | None = None,
    ) -> ScoreUpdate:
        """Store new scores for a result, then check for a score discrepancy.

        The check runs once both the user and the arbiter score are set. It
        is best effort: a failed escalation is logged and the stored scores
        are kept.

        Args:
            result_id: Contest result ID.
            scores: Any of ``user_score``, ``arbiter_score`` and
                ``criteria_scores``; omitted fields are left untouched.
            round_prompt: Round prompt shown to the Evolutioner.

        Returns:
            ScoreUpdate with the stored result and the discrepancy outcome.

        Raises:
            ContestResultNotFoundError: If the result does not exist.
        """
        result = await self.store.contests.update_scores(result_id, **scores)
        if result is None:
            raise ContestResultNotFoundError(result_id)

        if result.user_score is None or result.arbiter_score is None:
            return ScoreUpdate(result)

        try:
            outcome = await self.trigger.check(
                result.id,
                result.model_id,
                result.user_score,
                result.arbiter_score,
                session_id=result.session_id,
                round_prompt=round_prompt,
            )
        except DiscrepancyError as e:
            logger.warning("discrepancy_check_failed", result_id=result_id, error=str(e))
            return ScoreUpdate(result)
        return ScoreUpdate(result, outcome)

    async def scoreboard(
        self,
        session_id: str,
        scheme: ScoringScheme | None = None,
        user_weight: int | None = None,
    ) -> list[ScoredModel]:
        """Rank the models of one stored contest."""
        scoring = self.config.scoring
        results = await self.store.contests.list_results(session_id)
        return compute_scores(
            results,
            scheme or scoring.scheme,
            scoring.user_weight if user_weight is None else user_weight,
            initial_rating=scoring.elo_initial,
            k_factor=scoring.k_factor,
        )
