"""Escalate large user/arbiter score gaps to the chronicles.

When a user and the arbiter disagree on a contest response by at least the
configured threshold, the Evolutioner is asked for a calibration hypothesis,
a ``HYDRA-EVO-NNN`` chronicle entry is recorded and every supervisor is
notified.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx
import structlog

from hydra_contest.core.config import DiscrepancyConfig
from hydra_contest.core.errors import DiscrepancyError
from hydra_contest.models import ChronicleEntry
from hydra_contest.prompts import (
    chronicle_summary,
    chronicle_title,
    evolutioner_system_prompt,
    evolutioner_user_prompt,
    supervisor_message,
)
from hydra_contest.services.llm import LLMClient, MalformedResponseError
from hydra_contest.services.storage import HydraStore

logger = structlog.get_logger()

TRIGGER = "contest_discrepancy"
ROLE_OBJECT = "contest-arbiter: criteria and weights configuration"
INITIATOR = "Evolutioner (auto-run on contest score discrepancy)"


@dataclass(frozen=True)
class DiscrepancyOutcome:
    """Result of a discrepancy check.

    Attributes:
        triggered: Whether the gap reached the threshold.
        delta: Absolute user/arbiter score gap.
        threshold: Threshold in effect.
        entry_code: Chronicle entry code (triggered only).
        chronicle_id: Chronicle entry ID (triggered only).
        hypothesis: Evolutioner hypothesis (triggered only).
        existing: True when the chronicle was raised by an earlier check.
    """

    triggered: bool
    delta: float
    threshold: float
    entry_code: str | None = None
    chronicle_id: str | None = None
    hypothesis: str | None = None
    existing: bool = False


def score_delta(user_score: float, arbiter_score: float) -> float:
    return abs(user_score - arbiter_score)


def exceeds_threshold(user_score: float, arbiter_score: float, threshold: float) -> bool:
    """True when the gap is at least ``threshold``."""
    return score_delta(user_score, arbiter_score) >= threshold


class DiscrepancyTrigger:
    """Check contest results for user/arbiter disagreement."""

    def __init__(self, config: DiscrepancyConfig, store: HydraStore, client: LLMClient) -> None:
        self.config = config
        self.store = store
        self.client = client

    async def check(
        self,
        result_id: str,
        model_id: str,
        user_score: float | None,
        arbiter_score: float | None,
        session_id: str | None = None,
        round_prompt: str | None = None,
    ) -> DiscrepancyOutcome:
        """Escalate one contest result if its scores disagree enough.

        Args:
            result_id: Contest result being checked.
            model_id: Model that produced the response.
            user_score: Human score (0-10).
            arbiter_score: Arbiter score (0-10).
            session_id: Contest session, recorded in the chronicle.
            round_prompt: Round prompt shown to the Evolutioner.

        Returns:
            DiscrepancyOutcome; ``triggered`` is False below the threshold.

        Raises:
            ValueError: If either score is missing.
            DiscrepancyError: If the Evolutioner request fails or gives no hypothesis.
        """
        if user_score is None or arbiter_score is None:
            msg = "Both user_score and arbiter_score are required"
            raise ValueError(msg)

        threshold = self.config.threshold
        delta = score_delta(user_score, arbiter_score)
        if delta < threshold:
            return DiscrepancyOutcome(triggered=False, delta=delta, threshold=threshold)

        existing = await self.store.chronicles.find_by_result(result_id)
        if existing is not None:
            return self._already_recorded(existing, delta, threshold)

        hypothesis = await self._hypothesis(model_id, user_score, arbiter_score, round_prompt)

        prefix = self.config.entry_prefix
        entry = ChronicleEntry(
            entry_code="",
            title=chronicle_title(model_id, delta),
            role_object=ROLE_OBJECT,
            initiator=INITIATOR,
            source_result_id=result_id,
            hypothesis=hypothesis,
            metrics_before={
                "user_score": user_score,
                "arbiter_score": arbiter_score,
                "delta": round(delta, 2),
                "model_id": model_id,
                "session_id": session_id,
                "result_id": result_id,
                "trigger": TRIGGER,
            },
            metrics_after={
                "target_delta": f"< {threshold}",
                "description": "Expect the user/arbiter score gap to shrink",
            },
            summary=chronicle_summary(user_score, arbiter_score, delta),
        )
        entry, created = await self.store.chronicles.create_entry(
            entry, lambda code: supervisor_message(model_id, delta, code), prefix
        )
        if not created:
            return self._already_recorded(entry, delta, threshold)

        logger.info(
            "discrepancy_recorded",
            entry_code=entry.entry_code,
            model_id=model_id,
            delta=round(delta, 2),
        )
        return DiscrepancyOutcome(
            triggered=True,
            delta=delta,
            threshold=threshold,
            entry_code=entry.entry_code,
            chronicle_id=entry.id,
            hypothesis=hypothesis,
        )

    def _already_recorded(
        self, entry: ChronicleEntry, delta: float, threshold: float
    ) -> DiscrepancyOutcome:
        logger.debug(
            "discrepancy_already_recorded",
            result_id=entry.source_result_id,
            entry=entry.entry_code,
        )
        return DiscrepancyOutcome(
            triggered=True,
            delta=delta,
            threshold=threshold,
            entry_code=entry.entry_code,
            chronicle_id=entry.id,
            hypothesis=entry.hypothesis,
            existing=True,
        )

    async def _hypothesis(
        self,
        model_id: str,
        user_score: float,
        arbiter_score: float,
        round_prompt: str | None,
    ) -> str:
        messages = [
            {"role": "system", "content": evolutioner_system_prompt()},
            {
                "role": "user",
                "content": evolutioner_user_prompt(
                    model_id,
                    user_score,
                    arbiter_score,
                    self.config.threshold,
                    round_prompt,
                    self.config.round_prompt_chars,
                ),
            },
        ]
        try:
            response = await self.client.complete(
                self.config.evolutioner_model,
                messages,
                self.config.max_tokens,
                self.config.temperature,
            )
        except (httpx.HTTPError, MalformedResponseError) as e:
            msg = f"Evolutioner request failed: {e}"
            raise DiscrepancyError(msg) from e

        hypothesis = response.content.strip()
        if not hypothesis:
            msg = "Evolutioner did not return a hypothesis"
            raise DiscrepancyError(msg)
        return hypothesis
