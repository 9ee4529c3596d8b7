"""Arbiter and moderator calls for interview verdicts.

The arbiter is a pluggable judge: anything implementing ``ArbiterJudge``
can score an interview. ``LLMArbiterJudge`` asks an LLM for a JSON
assessment, tries fallback models in order, and settles on a neutral
"retest" assessment when every model fails.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import httpx
import structlog
from pydantic import ValidationError

from hydra_contest.models import ArbiterAssessment, VerdictArbiter
from hydra_contest.prompts import (
    arbiter_strict_retry_prompt,
    arbiter_system_prompt,
    arbiter_user_prompt,
    moderator_system_prompt,
    moderator_user_prompt,
)
from hydra_contest.services.llm import LLMClient, MalformedResponseError

logger = structlog.get_logger()

NEUTRAL_SCORE = 5.0
NEUTRAL_CONFIDENCE = 0.1


@dataclass(frozen=True)
class ArbiterRequest:
    """Everything an arbiter needs to score one interview.

    Attributes:
        role: Role the candidate is interviewing for.
        candidate_model: Candidate model ID.
        steps: Completed test steps (task, baseline, candidate output).
        criteria: Criteria to score, 1-10 each.
        models: Arbiter models to try, in order.
    """

    role: str
    candidate_model: str
    steps: Sequence[Mapping[str, Any]]
    criteria: Sequence[str]
    models: Sequence[str] = field(default_factory=tuple)


@runtime_checkable
class ArbiterJudge(Protocol):
    """Scores an interview and recommends hire, reject or retest."""

    async def evaluate(self, request: ArbiterRequest) -> VerdictArbiter: ...


def parse_assessment(response: str) -> ArbiterAssessment:
    """Parse arbiter response JSON.

    Args:
        response: Raw response string (may contain markdown).

    Returns:
        Parsed ArbiterAssessment.

    Raises:
        ValueError: If parsing fails.
    """
    json_text = response.strip()

    # Remove markdown code blocks if present
    if "```" in json_text:
        match = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", json_text)
        if match:
            json_text = match.group(1)

    match = re.search(r"\{[\s\S]*\}", json_text)
    if match:
        json_text = match.group(0)

    try:
        data = json.loads(json_text)
        return ArbiterAssessment.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        msg = f"Failed to parse arbiter response: {e}"
        raise ValueError(msg) from e


def repair_json(broken_json: str) -> str:
    """Attempt lightweight JSON repair (trailing commas, bare keys, quotes)."""
    text = broken_json.strip()
    text = re.sub(r",\s*([\}\]])", r"\1", text)
    text = re.sub(r"(\{|,)\s*(\w+)\s*:", r'\1"\2":', text)
    return text.replace("'", '"')


def _parse_with_repair(response: str) -> ArbiterAssessment:
    try:
        return parse_assessment(response)
    except ValueError:
        return parse_assessment(repair_json(response))


def neutral_assessment(model: str, criteria: Sequence[str], error: str) -> VerdictArbiter:
    """Assessment used when no arbiter could be reached or parsed."""
    return VerdictArbiter(
        model=model,
        scores={c: NEUTRAL_SCORE for c in criteria},
        red_flags=[f"Arbiter error: {error}"],
        recommendation="retest",
        confidence=NEUTRAL_CONFIDENCE,
        comment="Error during arbiter evaluation.",
    )


class LLMArbiterJudge:
    """Arbiter judge backed by an LLM with a fallback model chain."""

    def __init__(
        self,
        client: LLMClient,
        max_tokens: int = 1500,
        temperature: float = 0.2,
    ) -> None:
        self.client = client
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def evaluate(self, request: ArbiterRequest) -> VerdictArbiter:
        """Score the interview with the first arbiter model that answers.

        Args:
            request: ArbiterRequest with steps, criteria and model chain.

        Returns:
            VerdictArbiter; a neutral retest assessment if every model fails.
        """
        if not request.models:
            msg = "At least one arbiter model is required"
            raise ValueError(msg)

        messages = [
            {"role": "system", "content": arbiter_system_prompt(request.role)},
            {
                "role": "user",
                "content": arbiter_user_prompt(
                    request.candidate_model, request.steps, request.criteria
                ),
            },
        ]

        last_error = "no arbiter response"
        for model in request.models:
            try:
                assessment = await self._assess(model, messages)
            except (httpx.HTTPError, ValueError) as e:
                last_error = str(e)
                logger.warning("arbiter_fallback", failed_model=model, error=last_error[:200])
                continue
            return VerdictArbiter(model=model, **assessment.model_dump())

        logger.error("arbiter_failed", models=list(request.models), error=last_error[:200])
        return neutral_assessment(request.models[0], request.criteria, last_error)

    async def _assess(self, model: str, messages: list[dict[str, str]]) -> ArbiterAssessment:
        """One model: plain request, then a strict re-ask with JSON repair."""
        response = await self.client.complete(model, messages, self.max_tokens, self.temperature)
        try:
            return parse_assessment(response.content)
        except ValueError:
            logger.warning("arbiter_parse_failed", model=model, retrying=True)

        strict = [
            messages[0],
            {"role": "user", "content": arbiter_strict_retry_prompt(messages[1]["content"])},
        ]
        response = await self.client.complete(model, strict, self.max_tokens, self.temperature)
        return _parse_with_repair(response.content)


async def summarize_interview(
    client: LLMClient,
    model: str,
    role: str,
    candidate_model: str,
    avg_score: float,
    arbiter: VerdictArbiter,
    max_tokens: int = 2048,
    temperature: float = 0.3,
) -> str:
    """Moderator's short HR summary; falls back to the arbiter comment."""
    messages = [
        {"role": "system", "content": moderator_system_prompt()},
        {
            "role": "user",
            "content": moderator_user_prompt(
                candidate_model,
                role,
                avg_score,
                arbiter.recommendation,
                arbiter.comment,
                arbiter.red_flags,
            ),
        },
    ]
    try:
        response = await client.complete(model, messages, max_tokens, temperature)
    except (httpx.HTTPError, MalformedResponseError) as e:
        logger.warning("moderator_failed", model=model, error=str(e)[:200])
        return arbiter.comment

    return response.content.strip() or arbiter.comment
