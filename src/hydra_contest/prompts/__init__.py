"""Prompt templates for Hydra arbiter, moderator and Evolutioner calls.

Loads prompts from 'prompts.yaml' in the package directory.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml

PROMPTS_PATH = Path(__file__).parent.parent / "prompts.yaml"

# Characters of baseline / candidate output shown to the arbiter
BASELINE_CHARS = 500
CANDIDATE_CHARS = 1000


def _load_prompts() -> dict[str, str]:
    if not PROMPTS_PATH.exists():
        raise FileNotFoundError(f"Missing prompts file: {PROMPTS_PATH}")

    with open(PROMPTS_PATH, encoding="utf-8") as f:
        data = yaml.safe_load(f)
        if not isinstance(data, dict):
            raise TypeError(f"Invalid prompts file: {PROMPTS_PATH} (must be dict)")
        return data


# Load on import
_PROMPTS = _load_prompts()


def criteria_weights(criteria: Sequence[str]) -> dict[str, int]:
    """Equal integer percentage weight per criterion."""
    if not criteria:
        return {}
    weight = round(100 / len(criteria))
    return {c: weight for c in criteria}


# ==================== Arbiter ====================


def arbiter_system_prompt(role: str) -> str:
    """System prompt for the interview arbiter."""
    return _PROMPTS["arbiter_system"].format(role=role)


def format_test_step(index: int, step: Mapping[str, Any]) -> str:
    """Describe one completed interview test step for the arbiter."""
    baseline = (step.get("baseline") or {}).get("current_value")
    candidate = (step.get("candidate_output") or {}).get("proposed_value")
    return _PROMPTS["arbiter_step"].format(
        index=index,
        competency=step.get("competency", ""),
        task_prompt=step.get("task_prompt", ""),
        baseline=(
            _PROMPTS["arbiter_baseline"].format(value=baseline[:BASELINE_CHARS]) if baseline else ""
        ),
        candidate=(
            _PROMPTS["arbiter_candidate"].format(value=candidate[:CANDIDATE_CHARS])
            if candidate
            else ""
        ),
        elapsed_s=(step.get("elapsed_ms") or 0) / 1000,
        token_count=step.get("token_count") or 0,
    )


def arbiter_user_prompt(
    candidate_model: str,
    steps: Sequence[Mapping[str, Any]],
    criteria: Sequence[str],
) -> str:
    """User prompt asking the arbiter to score completed test steps."""
    weights = criteria_weights(criteria)
    steps_desc = "\n\n---\n\n".join(
        format_test_step(i, step) for i, step in enumerate(steps, start=1)
    )
    criteria_desc = "\n".join(f"- {c} (weight: {weights[c]}%)" for c in criteria)
    score_keys = ", ".join(f'"{c}": <1-10>' for c in criteria)
    return _PROMPTS["arbiter_user"].format(
        candidate_model=candidate_model,
        steps=steps_desc,
        criteria=criteria_desc,
        score_keys=score_keys,
    )


def arbiter_strict_retry_prompt(prompt: str) -> str:
    """Stricter re-ask after an unparseable arbiter answer."""
    return _PROMPTS["arbiter_strict_retry"].format(prompt=prompt)


# ==================== Moderator ====================


def moderator_system_prompt() -> str:
    return _PROMPTS["moderator_system"]


def moderator_user_prompt(
    candidate_model: str,
    role: str,
    avg_score: float,
    recommendation: str,
    comment: str,
    red_flags: Sequence[str],
) -> str:
    """Prompt for the moderator's HR summary of an interview."""
    return _PROMPTS["moderator_user"].format(
        candidate_model=candidate_model,
        role=role,
        avg_score=avg_score,
        recommendation=recommendation,
        comment=comment,
        red_flags=", ".join(red_flags) if red_flags else "none",
    )


# ==================== Evolutioner ====================


def evolutioner_system_prompt() -> str:
    return _PROMPTS["evolutioner_system"]


def discrepancy_direction(user_score: float, arbiter_score: float) -> str:
    """Explain which side scored higher and what that may indicate."""
    delta = abs(user_score - arbiter_score)
    key = "direction_user_higher" if user_score > arbiter_score else "direction_user_lower"
    return _PROMPTS[key].format(delta=delta)


def evolutioner_user_prompt(
    model_id: str,
    user_score: float,
    arbiter_score: float,
    threshold: float,
    round_prompt: str | None,
    round_prompt_chars: int = 300,
) -> str:
    """Prompt asking the Evolutioner for a calibration hypothesis."""
    return _PROMPTS["evolutioner_user"].format(
        model_id=model_id,
        user_score=user_score,
        arbiter_score=arbiter_score,
        delta=abs(user_score - arbiter_score),
        threshold=threshold,
        round_prompt=round_prompt[:round_prompt_chars] if round_prompt else "not specified",
        direction=discrepancy_direction(user_score, arbiter_score),
    )


def chronicle_title(model_id: str, delta: float) -> str:
    return _PROMPTS["chronicle_title"].format(model_short=model_id.split("/")[-1], delta=delta)


def chronicle_summary(user_score: float, arbiter_score: float, delta: float) -> str:
    return _PROMPTS["chronicle_summary"].format(
        user_score=user_score, arbiter_score=arbiter_score, delta=delta
    )


def supervisor_message(model_id: str, delta: float, entry_code: str) -> str:
    return _PROMPTS["supervisor_message"].format(
        model_short=model_id.split("/")[-1], delta=delta, entry_code=entry_code
    )
