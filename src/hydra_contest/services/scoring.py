"""Contest scoring: weighted average, round-robin tournament and Elo.

All schemes operate on already judged ContestResult rows and never call an
LLM. A missing user or arbiter score contributes 0 to the user/arbiter
blend in every scheme; per-model averages ignore missing scores.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import asdict, dataclass, field
from numbers import Real
from typing import Any

import structlog

from hydra_contest.core.config import ScoringScheme
from hydra_contest.models import ContestResult
from hydra_contest.ranking import (
    ELO_INITIAL,
    ELO_K,
    EloSystem,
    compare_scores,
    round_robin,
)

logger = structlog.get_logger()

SCHEMES: tuple[ScoringScheme, ...] = ("weighted-avg", "tournament", "elo")


@dataclass
class ScoredModel:
    """Aggregate contest standing for one model.

    Attributes:
        model_id: Model identifier.
        final_score: Scheme-specific score used for ranking.
        rank: 1-based position by descending final_score.
        avg_user: Mean user score, or None if never rated by the user.
        avg_arbiter: Mean arbiter score, or None if never rated by the arbiter.
        details: Scheme-specific breakdown (weighted_total; wins/draws/losses/
            tournament_points; elo_rating/elo_initial).
        criteria_avg: Mean per criterion over all contest criteria keys.
    """

    model_id: str
    final_score: float
    rank: int = 0
    avg_user: float | None = None
    avg_arbiter: float | None = None
    details: dict[str, float] = field(default_factory=dict)
    criteria_avg: dict[str, float | None] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ==================== Helpers ====================


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _avg_or_none(values: Sequence[float]) -> float | None:
    return sum(values) / len(values) if values else None


def _clamp_weight(user_weight: int | float) -> float:
    return max(0.0, min(100.0, float(user_weight)))


def round_half_up(value: float) -> int:
    """Round to the nearest integer; halves round up."""
    return math.floor(value + 0.5)


def blend_scores(
    user_score: float | None,
    arbiter_score: float | None,
    user_weight: float,
) -> float | None:
    """Blend user and arbiter scores by percentage weight.

    Args:
        user_score: Human score (0-10) or None.
        arbiter_score: Arbiter score (0-10) or None.
        user_weight: Percentage weight of the user score (0-100).

    Returns:
        Combined score, or None when neither score is present. A single
        missing score counts as 0.
    """
    if user_score is None and arbiter_score is None:
        return None
    arbiter_weight = 100 - user_weight
    return (user_score or 0.0) * (user_weight / 100) + (arbiter_score or 0.0) * (
        arbiter_weight / 100
    )


def group_by_model(results: Sequence[ContestResult]) -> dict[str, list[ContestResult]]:
    """Group results by model ID, keeping first-appearance order."""
    grouped: dict[str, list[ContestResult]] = {}
    for r in results:
        grouped.setdefault(r.model_id, []).append(r)
    return grouped


def collect_criteria_keys(results: Sequence[ContestResult]) -> list[str]:
    """Union of criteria names across results, in first-occurrence order."""
    keys: dict[str, None] = {}
    for r in results:
        if isinstance(r.criteria_scores, dict):
            for key in r.criteria_scores:
                keys.setdefault(key, None)
    return list(keys)


def model_avg_scores(model_results: Sequence[ContestResult]) -> tuple[float | None, float | None]:
    """Mean user and arbiter scores, ignoring missing values."""
    user = [r.user_score for r in model_results if r.user_score is not None]
    arbiter = [r.arbiter_score for r in model_results if r.arbiter_score is not None]
    return _avg_or_none(user), _avg_or_none(arbiter)


def model_criteria_avg(
    model_results: Sequence[ContestResult], criteria_keys: Sequence[str]
) -> dict[str, float | None]:
    """Mean of each criterion; non-numeric and missing entries are skipped."""
    averages: dict[str, float | None] = {}
    for key in criteria_keys:
        values = [
            float(r.criteria_scores[key])
            for r in model_results
            if isinstance(r.criteria_scores, dict) and _is_number(r.criteria_scores.get(key))
        ]
        averages[key] = _avg_or_none(values)
    return averages


def model_round_scores(
    model_results: Sequence[ContestResult], user_weight: float
) -> dict[str, float]:
    """Combined score per round for one model (last result wins on duplicates)."""
    rounds: dict[str, float] = {}
    for r in model_results:
        combined = blend_scores(r.user_score, r.arbiter_score, user_weight)
        if combined is not None:
            rounds[r.round_id] = combined
    return rounds


def round_order(results: Sequence[ContestResult]) -> list[str]:
    """Order in which rounds are replayed.

    Uses the explicit round_index when every result carries one, otherwise
    the order in which round IDs first appear.
    """
    first_seen: dict[str, int] = {}
    for r in results:
        first_seen.setdefault(r.round_id, len(first_seen))

    if results and all(r.round_index is not None for r in results):
        index: dict[str, int] = {}
        for r in results:
            index[r.round_id] = min(index.get(r.round_id, r.round_index), r.round_index)
        return sorted(first_seen, key=lambda rid: (index[rid], first_seen[rid]))

    return list(first_seen)


def assign_ranks(models: Sequence[ScoredModel]) -> list[ScoredModel]:
    """Sort descending by final_score and assign 1-based ranks.

    Ties keep their input order (stable sort); no secondary key is applied.
    """
    ranked = sorted(models, key=lambda m: m.final_score, reverse=True)
    for position, model in enumerate(ranked, start=1):
        model.rank = position
    return ranked


def _base_model(
    model_id: str,
    model_results: Sequence[ContestResult],
    criteria_keys: Sequence[str],
    final_score: float,
    details: dict[str, float],
) -> ScoredModel:
    avg_user, avg_arbiter = model_avg_scores(model_results)
    return ScoredModel(
        model_id=model_id,
        final_score=final_score,
        avg_user=avg_user,
        avg_arbiter=avg_arbiter,
        details=details,
        criteria_avg=model_criteria_avg(model_results, criteria_keys),
    )


# ==================== Schemes ====================


def compute_weighted_avg(
    results: Sequence[ContestResult],
    user_weight: float,
    criteria_keys: Sequence[str],
) -> list[ScoredModel]:
    """Linear blend of each model's average user and arbiter scores."""
    models = []
    for model_id, mrs in group_by_model(results).items():
        avg_user, avg_arbiter = model_avg_scores(mrs)
        weighted_total = blend_scores(avg_user, avg_arbiter, user_weight)
        models.append(
            _base_model(
                model_id,
                mrs,
                criteria_keys,
                final_score=weighted_total if weighted_total is not None else 0.0,
                details={"weighted_total": weighted_total or 0.0},
            )
        )
    return assign_ranks(models)


def compute_tournament(
    results: Sequence[ContestResult],
    user_weight: float,
    criteria_keys: Sequence[str],
) -> list[ScoredModel]:
    """Round-robin of head-to-head matches decided by per-round wins."""
    grouped = group_by_model(results)
    standings = round_robin(
        {mid: model_round_scores(mrs, user_weight) for mid, mrs in grouped.items()}
    )

    models = []
    for model_id, mrs in grouped.items():
        s = standings[model_id]
        models.append(
            _base_model(
                model_id,
                mrs,
                criteria_keys,
                final_score=s.points,
                details={
                    "wins": s.wins,
                    "draws": s.draws,
                    "losses": s.losses,
                    "tournament_points": s.points,
                },
            )
        )
    return assign_ranks(models)


def compute_elo(
    results: Sequence[ContestResult],
    user_weight: float,
    criteria_keys: Sequence[str],
    initial_rating: float = ELO_INITIAL,
    k_factor: float = ELO_K,
) -> list[ScoredModel]:
    """Replay every round as pairwise Elo comparisons between its participants."""
    grouped = group_by_model(results)
    model_ids = list(grouped)
    round_scores = {mid: model_round_scores(mrs, user_weight) for mid, mrs in grouped.items()}

    elo = EloSystem(initial_rating=initial_rating, k_factor=k_factor)
    elo.initialize(model_ids)

    for round_id in round_order(results):
        participants = [
            (mid, round_scores[mid][round_id]) for mid in model_ids if round_id in round_scores[mid]
        ]
        for i, (model_a, score_a) in enumerate(participants):
            for model_b, score_b in participants[i + 1 :]:
                elo.update(model_a, model_b, compare_scores(score_a, score_b))

    models = []
    for model_id, mrs in grouped.items():
        elo_rating = round_half_up(elo.get_rating(model_id))
        models.append(
            _base_model(
                model_id,
                mrs,
                criteria_keys,
                final_score=elo_rating,
                details={"elo_rating": elo_rating, "elo_initial": initial_rating},
            )
        )
    return assign_ranks(models)


def compute_scores(
    results: Sequence[ContestResult],
    scheme: ScoringScheme = "weighted-avg",
    user_weight: int | float = 50,
    initial_rating: float = ELO_INITIAL,
    k_factor: float = ELO_K,
) -> list[ScoredModel]:
    """Aggregate contest results into a ranked list of models.

    Args:
        results: Judged results across all rounds and models of one contest.
        scheme: "weighted-avg", "tournament" or "elo". Unknown schemes fall
            back to weighted-avg.
        user_weight: Percentage weight of user scores (0-100, clamped).
        initial_rating: Elo starting rating.
        k_factor: Elo K-factor.

    Returns:
        One ScoredModel per distinct model ID, ranked; empty for no results.
    """
    if not results:
        return []

    weight = _clamp_weight(user_weight)
    criteria_keys = collect_criteria_keys(results)

    if scheme == "tournament":
        scored = compute_tournament(results, weight, criteria_keys)
    elif scheme == "elo":
        scored = compute_elo(results, weight, criteria_keys, initial_rating, k_factor)
    else:
        if scheme != "weighted-avg":
            logger.warning("unknown_scoring_scheme", scheme=scheme, fallback="weighted-avg")
        scored = compute_weighted_avg(results, weight, criteria_keys)

    logger.debug("contest_scored", scheme=scheme, models=len(scored), results=len(results))
    return scored
