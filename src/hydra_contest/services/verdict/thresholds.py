"""Dynamic hire thresholds derived from a role's assignment history."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from hydra_contest.models import CurrentHolder, Decision, RoleAssignment, VerdictThresholds

# Closed assignments averaged into the "previous holders" baseline
PREVIOUS_HOLDERS = 2


def candidate_score(scores: Mapping[str, float]) -> float:
    """Mean criterion score rounded to one decimal (0 without scores)."""
    values = list(scores.values())
    if not values:
        return 0.0
    return round(sum(values) / len(values), 1)


def compute_thresholds(
    history: Sequence[RoleAssignment],
    candidate_model: str,
    score: float,
) -> VerdictThresholds:
    """Compare a candidate with the current and previous holders of a role.

    Args:
        history: Recent assignments for the role, newest first.
        candidate_model: Model being interviewed.
        score: Candidate's average arbiter score.

    Returns:
        VerdictThresholds for the automatic decision.
    """
    current = next((h for h in history if h.removed_at is None), None)
    previous = [h for h in history if h.removed_at is not None][:PREVIOUS_HOLDERS]
    previous_scores = [float(h.interview_avg_score or 0) for h in previous]

    holder = None
    if current is not None:
        holder = CurrentHolder(
            model_id=current.model_id,
            score=float(current.interview_avg_score or 0),
        )

    return VerdictThresholds(
        current_holder=holder,
        previous_avg=sum(previous_scores) / len(previous_scores) if previous_scores else None,
        candidate_score=score,
        is_same_model=current is not None and current.model_id == candidate_model,
        is_cold_start=current is None,
    )


def auto_decide(thresholds: VerdictThresholds) -> tuple[Decision, str]:
    """Automatic decision and its human-readable reason.

    - no current holder: hire (cold start)
    - beats the current holder: hire (upskilling or replacement)
    - below the previous holders' average: reject
    - otherwise: retest
    """
    score = thresholds.candidate_score
    holder = thresholds.current_holder

    if thresholds.is_cold_start or holder is None:
        return "hire", "Cold start: no current holder. Recommending hire."

    if score > holder.score:
        if thresholds.is_same_model:
            kind = "Same model: upskilling."
        else:
            kind = "Different model: replacement."
        return "hire", f"Score {score} exceeds current holder ({holder.score}). {kind}"

    if thresholds.previous_avg is not None and score < thresholds.previous_avg:
        return (
            "reject",
            f"Score {score} below average of previous holders ({thresholds.previous_avg:.1f}).",
        )

    return (
        "retest",
        f"Score {score} <= current ({holder.score}), but >= previous. Recommending retest.",
    )
