"""Pairwise outcome resolution between two models.

Both the round-robin tournament and the Elo scheme reduce a pair of models
to win/draw/loss outcomes by comparing their combined per-round scores.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum


class Outcome(str, Enum):
    """Result of a comparison from the first model's perspective."""

    WIN = "win"
    DRAW = "draw"
    LOSS = "loss"

    @property
    def score(self) -> float:
        """Actual score used by Elo (1.0 / 0.5 / 0.0)."""
        return _ACTUAL_SCORES[self]

    def reverse(self) -> Outcome:
        """Same result seen from the other model's side."""
        if self is Outcome.WIN:
            return Outcome.LOSS
        if self is Outcome.LOSS:
            return Outcome.WIN
        return Outcome.DRAW


_ACTUAL_SCORES = {Outcome.WIN: 1.0, Outcome.DRAW: 0.5, Outcome.LOSS: 0.0}


def compare_scores(score_a: float, score_b: float) -> Outcome:
    """Compare two combined scores; only a strictly higher score wins."""
    if score_a > score_b:
        return Outcome.WIN
    if score_b > score_a:
        return Outcome.LOSS
    return Outcome.DRAW


@dataclass(frozen=True)
class MatchOutcome:
    """Head-to-head result over the rounds two models share.

    Attributes:
        a_round_wins: Rounds where model A scored strictly higher.
        b_round_wins: Rounds where model B scored strictly higher.
        common_rounds: Number of rounds both models were scored in.
        outcome: Overall result from model A's perspective.
    """

    a_round_wins: int
    b_round_wins: int
    common_rounds: int
    outcome: Outcome


def resolve_match(
    a_rounds: Mapping[str, float],
    b_rounds: Mapping[str, float],
) -> MatchOutcome | None:
    """Resolve a head-to-head match from per-round combined scores.

    Args:
        a_rounds: Round ID to combined score for model A.
        b_rounds: Round ID to combined score for model B.

    Returns:
        MatchOutcome, or None if the models share no round.
    """
    a_wins = b_wins = common = 0
    for round_id, a_score in a_rounds.items():
        b_score = b_rounds.get(round_id)
        if b_score is None:
            continue
        common += 1
        result = compare_scores(a_score, b_score)
        if result is Outcome.WIN:
            a_wins += 1
        elif result is Outcome.LOSS:
            b_wins += 1

    if common == 0:
        return None

    return MatchOutcome(
        a_round_wins=a_wins,
        b_round_wins=b_wins,
        common_rounds=common,
        outcome=compare_scores(a_wins, b_wins),
    )
