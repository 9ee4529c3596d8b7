"""Round-robin tournament standings with football-style points."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from hydra_contest.ranking.pairwise import Outcome, resolve_match

WIN_POINTS = 3
DRAW_POINTS = 1


@dataclass
class TournamentStanding:
    """Win/draw/loss record of one model."""

    wins: int = 0
    draws: int = 0
    losses: int = 0

    @property
    def points(self) -> int:
        return self.wins * WIN_POINTS + self.draws * DRAW_POINTS

    def record(self, outcome: Outcome) -> None:
        if outcome is Outcome.WIN:
            self.wins += 1
        elif outcome is Outcome.LOSS:
            self.losses += 1
        else:
            self.draws += 1


def round_robin(
    round_scores: Mapping[str, Mapping[str, float]],
) -> dict[str, TournamentStanding]:
    """Play every unordered pair of models once.

    A pair's match goes to the model that won more of their common rounds;
    pairs without a common round are not counted.

    Args:
        round_scores: Model ID to (round ID to combined score), in model order.

    Returns:
        Standing per model, keyed in the same order as ``round_scores``.
    """
    model_ids = list(round_scores)
    standings = {mid: TournamentStanding() for mid in model_ids}

    for i, model_a in enumerate(model_ids):
        for model_b in model_ids[i + 1 :]:
            match = resolve_match(round_scores[model_a], round_scores[model_b])
            if match is None:
                continue
            standings[model_a].record(match.outcome)
            standings[model_b].record(match.outcome.reverse())

    return standings
