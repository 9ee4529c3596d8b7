"""Elo rating calculations for contest scoring."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from hydra_contest.ranking.pairwise import Outcome

ELO_INITIAL = 1500.0
ELO_K = 32.0


@dataclass
class EloRating:
    """Tracks Elo rating for a model.

    Attributes:
        rating: Current Elo rating.
        matches: Number of pairwise comparisons played.
        wins: Number of wins.
        draws: Number of draws.
        losses: Number of losses.
        history: Ratings held before each comparison.
    """

    rating: float = ELO_INITIAL
    matches: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    history: list[float] = field(default_factory=list)

    def record_match(self, new_rating: float, outcome: Outcome) -> None:
        """Record a comparison result.

        Args:
            new_rating: New Elo rating after the comparison.
            outcome: Result from this model's perspective.
        """
        self.history.append(self.rating)
        self.rating = new_rating
        self.matches += 1
        if outcome is Outcome.WIN:
            self.wins += 1
        elif outcome is Outcome.LOSS:
            self.losses += 1
        else:
            self.draws += 1


def calculate_expected_win_chance(rating_a: float, rating_b: float) -> float:
    """Calculate expected score for player A against player B.

    Uses the standard Elo formula:
    E_A = 1 / (1 + 10^((R_B - R_A) / 400))

    Args:
        rating_a: Rating of player A.
        rating_b: Rating of player B.

    Returns:
        Expected score of A (0.0 to 1.0).
    """
    return 1.0 / (1.0 + 10 ** ((rating_b - rating_a) / 400))


def update_elo(
    rating_a: float,
    rating_b: float,
    actual_a: float,
    k_factor: float = ELO_K,
) -> tuple[float, float]:
    """Update Elo ratings after a comparison.

    Args:
        rating_a: Current rating of model A.
        rating_b: Current rating of model B.
        actual_a: Actual score of A (1.0 win, 0.5 draw, 0.0 loss).
        k_factor: K-factor for updates.

    Returns:
        Tuple of (new_rating_a, new_rating_b).
    """
    expected_a = calculate_expected_win_chance(rating_a, rating_b)
    expected_b = 1.0 - expected_a
    actual_b = 1.0 - actual_a

    new_rating_a = rating_a + k_factor * (actual_a - expected_a)
    new_rating_b = rating_b + k_factor * (actual_b - expected_b)

    return new_rating_a, new_rating_b


class EloSystem:
    """Elo ranking system implementing the RankingSystem protocol.

    Updates are applied immediately, so a later comparison inside the same
    round sees the ratings produced by earlier ones.

    Attributes:
        initial_rating: Starting Elo rating for new models.
        k_factor: K-factor for rating adjustments.
    """

    def __init__(
        self,
        initial_rating: float = ELO_INITIAL,
        k_factor: float = ELO_K,
    ) -> None:
        self.initial_rating = initial_rating
        self.k_factor = k_factor
        self._ratings: dict[str, EloRating] = {}

    def initialize(self, model_ids: Sequence[str]) -> None:
        """Initialize ratings for all models.

        Args:
            model_ids: List of unique model identifiers.
        """
        self._ratings = {mid: EloRating(rating=self.initial_rating) for mid in model_ids}

    def update(self, model_a: str, model_b: str, outcome: Outcome) -> tuple[float, float]:
        """Update ratings after a comparison.

        Args:
            model_a: ID of the first model.
            model_b: ID of the second model.
            outcome: Result from model A's perspective.

        Returns:
            Tuple of (new_rating_a, new_rating_b).
        """
        new_a, new_b = update_elo(
            self._ratings[model_a].rating,
            self._ratings[model_b].rating,
            actual_a=outcome.score,
            k_factor=self.k_factor,
        )

        self._ratings[model_a].record_match(new_a, outcome)
        self._ratings[model_b].record_match(new_b, outcome.reverse())

        return new_a, new_b

    def get_rating(self, model_id: str) -> float:
        return self._ratings[model_id].rating

    def get_stats(self, model_id: str) -> dict[str, int]:
        r = self._ratings[model_id]
        return {"matches": r.matches, "wins": r.wins, "draws": r.draws, "losses": r.losses}

    def get_leaderboard(self) -> list[tuple[str, float, int, int]]:
        """Get sorted leaderboard.

        Returns:
            List of (model_id, rating, wins, losses) tuples,
            sorted by rating descending.
        """
        entries = [(mid, r.rating, r.wins, r.losses) for mid, r in self._ratings.items()]
        return sorted(entries, key=lambda x: x[1], reverse=True)

    def get_rating_object(self, model_id: str) -> EloRating:
        """Get the full EloRating object for a model."""
        return self._ratings[model_id]
