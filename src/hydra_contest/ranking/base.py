"""Base protocol for rating systems used by contest scoring."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from hydra_contest.ranking.pairwise import Outcome


@runtime_checkable
class RankingSystem(Protocol):
    """Protocol for pairwise rating algorithms.

    Implementations must provide methods for updating ratings after a
    pairwise comparison and retrieving current standings.
    """

    def initialize(self, model_ids: Sequence[str]) -> None:
        """Initialize ratings for all models.

        Args:
            model_ids: List of unique model identifiers.
        """
        ...

    def update(self, model_a: str, model_b: str, outcome: Outcome) -> tuple[float, float]:
        """Update ratings after a comparison.

        Args:
            model_a: ID of the first model.
            model_b: ID of the second model.
            outcome: Result from model A's perspective.

        Returns:
            Tuple of (new_rating_a, new_rating_b).
        """
        ...

    def get_rating(self, model_id: str) -> float:
        """Get current rating for a model."""
        ...

    def get_stats(self, model_id: str) -> dict[str, int]:
        """Get comparison statistics for a model.

        Returns:
            Dict with 'matches', 'wins', 'draws', 'losses' keys.
        """
        ...

    def get_leaderboard(self) -> list[tuple[str, float, int, int]]:
        """Get sorted leaderboard.

        Returns:
            List of (model_id, rating, wins, losses) tuples,
            sorted by rating descending.
        """
        ...
