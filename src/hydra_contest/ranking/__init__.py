"""Ranking module for Hydra contests.

Provides pairwise outcome resolution, a round-robin tournament table and an
Elo rating system.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from hydra_contest.ranking.base import RankingSystem
from hydra_contest.ranking.elo import (
    ELO_INITIAL,
    ELO_K,
    EloRating,
    EloSystem,
    calculate_expected_win_chance,
    update_elo,
)
from hydra_contest.ranking.pairwise import MatchOutcome, Outcome, compare_scores, resolve_match
from hydra_contest.ranking.tournament import TournamentStanding, round_robin

if TYPE_CHECKING:
    from hydra_contest.core.config import ScoringConfig


def create_ranking_system(config: ScoringConfig) -> RankingSystem:
    """Create the Elo system configured for contest scoring.

    Args:
        config: Scoring configuration.

    Returns:
        Configured ranking system.
    """
    return EloSystem(initial_rating=config.elo_initial, k_factor=config.k_factor)


__all__ = [
    "ELO_INITIAL",
    "ELO_K",
    "EloRating",
    "EloSystem",
    "MatchOutcome",
    "Outcome",
    "RankingSystem",
    "TournamentStanding",
    "calculate_expected_win_chance",
    "compare_scores",
    "create_ranking_system",
    "resolve_match",
    "round_robin",
    "update_elo",
]
