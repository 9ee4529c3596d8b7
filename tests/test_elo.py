"""Tests for Elo rating calculations."""

import pytest

from hydra_contest.core.config import ScoringConfig
from hydra_contest.ranking import RankingSystem, create_ranking_system
from hydra_contest.ranking.elo import (
    EloRating,
    EloSystem,
    calculate_expected_win_chance,
    update_elo,
)
from hydra_contest.ranking.pairwise import Outcome


class TestCalculateExpectedWinChance:
    """Tests for expected win probability calculation."""

    def test_equal_ratings(self):
        """Test equal ratings produce 0.5 expected."""
        expected = calculate_expected_win_chance(1500, 1500)
        assert expected == pytest.approx(0.5, abs=0.001)

    def test_higher_rating_higher_expected(self):
        expected = calculate_expected_win_chance(1600, 1400)
        assert 0.5 < expected < 1.0

    def test_400_point_difference(self):
        """Test 400 point difference produces ~91% expected."""
        expected = calculate_expected_win_chance(1900, 1500)
        # 10^(400/400) = 10, so expected = 1/(1+0.1)
        assert expected == pytest.approx(0.909, abs=0.01)


class TestUpdateElo:
    """Tests for Elo rating updates."""

    def test_win_between_equals_moves_half_k(self):
        new_a, new_b = update_elo(1500, 1500, 1.0, k_factor=32)
        assert new_a == pytest.approx(1516.0)
        assert new_b == pytest.approx(1484.0)

    def test_draw_between_equals_changes_nothing(self):
        new_a, new_b = update_elo(1500, 1500, 0.5, k_factor=32)
        assert new_a == pytest.approx(1500.0)
        assert new_b == pytest.approx(1500.0)

    def test_zero_sum(self):
        new_a, new_b = update_elo(1620, 1410, 0.0, k_factor=32)
        assert (new_a - 1620) == pytest.approx(-(new_b - 1410))

    def test_upset_win_larger_change(self):
        """Test underdog gains more than half of K."""
        new_a, _new_b = update_elo(1400, 1600, 1.0, k_factor=32)
        assert new_a - 1400 > 16


class TestEloSystem:
    """Tests for the sequential Elo system."""

    def test_initialize(self):
        system = EloSystem(initial_rating=1500)
        system.initialize(["a", "b", "c"])
        assert system.get_rating("a") == 1500
        assert system.get_stats("c") == {"matches": 0, "wins": 0, "draws": 0, "losses": 0}

    def test_update_records_outcomes(self):
        system = EloSystem()
        system.initialize(["a", "b"])
        system.update("a", "b", Outcome.WIN)
        system.update("a", "b", Outcome.DRAW)

        assert system.get_stats("a") == {"matches": 2, "wins": 1, "draws": 1, "losses": 0}
        assert system.get_stats("b") == {"matches": 2, "wins": 0, "draws": 1, "losses": 1}

    def test_updates_are_sequential(self):
        """Second comparison uses ratings produced by the first."""
        system = EloSystem(k_factor=32)
        system.initialize(["a", "b", "c"])
        system.update("a", "b", Outcome.WIN)
        rating_a = system.get_rating("a")
        system.update("a", "c", Outcome.WIN)

        expected = calculate_expected_win_chance(rating_a, 1500)
        assert system.get_rating("a") == pytest.approx(rating_a + 32 * (1 - expected))

    def test_leaderboard_sorted(self):
        system = EloSystem()
        system.initialize(["a", "b", "c"])
        system.update("c", "a", Outcome.WIN)
        system.update("b", "a", Outcome.WIN)

        leaderboard = system.get_leaderboard()
        assert [entry[0] for entry in leaderboard][-1] == "a"
        ratings = [entry[1] for entry in leaderboard]
        assert ratings == sorted(ratings, reverse=True)

    def test_history_tracks_previous_ratings(self):
        system = EloSystem()
        system.initialize(["a", "b"])
        system.update("a", "b", Outcome.LOSS)

        rating: EloRating = system.get_rating_object("a")
        assert rating.history == [1500]
        assert rating.losses == 1

    def test_create_ranking_system_uses_config(self):
        system = create_ranking_system(ScoringConfig(elo_initial=1200, k_factor=16))
        assert isinstance(system, RankingSystem)
        system.initialize(["x"])
        assert system.get_rating("x") == 1200
