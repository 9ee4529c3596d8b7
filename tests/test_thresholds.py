"""Tests for dynamic hire thresholds and the automatic decision."""

from datetime import UTC, datetime, timedelta

import pytest

from hydra_contest.models import RoleAssignment
from hydra_contest.services.verdict import auto_decide, candidate_score, compute_thresholds

NOW = datetime(2026, 3, 1, tzinfo=UTC)


def assignment(model_id, score, days_ago, closed=False) -> RoleAssignment:
    return RoleAssignment(
        user_id="u",
        role="analyst",
        model_id=model_id,
        interview_avg_score=score,
        assigned_at=NOW - timedelta(days=days_ago),
        removed_at=NOW - timedelta(days=days_ago - 1) if closed else None,
    )


class TestCandidateScore:
    def test_mean_rounded(self):
        assert candidate_score({"a": 7, "b": 8, "c": 8}) == 7.7

    def test_no_scores(self):
        assert candidate_score({}) == 0.0


class TestComputeThresholds:
    def test_cold_start(self):
        t = compute_thresholds([], "m/x", 7.0)
        assert t.is_cold_start
        assert t.current_holder is None
        assert t.previous_avg is None
        assert not t.is_same_model

    def test_current_and_previous(self):
        history = [
            assignment("m/cur", 7.5, 1),
            assignment("m/old1", 6.0, 5, closed=True),
            assignment("m/old2", 8.0, 9, closed=True),
        ]
        t = compute_thresholds(history, "m/cur", 8.0)
        assert t.current_holder is not None
        assert t.current_holder.model_id == "m/cur"
        assert t.current_holder.score == 7.5
        assert t.previous_avg == pytest.approx(7.0)
        assert t.is_same_model
        assert not t.is_cold_start

    def test_only_closed_history_is_cold_start(self):
        t = compute_thresholds([assignment("m/old", 6.0, 3, closed=True)], "m/x", 5.0)
        assert t.is_cold_start
        assert t.previous_avg == 6.0


class TestAutoDecide:
    def test_cold_start_hires(self):
        decision, reason = auto_decide(compute_thresholds([], "m/x", 3.0))
        assert decision == "hire"
        assert "Cold start" in reason

    def test_beats_holder_replacement(self):
        t = compute_thresholds([assignment("m/cur", 6.0, 1)], "m/x", 7.0)
        decision, reason = auto_decide(t)
        assert decision == "hire"
        assert "replacement" in reason

    def test_beats_holder_upskilling(self):
        t = compute_thresholds([assignment("m/x", 6.0, 1)], "m/x", 7.0)
        decision, reason = auto_decide(t)
        assert decision == "hire"
        assert "upskilling" in reason

    def test_below_previous_rejects(self):
        history = [assignment("m/cur", 8.0, 1), assignment("m/old", 7.0, 4, closed=True)]
        decision, _ = auto_decide(compute_thresholds(history, "m/x", 6.5))
        assert decision == "reject"

    def test_between_previous_and_holder_retests(self):
        history = [assignment("m/cur", 8.0, 1), assignment("m/old", 6.0, 4, closed=True)]
        decision, _ = auto_decide(compute_thresholds(history, "m/x", 7.0))
        assert decision == "retest"

    def test_equal_to_holder_without_previous_retests(self):
        decision, _ = auto_decide(compute_thresholds([assignment("m/cur", 7.0, 1)], "m/x", 7.0))
        assert decision == "retest"
