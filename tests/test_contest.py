"""Tests for contest result recording and discrepancy escalation."""

import pytest

from hydra_contest.core.errors import ContestResultNotFoundError
from hydra_contest.models import ContestResult
from hydra_contest.services.contest import ContestService
from hydra_contest.services.llm import FakeLLMClient, LLMClient, LLMResponse


class EmptyClient(LLMClient):
    """Evolutioner that never produces a hypothesis."""

    async def complete(self, model, messages, max_tokens, temperature):
        return LLMResponse(content="", prompt_tokens=1, completion_tokens=0, total_tokens=1)


@pytest.fixture
def service(config, store) -> ContestService:
    return ContestService(config, store, FakeLLMClient(seed=5))


async def seed(store, **kwargs) -> ContestResult:
    row = ContestResult(session_id="c1", model_id="vendor/a", round_id="r1", **kwargs)
    await store.contests.save_results([row])
    return row


class TestRecordScores:
    async def test_waits_for_both_scores(self, service, store):
        row = await seed(store)

        update = await service.record_scores(row.id, {"user_score": 9.0})

        assert update.result.user_score == 9.0
        assert update.discrepancy is None
        assert await store.chronicles.find_by_result(row.id) is None

    async def test_second_score_triggers_escalation(self, service, store):
        await store.chronicles.grant_role("sup-1", "supervisor")
        row = await seed(store, user_score=9.0)

        update = await service.record_scores(
            row.id, {"arbiter_score": 3.0}, round_prompt="Write a limerick"
        )

        assert update.result.user_score == 9.0
        assert update.result.arbiter_score == 3.0
        assert update.discrepancy.triggered is True
        assert update.discrepancy.entry_code == "HYDRA-EVO-001"
        entry = await store.chronicles.find_by_result(row.id)
        assert entry.metrics_before["session_id"] == "c1"
        assert entry.metrics_before["model_id"] == "vendor/a"
        assert len(await store.chronicles.notifications_for("sup-1")) == 1

    async def test_small_gap_is_checked_but_not_escalated(self, service, store):
        row = await seed(store)

        update = await service.record_scores(row.id, {"user_score": 7.0, "arbiter_score": 6.0})

        assert update.discrepancy.triggered is False
        assert await store.chronicles.entry_codes("HYDRA-EVO") == []

    async def test_rescoring_keeps_one_chronicle(self, service, store):
        row = await seed(store, user_score=9.0, arbiter_score=2.0)

        first = await service.record_scores(row.id, {"criteria_scores": {"clarity": 4}})
        second = await service.record_scores(row.id, {"user_score": 8.5})

        assert first.discrepancy.existing is False
        assert second.discrepancy.existing is True
        assert second.discrepancy.entry_code == first.discrepancy.entry_code
        assert second.result.criteria_scores == {"clarity": 4}

    async def test_failed_escalation_keeps_scores(self, config, store):
        service = ContestService(config, store, EmptyClient())
        row = await seed(store)

        update = await service.record_scores(row.id, {"user_score": 9.0, "arbiter_score": 1.0})

        assert update.discrepancy is None
        stored = await store.contests.list_results("c1")
        assert (stored[0].user_score, stored[0].arbiter_score) == (9.0, 1.0)

    async def test_unknown_result(self, service):
        with pytest.raises(ContestResultNotFoundError):
            await service.record_scores("missing", {"user_score": 5.0})


class TestScoreboard:
    async def test_ranks_stored_contest(self, service, store):
        await service.record_results(
            [
                ContestResult(session_id="c1", model_id="a", round_id="r1", user_score=8),
                ContestResult(session_id="c1", model_id="b", round_id="r1", user_score=4),
                ContestResult(session_id="c2", model_id="z", round_id="r1", user_score=10),
            ]
        )

        scored = await service.scoreboard("c1", user_weight=100)

        assert [(m.model_id, m.rank) for m in scored] == [("a", 1), ("b", 2)]
        assert scored[0].final_score == pytest.approx(8.0)

    async def test_uses_configured_scheme(self, service, store):
        await service.record_results(
            [
                ContestResult(session_id="c1", model_id="a", round_id="r1", user_score=9),
                ContestResult(session_id="c1", model_id="b", round_id="r1", user_score=3),
            ]
        )

        scored = await service.scoreboard("c1", scheme="tournament")

        assert scored[0].model_id == "a"
        assert scored[0].details["tournament_points"] == 3
