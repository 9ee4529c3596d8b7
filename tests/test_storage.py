"""Tests for the persistence layer."""

from hydra_contest.models import ContestResult, InterviewSession


class TestContestRepository:
    async def test_save_and_list(self, store):
        await store.contests.save_results(
            [
                ContestResult(session_id="c1", model_id="a", round_id="r1", user_score=7),
                ContestResult(session_id="c1", model_id="b", round_id="r1", arbiter_score=5),
                ContestResult(session_id="c2", model_id="a", round_id="r1"),
            ]
        )

        rows = await store.contests.list_results("c1")
        assert [r.model_id for r in rows] == ["a", "b"]

    async def test_update_scores_leaves_omitted_fields(self, store):
        row = ContestResult(session_id="c1", model_id="a", round_id="r1", user_score=7)
        await store.contests.save_results([row])

        updated = await store.contests.update_scores(
            row.id, arbiter_score=4.5, criteria_scores={"clarity": 6}
        )

        assert updated.user_score == 7
        assert updated.arbiter_score == 4.5
        assert updated.criteria_scores == {"clarity": 6}

    async def test_update_scores_can_clear(self, store):
        row = ContestResult(session_id="c1", model_id="a", round_id="r1", user_score=7)
        await store.contests.save_results([row])
        updated = await store.contests.update_scores(row.id, user_score=None)
        assert updated.user_score is None

    async def test_update_missing_result(self, store):
        assert await store.contests.update_scores("nope", user_score=1) is None


class TestInterviewRepository:
    async def test_get_is_scoped_to_user(self, store):
        session = await store.interviews.create(
            InterviewSession(user_id="alice", role="critic", candidate_model="m")
        )
        assert (await store.interviews.get(session.id, "alice")).status == "briefed"
        assert await store.interviews.get(session.id, "bob") is None
