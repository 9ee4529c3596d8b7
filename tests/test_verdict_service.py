"""Tests for the interview verdict pipeline and decision application."""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from hydra_contest.core.errors import DecisionConflictError, SessionNotFoundError, VerdictError
from hydra_contest.models import InterviewSession, RoleAssignment, VerdictArbiter
from hydra_contest.services.llm import FakeLLMClient
from hydra_contest.services.verdict import ArbiterRequest, VerdictProgress, VerdictService

ROLE = "analyst"
CANDIDATE = "vendor/candidate"


class StubJudge:
    """Arbiter judge returning fixed scores."""

    def __init__(self, scores: dict[str, float], recommendation="hire", confidence=0.6):
        self.scores = scores
        self.recommendation = recommendation
        self.confidence = confidence
        self.requests: list[ArbiterRequest] = []

    async def evaluate(self, request: ArbiterRequest) -> VerdictArbiter:
        self.requests.append(request)
        return VerdictArbiter(
            model=request.models[0],
            scores=self.scores,
            recommendation=self.recommendation,
            confidence=self.confidence,
            comment="Stub assessment.",
        )


class FailingJudge:
    async def evaluate(self, request: ArbiterRequest) -> VerdictArbiter:
        raise VerdictError("arbiter unavailable")


def tested_session(user_id="user-1", status="tested", steps=None) -> InterviewSession:
    if steps is None:
        steps = [
            {"competency": "analysis", "task_prompt": "Analyse", "status": "completed"},
            {"competency": "reporting", "task_prompt": "Report", "status": "failed"},
        ]
    return InterviewSession(
        user_id=user_id,
        role=ROLE,
        candidate_model=CANDIDATE,
        status=status,
        test_results={"steps": steps, "total_steps": len(steps)},
    )


async def seed_assignment(store, model_id, score, days_ago, closed=False) -> None:
    now = datetime.now(UTC)
    await store.assignments.add(
        RoleAssignment(
            user_id="user-1",
            role=ROLE,
            model_id=model_id,
            interview_avg_score=score,
            assigned_at=now - timedelta(days=days_ago),
            removed_at=now - timedelta(days=days_ago - 1) if closed else None,
            removal_reason="replaced" if closed else None,
        )
    )


@pytest.fixture
def make_service(config, store):
    def _make(scores, **kwargs) -> VerdictService:
        return VerdictService(
            config, store, FakeLLMClient(seed=7), judge=StubJudge(scores, **kwargs)
        )

    return _make


async def run(service: VerdictService, session_id: str, **kwargs):
    return [event async for event in service.run_verdict(session_id, **kwargs)]


class TestRunVerdict:
    async def test_event_sequence_and_stored_verdict(self, store, make_service):
        session = await store.interviews.create(tested_session())
        service = make_service({"depth": 8, "accuracy": 7})

        events = await run(service, session.id)

        assert [e.event for e in events] == ["start"] + ["phase"] * 6 + ["complete"]
        assert [(e.data["phase"], e.data["status"]) for e in events[1:-1]] == [
            ("arbiter", "running"),
            ("arbiter", "done"),
            ("moderator", "running"),
            ("moderator", "done"),
            ("decision", "running"),
            ("decision", "done"),
        ]
        assert events[-1].data == {
            "session_id": session.id,
            "auto_decision": "hire",
            "avg_score": 7.5,
        }

        stored = await store.interviews.get(session.id, "user-1")
        assert stored.status == "verdict"
        assert stored.config["phase"] == "verdict"
        assert stored.verdict["auto_decision"] == "hire"
        assert stored.verdict["thresholds"]["is_cold_start"] is True
        assert stored.verdict["final_decision"] is None
        assert "completed the interview" in stored.verdict["moderator_summary"]

    async def test_only_completed_steps_reach_the_judge(self, store, make_service):
        session = await store.interviews.create(tested_session())
        service = make_service({"depth": 8})
        await run(service, session.id)

        request = service.judge.requests[0]
        assert [s["competency"] for s in request.steps] == ["analysis"]
        assert request.criteria == ["analytical_depth", "methodology", "actionability"]

    async def test_preferred_arbiter_is_tried_first(self, store, make_service, config):
        session = await store.interviews.create(tested_session())
        service = make_service({"depth": 8})
        await run(service, session.id, arbiter_model="vendor/special")

        models = list(service.judge.requests[0].models)
        assert models[0] == "vendor/special"
        assert models[1:] == config.verdict.arbiter_chain

    async def test_progress_tracks_events(self, store, make_service):
        session = await store.interviews.create(tested_session())
        progress = VerdictProgress()
        async for event in make_service({"depth": 6}).run_verdict(session.id):
            progress.apply(event)

        assert progress.running is False
        assert progress.current_phase == "decision"
        assert [p["phase"] for p in progress.phases] == ["arbiter", "moderator", "decision"]
        assert progress.verdict["auto_decision"] == "hire"

    async def test_records_role_memory(self, store, make_service):
        session = await store.interviews.create(tested_session())
        await run(make_service({"depth": 8}), session.id)

        memories = await store.memories.list_for_role("user-1", ROLE)
        assert len(memories) == 1
        assert memories[0].tags == ["interview", "hire", CANDIDATE]
        assert memories[0].metadata_["interview_session_id"] == session.id

    async def test_missing_session(self, make_service):
        with pytest.raises(SessionNotFoundError):
            await run(make_service({"depth": 8}), "does-not-exist")

    async def test_other_users_session_is_not_found(self, store, make_service):
        session = await store.interviews.create(tested_session(user_id="someone-else"))
        with pytest.raises(SessionNotFoundError):
            await run(make_service({"depth": 8}), session.id)

    async def test_requires_tested_status(self, store, make_service):
        session = await store.interviews.create(tested_session(status="briefed"))
        with pytest.raises(VerdictError, match="status"):
            await run(make_service({"depth": 8}), session.id)

    async def test_requires_completed_steps(self, store, make_service):
        steps = [{"competency": "analysis", "status": "failed"}]
        session = await store.interviews.create(tested_session(steps=steps))
        with pytest.raises(VerdictError, match="No completed test steps"):
            await run(make_service({"depth": 8}), session.id)


    async def test_failure_yields_error_event(self, store, config):
        session = await store.interviews.create(tested_session())
        service = VerdictService(config, store, FakeLLMClient(seed=7), judge=FailingJudge())

        events = []
        with pytest.raises(VerdictError, match="arbiter unavailable"):
            async for event in service.run_verdict(session.id):
                events.append(event)

        assert [e.event for e in events] == ["start", "phase", "error"]
        assert events[-1].data == {"error": "arbiter unavailable", "phase": "arbiter"}

        progress = VerdictProgress()
        for event in events:
            progress.apply(event)
        assert progress.running is False
        assert progress.error == "arbiter unavailable"

        stored = await store.interviews.get(session.id, "user-1")
        assert stored.status == "tested"
        assert stored.verdict is None


class TestApplyDecision:
    async def test_cold_start_hire_creates_phantom(self, store, make_service):
        session = await store.interviews.create(tested_session())
        service = make_service({"depth": 8, "accuracy": 7})
        await run(service, session.id)

        verdict = await service.apply_decision(session.id, "hire")

        assert verdict.final_decision == "hire"
        assert verdict.decided_by == "user"
        assert verdict.decided_at is not None

        history = await store.assignments.list_for_role("user-1", ROLE)
        assert len(history) == 2
        phantom, hired = history
        assert phantom.is_synthetic is True
        assert phantom.removed_at is not None
        assert phantom.removal_reason == "replaced"
        assert phantom.interview_avg_score == pytest.approx(7.0)
        assert phantom.metadata_ == {"synthetic": True, "reason": "cold_start_phantom"}
        assert hired.is_synthetic is False
        assert hired.removed_at is None
        assert hired.interview_avg_score == pytest.approx(7.5)
        assert hired.interview_session_id == session.id
        assert phantom.assigned_at < hired.assigned_at

        stored = await store.interviews.get(session.id, "user-1")
        assert stored.status == "completed"
        assert stored.completed_at is not None
        assert stored.verdict["final_decision"] == "hire"

    async def test_phantom_score_never_negative(self, store, make_service):
        session = await store.interviews.create(tested_session())
        service = make_service({})
        await run(service, session.id)
        await service.apply_decision(session.id, "hire")

        phantom = next(
            h for h in await store.assignments.list_for_role("user-1", ROLE) if h.is_synthetic
        )
        assert phantom.interview_avg_score == 0.0

    async def test_same_decision_twice_is_noop(self, store, make_service):
        session = await store.interviews.create(tested_session())
        service = make_service({"depth": 8})
        await run(service, session.id)

        first = await service.apply_decision(session.id, "hire")
        second = await service.apply_decision(session.id, "hire")

        assert second.decided_at == first.decided_at
        assert len(await store.assignments.list_for_role("user-1", ROLE)) == 2

    async def test_different_decision_conflicts(self, store, make_service):
        session = await store.interviews.create(tested_session())
        service = make_service({"depth": 8})
        await run(service, session.id)
        await service.apply_decision(session.id, "reject")

        with pytest.raises(DecisionConflictError) as exc_info:
            await service.apply_decision(session.id, "hire")
        assert exc_info.value.existing == "reject"
        assert await store.assignments.list_for_role("user-1", ROLE) == []

    async def test_hire_replaces_current_holder(self, store, make_service):
        await seed_assignment(store, "vendor/incumbent", 6.0, days_ago=10)
        session = await store.interviews.create(tested_session())
        service = make_service({"depth": 8})
        await run(service, session.id)

        stored = await store.interviews.get(session.id, "user-1")
        assert stored.verdict["auto_decision"] == "hire"
        assert "replacement" in stored.verdict["decision_reason"]

        await service.apply_decision(session.id, "hire")

        incumbent, hired = await store.assignments.list_for_role("user-1", ROLE)
        assert incumbent.model_id == "vendor/incumbent"
        assert incumbent.removal_reason == "replaced"
        assert incumbent.removed_at is not None
        assert hired.model_id == CANDIDATE
        assert hired.removed_at is None
        assert not any(h.is_synthetic for h in (incumbent, hired))

    async def test_hire_same_model_upskills(self, store, make_service):
        await seed_assignment(store, CANDIDATE, 6.0, days_ago=10)
        session = await store.interviews.create(tested_session())
        service = make_service({"depth": 9})
        await run(service, session.id)
        await service.apply_decision(session.id, "hire")

        previous, current = await store.assignments.list_for_role("user-1", ROLE)
        assert previous.removal_reason == "upskilled"
        assert current.interview_avg_score == pytest.approx(9.0)
        assert len(await store.assignments.open_assignments("user-1", ROLE)) == 1

    async def test_reject_only_stamps(self, store, make_service):
        await seed_assignment(store, "vendor/incumbent", 9.0, days_ago=3)
        await seed_assignment(store, "vendor/old", 8.0, days_ago=20, closed=True)
        session = await store.interviews.create(tested_session())
        service = make_service({"depth": 5})
        await run(service, session.id)

        stored = await store.interviews.get(session.id, "user-1")
        assert stored.verdict["auto_decision"] == "reject"

        await service.apply_decision(session.id, "reject")

        stored = await store.interviews.get(session.id, "user-1")
        assert stored.status == "completed"
        assert stored.verdict["final_decision"] == "reject"
        open_rows = await store.assignments.open_assignments("user-1", ROLE)
        assert [h.model_id for h in open_rows] == ["vendor/incumbent"]
        assert len(await store.assignments.list_for_role("user-1", ROLE)) == 2

    async def test_retest_returns_to_briefed(self, store, make_service):
        await seed_assignment(store, "vendor/incumbent", 8.0, days_ago=3)
        await seed_assignment(store, "vendor/old", 6.0, days_ago=20, closed=True)
        session = await store.interviews.create(tested_session())
        service = make_service({"depth": 7})
        await run(service, session.id)

        stored = await store.interviews.get(session.id, "user-1")
        assert stored.verdict["auto_decision"] == "retest"

        verdict = await service.apply_decision(session.id, "retest", ["analysis", "reporting"])

        assert len(verdict.retest_history) == 1
        assert verdict.retest_history[0].competencies == ["analysis", "reporting"]
        assert verdict.retest_history[0].result == "pending"
        stored = await store.interviews.get(session.id, "user-1")
        assert stored.status == "briefed"
        assert stored.completed_at is None
        assert len(stored.verdict["retest_history"]) == 1

    async def test_retest_without_competencies_keeps_history(self, store, make_service):
        await seed_assignment(store, "vendor/incumbent", 8.0, days_ago=3)
        session = await store.interviews.create(tested_session())
        service = make_service({"depth": 7})
        await run(service, session.id)

        verdict = await service.apply_decision(session.id, "retest")
        assert verdict.retest_history == []
        assert verdict.final_decision == "retest"

    async def test_missing_session(self, make_service):
        with pytest.raises(SessionNotFoundError):
            await make_service({"depth": 8}).apply_decision("nope", "hire")

    async def test_missing_verdict(self, store, make_service):
        session = await store.interviews.create(tested_session())
        with pytest.raises(VerdictError, match="No verdict"):
            await make_service({"depth": 8}).apply_decision(session.id, "hire")

    async def test_concurrent_hires_apply_once(self, store, make_service):
        session = await store.interviews.create(tested_session())
        service = make_service({"depth": 8})
        await run(service, session.id)

        first, second = await asyncio.gather(
            service.apply_decision(session.id, "hire"),
            service.apply_decision(session.id, "hire"),
        )

        assert first.final_decision == second.final_decision == "hire"
        assert first.decided_at == second.decided_at
        history = await store.assignments.list_for_role("user-1", ROLE)
        assert len(history) == 2
        assert sum(h.is_synthetic for h in history) == 1
        assert len(await store.assignments.open_assignments("user-1", ROLE)) == 1

    async def test_concurrent_conflicting_decisions(self, store, make_service):
        session = await store.interviews.create(tested_session())
        service = make_service({"depth": 8})
        await run(service, session.id)

        results = await asyncio.gather(
            service.apply_decision(session.id, "hire"),
            service.apply_decision(session.id, "reject"),
            return_exceptions=True,
        )

        conflicts = [r for r in results if isinstance(r, DecisionConflictError)]
        assert len(conflicts) == 1
        stored = await store.interviews.get(session.id, "user-1")
        winner = stored.verdict["final_decision"]
        assert conflicts[0].existing == winner
        history = await store.assignments.list_for_role("user-1", ROLE)
        assert len(history) == (2 if winner == "hire" else 0)

    async def test_session_not_awaiting_decision(self, store, make_service):
        session = await store.interviews.create(tested_session())
        service = make_service({"depth": 8})
        await run(service, session.id)
        stored = await store.interviews.get(session.id, "user-1")
        await store.interviews.save_verdict(session.id, stored.verdict, "briefed")

        with pytest.raises(VerdictError, match="not awaiting a decision"):
            await service.apply_decision(session.id, "hire")
        assert await store.assignments.list_for_role("user-1", ROLE) == []
