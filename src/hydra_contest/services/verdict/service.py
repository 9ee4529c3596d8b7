"""Interview verdict pipeline: arbiter, moderator, decision.

``run_verdict`` streams progress events while it scores a tested interview
and stores the verdict; ``apply_decision`` records the final hire, reject
or retest decision together with its role assignment changes.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError

from hydra_contest.core.config import HydraConfig
from hydra_contest.core.errors import (
    DecisionConflictError,
    HydraError,
    SessionNotFoundError,
    VerdictError,
)
from hydra_contest.models import (
    Decision,
    InterviewSession,
    InterviewVerdict,
    RetestEntry,
    RoleAssignment,
    RoleMemory,
)
from hydra_contest.services.llm import LLMClient
from hydra_contest.services.storage import AWAITING_DECISION, HydraStore

from .events import VerdictEvent
from .judge import ArbiterJudge, ArbiterRequest, LLMArbiterJudge, summarize_interview
from .thresholds import auto_decide, candidate_score, compute_thresholds

logger = structlog.get_logger()

PHASES = ("arbiter", "moderator", "decision")
HISTORY_LIMIT = 3
PHANTOM_AGE = timedelta(days=1)


def completed_steps(interview: InterviewSession) -> list[dict[str, Any]]:
    """Test steps of an interview that finished successfully."""
    steps = (interview.test_results or {}).get("steps") or []
    return [s for s in steps if isinstance(s, dict) and s.get("status") == "completed"]


class VerdictService:
    """Produce and apply interview verdicts for one user."""

    def __init__(
        self,
        config: HydraConfig,
        store: HydraStore,
        client: LLMClient,
        judge: ArbiterJudge | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.client = client
        self.judge = judge or LLMArbiterJudge(
            client,
            max_tokens=config.verdict.arbiter_tokens,
            temperature=config.verdict.arbiter_temperature,
        )

    @property
    def user_id(self) -> str:
        return self.config.user_id

    async def _load(self, session_id: str) -> InterviewSession:
        interview = await self.store.interviews.get(session_id, self.user_id)
        if interview is None:
            raise SessionNotFoundError(session_id)
        return interview

    def _arbiter_models(self, preferred: str | None) -> list[str]:
        chain = self.config.verdict.arbiter_chain
        if preferred:
            chain = [preferred, *(m for m in chain if m != preferred)]
        return chain

    async def run_verdict(
        self, session_id: str, arbiter_model: str | None = None
    ) -> AsyncIterator[VerdictEvent]:
        """Score a tested interview and store the verdict.

        Args:
            session_id: Interview session ID.
            arbiter_model: Arbiter to try before the configured chain.

        Yields:
            VerdictEvent: ``start``, running/done ``phase`` events for
            arbiter, moderator and decision, then ``complete``. A failing
            phase yields ``error`` before the exception propagates.

        Raises:
            SessionNotFoundError: If the session does not exist for the user.
            VerdictError: If the session is not tested or has no completed steps.
        """
        interview = await self._load(session_id)
        if interview.status != "tested":
            msg = (
                f"Cannot run verdict on status: {interview.status}. "
                "Tests must be completed first."
            )
            raise VerdictError(msg)

        steps = completed_steps(interview)
        if not steps:
            msg = f"No completed test steps in session {session_id}"
            raise VerdictError(msg)

        role = interview.role
        candidate = interview.candidate_model
        history = await self.store.assignments.recent_history(self.user_id, role, HISTORY_LIMIT)
        logger.info(
            "verdict_start",
            session_id=session_id,
            role=role,
            candidate=candidate,
            history=len(history),
        )

        yield VerdictEvent(
            "start",
            {
                "session_id": session_id,
                "role": role,
                "candidate_model": candidate,
                "phases": list(PHASES),
            },
        )

        phase = None
        try:
            async for event in self._phases(interview, steps, history, arbiter_model):
                if event.event == "phase":
                    phase = event.data["phase"]
                yield event
        except (HydraError, SQLAlchemyError, LookupError, ValueError) as e:
            logger.error("verdict_failed", session_id=session_id, phase=phase, error=str(e))
            yield VerdictEvent("error", {"error": str(e), "phase": phase})
            raise

    async def _phases(
        self,
        interview: InterviewSession,
        steps: list[dict[str, Any]],
        history: Sequence[RoleAssignment],
        arbiter_model: str | None,
    ) -> AsyncIterator[VerdictEvent]:
        session_id = interview.id
        role = interview.role
        candidate = interview.candidate_model

        # Phase 1: arbiter
        yield VerdictEvent("phase", {"phase": "arbiter", "status": "running"})
        criteria = self.config.verdict.criteria_for(role)
        arbiter = await self.judge.evaluate(
            ArbiterRequest(
                role=role,
                candidate_model=candidate,
                steps=steps,
                criteria=criteria,
                models=self._arbiter_models(arbiter_model),
            )
        )
        yield VerdictEvent(
            "phase",
            {"phase": "arbiter", "status": "done", "result": arbiter.model_dump(mode="json")},
        )

        # Phase 2: moderator
        yield VerdictEvent("phase", {"phase": "moderator", "status": "running"})
        score = candidate_score(arbiter.scores)
        summary = await summarize_interview(
            self.client,
            self.config.verdict.moderator_model,
            role,
            candidate,
            score,
            arbiter,
            max_tokens=self.config.verdict.moderator_tokens,
            temperature=self.config.verdict.moderator_temperature,
        )
        yield VerdictEvent("phase", {"phase": "moderator", "status": "done", "summary": summary})

        # Phase 3: decision
        yield VerdictEvent("phase", {"phase": "decision", "status": "running"})
        thresholds = compute_thresholds(history, candidate, score)
        decision, reason = auto_decide(thresholds)
        if (
            arbiter.confidence > self.config.verdict.override_confidence
            and arbiter.recommendation != decision
        ):
            logger.info(
                "arbiter_disagrees",
                session_id=session_id,
                auto_decision=decision,
                recommendation=arbiter.recommendation,
                confidence=arbiter.confidence,
            )

        previous = InterviewVerdict.model_validate(interview.verdict) if interview.verdict else None
        verdict = InterviewVerdict(
            arbiter=arbiter,
            moderator_summary=summary,
            auto_decision=decision,
            decision_reason=reason,
            retest_history=previous.retest_history if previous else [],
            thresholds=thresholds,
        )
        payload = verdict.model_dump(mode="json")
        await self.store.interviews.save_verdict(session_id, payload, AWAITING_DECISION)
        await self._remember(interview, verdict)

        yield VerdictEvent("phase", {"phase": "decision", "status": "done", "verdict": payload})
        logger.info("verdict_complete", session_id=session_id, auto_decision=decision, score=score)
        yield VerdictEvent(
            "complete",
            {"session_id": session_id, "auto_decision": decision, "avg_score": score},
        )

    async def _remember(self, interview: InterviewSession, verdict: InterviewVerdict) -> None:
        """Record the interview outcome in the role's memory.

        A failed write does not fail the verdict, which is already stored.
        """
        memory = RoleMemory(
            user_id=self.user_id,
            role=interview.role,
            content=(
                f"Interview {interview.candidate_model}: {verdict.auto_decision}. "
                f"{verdict.moderator_summary}"
            ),
            memory_type="experience",
            confidence_score=verdict.arbiter.confidence,
            tags=["interview", verdict.auto_decision, interview.candidate_model],
            metadata_={
                "interview_session_id": interview.id,
                "avg_score": verdict.thresholds.candidate_score,
                "auto_decision": verdict.auto_decision,
            },
        )
        try:
            await self.store.memories.add(memory)
        except SQLAlchemyError as e:
            logger.warning("role_memory_save_failed", session_id=interview.id, error=str(e))

    async def apply_decision(
        self,
        session_id: str,
        decision: Decision,
        retest_competencies: Sequence[str] | None = None,
    ) -> InterviewVerdict:
        """Apply the user's final decision to a verdict.

        Args:
            session_id: Interview session ID.
            decision: "hire", "reject" or "retest".
            retest_competencies: Competencies to retest (retest only).

        Returns:
            The stored verdict after the decision.

        Raises:
            SessionNotFoundError: If the session does not exist for the user.
            VerdictError: If the session has no verdict or is not awaiting a decision.
            DecisionConflictError: If a different decision was already applied.
        """
        interview = await self._load(session_id)
        if not interview.verdict:
            msg = f"No verdict found for session {session_id}"
            raise VerdictError(msg)

        verdict = InterviewVerdict.model_validate(interview.verdict)
        if verdict.final_decision is not None:
            return self._settled(session_id, verdict, decision)

        now = datetime.now(UTC)
        retest_history = list(verdict.retest_history)
        if decision == "retest" and retest_competencies:
            retest_history.append(
                RetestEntry(competencies=list(retest_competencies), date=now.isoformat())
            )

        updated = verdict.model_copy(
            update={
                "final_decision": decision,
                "decided_by": "user",
                "decided_at": now.isoformat(),
                "retest_history": retest_history,
            }
        )

        removal_reason = None
        new_assignments: list[RoleAssignment] = []
        if decision == "hire":
            thresholds = verdict.thresholds
            removal_reason = "upskilled" if thresholds.is_same_model else "replaced"
            new_assignments.append(
                RoleAssignment(
                    user_id=self.user_id,
                    role=interview.role,
                    model_id=interview.candidate_model,
                    interview_session_id=session_id,
                    assigned_at=now,
                    interview_avg_score=thresholds.candidate_score,
                )
            )
            if thresholds.is_cold_start:
                new_assignments.append(self._phantom(interview, thresholds.candidate_score, now))

        written = await self.store.interviews.record_decision(
            session_id,
            updated.model_dump(mode="json"),
            status="briefed" if decision == "retest" else "completed",
            completed_at=None if decision == "retest" else now,
            removal_reason=removal_reason,
            new_assignments=new_assignments,
        )
        if not written.applied:
            # Another decision claimed the session first
            if not written.verdict:
                msg = f"No verdict found for session {session_id}"
                raise VerdictError(msg)
            stored = InterviewVerdict.model_validate(written.verdict)
            return self._settled(session_id, stored, decision)

        logger.info(
            "decision_applied",
            session_id=session_id,
            decision=decision,
            closed_assignments=written.closed,
            new_assignments=len(new_assignments),
        )
        return updated

    def _settled(
        self, session_id: str, stored: InterviewVerdict, decision: Decision
    ) -> InterviewVerdict:
        """Resolve a decision against a session that is no longer awaiting one."""
        if stored.final_decision == decision:
            logger.debug("decision_already_applied", session_id=session_id, decision=decision)
            return stored
        if stored.final_decision is not None:
            raise DecisionConflictError(session_id, stored.final_decision, decision)
        msg = f"Session {session_id} is not awaiting a decision"
        raise VerdictError(msg)

    def _phantom(
        self, interview: InterviewSession, score: float, now: datetime
    ) -> RoleAssignment:
        """Synthetic closed predecessor so a cold-start hire has a baseline."""
        return RoleAssignment(
            user_id=self.user_id,
            role=interview.role,
            model_id=interview.candidate_model,
            assigned_at=now - PHANTOM_AGE,
            removed_at=now,
            removal_reason="replaced",
            interview_avg_score=max(0.0, score - self.config.verdict.phantom_score_offset),
            is_synthetic=True,
            metadata_={"synthetic": True, "reason": "cold_start_phantom"},
        )
