"""Interview verdict payload stored on interview sessions."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

Decision = Literal["hire", "reject", "retest"]


class ArbiterAssessment(BaseModel):
    """Structured judgment returned by an arbiter judge.

    Attributes:
        scores: Criterion name to 1-10 score.
        red_flags: Concerns raised by the arbiter (empty if none).
        recommendation: "hire", "reject" or "retest".
        confidence: Confidence in the recommendation (0.0-1.0).
        comment: Analytical comment.
        retest_competencies: Competencies to retest when recommending retest.
    """

    scores: dict[str, float]
    red_flags: list[str] = Field(default_factory=list)
    recommendation: Decision
    confidence: float = Field(ge=0.0, le=1.0)
    comment: str = ""
    retest_competencies: list[str] = Field(default_factory=list)

    @field_validator("scores")
    @classmethod
    def clamp_scores(cls, v: dict[str, float]) -> dict[str, float]:
        return {k: max(1.0, min(10.0, s)) for k, s in v.items()}

    @field_validator("recommendation", mode="before")
    @classmethod
    def normalize_recommendation(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v: Any) -> Any:
        if isinstance(v, int | float):
            return max(0.0, min(1.0, float(v)))
        return v

    @field_validator("red_flags", "retest_competencies", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class VerdictArbiter(ArbiterAssessment):
    """Arbiter assessment plus the model that produced it."""

    model: str


class CurrentHolder(BaseModel):
    model_id: str
    score: float


class VerdictThresholds(BaseModel):
    """Baseline comparison used for the automatic decision."""

    current_holder: CurrentHolder | None = None
    previous_avg: float | None = None
    candidate_score: float = 0.0
    is_same_model: bool = False
    is_cold_start: bool = False


class RetestEntry(BaseModel):
    competencies: list[str]
    date: str
    result: str = "pending"


class InterviewVerdict(BaseModel):
    """Full verdict record for one interview evaluation run."""

    arbiter: VerdictArbiter
    moderator_summary: str = ""
    auto_decision: Decision
    decision_reason: str = ""
    final_decision: Decision | None = None
    decided_by: Literal["user", "auto"] | None = None
    decided_at: str | None = None
    retest_history: list[RetestEntry] = Field(default_factory=list)
    thresholds: VerdictThresholds = Field(default_factory=VerdictThresholds)

    @property
    def is_decided(self) -> bool:
        return self.final_decision is not None
