from .events import SSEDecoder, VerdictEvent, VerdictProgress, encode_sse
from .judge import (
    ArbiterJudge,
    ArbiterRequest,
    LLMArbiterJudge,
    neutral_assessment,
    parse_assessment,
    summarize_interview,
)
from .service import VerdictService, completed_steps
from .thresholds import auto_decide, candidate_score, compute_thresholds

__all__ = [
    "ArbiterJudge",
    "ArbiterRequest",
    "LLMArbiterJudge",
    "SSEDecoder",
    "VerdictEvent",
    "VerdictProgress",
    "VerdictService",
    "auto_decide",
    "candidate_score",
    "completed_steps",
    "compute_thresholds",
    "encode_sse",
    "neutral_assessment",
    "parse_assessment",
    "summarize_interview",
]
