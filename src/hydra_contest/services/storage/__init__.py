from .assignment_repository import AssignmentRepository
from .chronicle_repository import ChronicleRepository, next_entry_code
from .contest_repository import ContestRepository
from .interview_repository import AWAITING_DECISION, DecisionWrite, InterviewRepository
from .memory_repository import MemoryRepository
from .store import HydraStore

__all__ = [
    "AWAITING_DECISION",
    "AssignmentRepository",
    "ChronicleRepository",
    "ContestRepository",
    "DecisionWrite",
    "HydraStore",
    "InterviewRepository",
    "MemoryRepository",
    "next_entry_code",
]
