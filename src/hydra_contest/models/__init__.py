from .assignment import RoleAssignment
from .chronicle import ChronicleEntry, SupervisorNotification, UserRole
from .contest import ContestResult
from .interview import InterviewSession
from .memory import RoleMemory
from .verdict import (
    ArbiterAssessment,
    CurrentHolder,
    Decision,
    InterviewVerdict,
    RetestEntry,
    VerdictArbiter,
    VerdictThresholds,
)

__all__ = [
    "ArbiterAssessment",
    "ChronicleEntry",
    "ContestResult",
    "CurrentHolder",
    "Decision",
    "InterviewSession",
    "InterviewVerdict",
    "RetestEntry",
    "RoleAssignment",
    "RoleMemory",
    "SupervisorNotification",
    "UserRole",
    "VerdictArbiter",
    "VerdictThresholds",
]
