"""Contest criteria helpers: merging plan and role-specific criteria."""

from __future__ import annotations

from collections.abc import Sequence

DEFAULT_PLAN_CRITERIA = ("factuality", "relevance", "completeness", "clarity")

# Role-specific criteria judged in contests on top of the plan criteria.
ROLE_SPECIFIC_CRITERIA: dict[str, tuple[str, ...]] = {
    "assistant": ("creativity",),
    "critic": (
        "argument_strength",
        "logic_coherence",
        "evidence_quality",
        "bias_detection",
        "counter_example_coverage",
    ),
    "arbiter": ("synthesis_quality", "fairness", "decision_justification"),
    "moderator": ("nuance_preservation", "consensus_strength", "synthesis_quality"),
    "advisor": (
        "practicality",
        "actionability",
        "risk_awareness",
        "timeline_clarity",
        "resource_feasibility",
    ),
    "analyst": (
        "data_accuracy",
        "methodology_rigor",
        "insight_depth",
        "correlation_vs_causation",
        "limitation_acknowledgment",
    ),
}


def merge_role_criteria(plan_criteria: Sequence[str], role: str | None) -> list[str]:
    """Union of plan criteria and the role's criteria.

    Plan criteria keep their order at the front; role-specific criteria not
    already present are appended.

    Args:
        plan_criteria: Criteria from the contest plan.
        role: Role the contest is staffing, if any.

    Returns:
        Merged criteria list without duplicates.
    """
    merged = list(dict.fromkeys(plan_criteria))
    if not role:
        return merged
    for criterion in ROLE_SPECIFIC_CRITERIA.get(role, ()):
        if criterion not in merged:
            merged.append(criterion)
    return merged


def is_role_specific_criteria(criterion: str) -> bool:
    """Whether a criterion is not one of the default plan criteria."""
    return criterion not in DEFAULT_PLAN_CRITERIA
