"""Hydra Contest Engine.

Score multi-model contests (weighted average, round-robin tournament, Elo),
run interview verdicts that hire, reject or retest models into roles, and
escalate user/arbiter score discrepancies.
"""

from hydra_contest.services.scoring import ScoredModel, compute_scores

__version__ = "0.3.0"
__all__ = [
    "ScoredModel",
    "__version__",
    "compute_scores",
]
