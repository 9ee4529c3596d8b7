"""Markdown scoreboard reports for scored contests."""

from __future__ import annotations

from collections.abc import Sequence

from tabulate import tabulate

from hydra_contest.services.scoring import ScoredModel

SCHEME_TITLES = {
    "weighted-avg": "Weighted average",
    "tournament": "Round-robin tournament",
    "elo": "Elo rating",
}


def _fmt(value: float | None, digits: int = 2) -> str:
    return "-" if value is None else f"{value:.{digits}f}"


def scheme_columns(scheme: str) -> tuple[str, ...]:
    """Scheme-specific detail columns shown after the score."""
    if scheme == "tournament":
        return ("wins", "draws", "losses")
    if scheme == "elo":
        return ("elo_initial",)
    return ()


def generate_scoreboard_report(
    scored: Sequence[ScoredModel],
    scheme: str,
    title: str = "Contest scoreboard",
) -> str:
    """Generate a Markdown ranking table.

    Args:
        scored: Ranked models from ``compute_scores``.
        scheme: Scheme the models were scored with.
        title: Report title (markdown heading).

    Returns:
        Markdown report content.
    """
    detail_cols = scheme_columns(scheme)
    criteria = list(dict.fromkeys(k for m in scored for k in m.criteria_avg))

    headers = ["Rank", "Model", "Score", "Avg user", "Avg arbiter", *detail_cols, *criteria]
    rows = []
    for m in scored:
        details = [f"{m.details.get(col, 0):g}" for col in detail_cols]
        criteria_cells = [_fmt(m.criteria_avg.get(c), 1) for c in criteria]
        rows.append(
            [
                m.rank,
                m.model_id,
                _fmt(m.final_score),
                _fmt(m.avg_user),
                _fmt(m.avg_arbiter),
                *details,
                *criteria_cells,
            ]
        )

    lines = [f"# {title}", "", f"Scheme: {SCHEME_TITLES.get(scheme, scheme)}", ""]
    if rows:
        lines.append(tabulate(rows, headers=headers, tablefmt="github"))
    else:
        lines.append("No results.")
    return "\n".join(lines)
