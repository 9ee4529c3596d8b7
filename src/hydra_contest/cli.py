"""CLI for Hydra contest scoring and interview verdicts."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Any

import structlog
import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from hydra_contest import __version__
from hydra_contest.core.config import HydraConfig, load_config
from hydra_contest.core.errors import ConfigurationError, HydraError
from hydra_contest.models import ContestResult, Decision
from hydra_contest.services.contest import ContestService, ScoreUpdate
from hydra_contest.services.discrepancy import exceeds_threshold, score_delta
from hydra_contest.services.llm import LLMClient, create_client
from hydra_contest.services.reporting import generate_scoreboard_report, scheme_columns
from hydra_contest.services.scoring import SCHEMES, ScoredModel, compute_scores
from hydra_contest.services.storage import HydraStore
from hydra_contest.services.verdict import VerdictProgress, VerdictService

# Configure structlog
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = typer.Typer(
    name="hydra-contest",
    help="Hydra contest engine - score model contests and run interview verdicts",
    add_completion=False,
)
console = Console()

ConfigOption = Annotated[
    Path | None, typer.Option("--config", "-c", help="Path to hydra config YAML file")
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-V", help="Verbose output")]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"hydra-contest v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
) -> None:
    """Hydra contest engine CLI."""


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load(config_path: Path | None) -> HydraConfig:
    load_dotenv()
    if config_path is None:
        return HydraConfig()
    return load_config(config_path)


def _create_client(config: HydraConfig, dry_run: bool) -> LLMClient:
    if dry_run:
        console.print("[yellow]DRY RUN MODE - using fake LLM responses[/yellow]")
        return create_client(dry_run=True, seed=config.seed)
    return create_client(api_key=config.get_api_key())


def read_results(path: Path) -> list[ContestResult]:
    """Read contest results from a JSON file (a list, or {"results": [...]})."""
    with path.open(encoding="utf-8") as f:
        data: Any = json.load(f)
    if isinstance(data, dict):
        data = data.get("results", [])
    if not isinstance(data, list):
        msg = f"Expected a list of results in {path}"
        raise ValueError(msg)
    return [ContestResult.model_validate(item) for item in data]


def _scoreboard_table(scored: list[ScoredModel], scheme: str) -> Table:
    table = Table(title=f"Contest ranking ({scheme})")
    table.add_column("Rank", justify="right")
    table.add_column("Model")
    table.add_column("Score", justify="right")
    table.add_column("Avg user", justify="right")
    table.add_column("Avg arbiter", justify="right")
    detail_cols = scheme_columns(scheme)
    for col in detail_cols:
        table.add_column(col.replace("_", " ").capitalize(), justify="right")

    for m in scored:
        table.add_row(
            str(m.rank),
            m.model_id,
            f"{m.final_score:.2f}",
            "-" if m.avg_user is None else f"{m.avg_user:.2f}",
            "-" if m.avg_arbiter is None else f"{m.avg_arbiter:.2f}",
            *(f"{m.details.get(col, 0):g}" for col in detail_cols),
        )
    return table


@app.command()
def score(
    results_path: Annotated[Path, typer.Argument(help="JSON file with judged contest results")],
    scheme: Annotated[
        str | None, typer.Option("--scheme", "-s", help="weighted-avg, tournament or elo")
    ] = None,
    user_weight: Annotated[
        int | None, typer.Option("--user-weight", "-w", help="User score weight (0-100)")
    ] = None,
    report: Annotated[
        Path | None, typer.Option("--report", "-r", help="Write a Markdown report here")
    ] = None,
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Rank contest models from judged results."""
    _setup_logging(verbose)
    try:
        config = _load(config_path)
        scheme = scheme or config.scoring.scheme
        if scheme not in SCHEMES:
            console.print(f"[yellow]Unknown scheme '{scheme}', using weighted-avg[/yellow]")
        weight = config.scoring.user_weight if user_weight is None else user_weight

        results = read_results(results_path)
        scored = compute_scores(
            results,
            scheme=scheme,
            user_weight=weight,
            initial_rating=config.scoring.elo_initial,
            k_factor=config.scoring.k_factor,
        )
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except ConfigurationError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e
    except ValueError as e:
        console.print(f"[red]Invalid results:[/red] {e}")
        raise typer.Exit(1) from e

    if not scored:
        console.print("[yellow]No results to score.[/yellow]")
        return

    console.print(_scoreboard_table(scored, scheme))
    if report is not None:
        report.parent.mkdir(parents=True, exist_ok=True)
        report.write_text(generate_scoreboard_report(scored, scheme), encoding="utf-8")
        console.print(f"Report saved to: {report}")


@app.command()
def discrepancy(
    user_score: Annotated[float, typer.Argument(help="User score (0-10)")],
    arbiter_score: Annotated[float, typer.Argument(help="Arbiter score (0-10)")],
    config_path: ConfigOption = None,
) -> None:
    """Check whether a user/arbiter score gap would be escalated."""
    try:
        config = _load(config_path)
    except (FileNotFoundError, ConfigurationError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    threshold = config.discrepancy.threshold
    delta = score_delta(user_score, arbiter_score)
    if exceeds_threshold(user_score, arbiter_score, threshold):
        console.print(
            f"[bold red]Discrepancy:[/bold red] delta {delta:.1f} >= threshold {threshold}"
        )
    else:
        console.print(f"[green]No discrepancy:[/green] delta {delta:.1f} < threshold {threshold}")


@app.command()
def verdict(
    session_id: Annotated[str, typer.Argument(help="Interview session ID")],
    arbiter_model: Annotated[
        str | None, typer.Option("--arbiter-model", help="Arbiter model to try first")
    ] = None,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="Use fake LLM responses, no API calls")
    ] = False,
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Run the arbiter/moderator verdict for a tested interview."""
    _setup_logging(verbose)
    try:
        config = _load(config_path)
        client = _create_client(config, dry_run)
    except (FileNotFoundError, ConfigurationError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    async def _run() -> VerdictProgress:
        store = HydraStore.from_config(config)
        progress = VerdictProgress()
        try:
            service = VerdictService(config, store, client)
            async for event in service.run_verdict(session_id, arbiter_model):
                progress.apply(event)
                if event.event == "phase":
                    console.print(f"  {event.data['phase']}: {event.data['status']}")
        finally:
            await client.close()
            await store.close()
        return progress

    try:
        progress = asyncio.run(_run())
    except HydraError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    result = progress.result or {}
    console.print(
        f"[bold green]Verdict:[/bold green] {result.get('auto_decision')} "
        f"(avg score {result.get('avg_score')})"
    )
    if progress.verdict:
        console.print(progress.verdict.get("decision_reason", ""))
        console.print(progress.verdict.get("moderator_summary", ""))


@app.command()
def rate(
    result_id: Annotated[str, typer.Argument(help="Stored contest result ID")],
    user_score: Annotated[float | None, typer.Option("--user", help="User score (0-10)")] = None,
    arbiter_score: Annotated[
        float | None, typer.Option("--arbiter", help="Arbiter score (0-10)")
    ] = None,
    round_prompt: Annotated[
        str | None, typer.Option("--round-prompt", help="Round prompt for the Evolutioner")
    ] = None,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="Use fake LLM responses, no API calls")
    ] = False,
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Record scores for a contest result and escalate a discrepancy."""
    _setup_logging(verbose)
    scores = {
        key: value
        for key, value in (("user_score", user_score), ("arbiter_score", arbiter_score))
        if value is not None
    }
    if not scores:
        console.print("[red]Error:[/red] pass --user and/or --arbiter")
        raise typer.Exit(1)

    try:
        config = _load(config_path)
        client = _create_client(config, dry_run)
    except (FileNotFoundError, ConfigurationError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    async def _run() -> ScoreUpdate:
        store = HydraStore.from_config(config)
        try:
            service = ContestService(config, store, client)
            return await service.record_scores(result_id, scores, round_prompt)
        finally:
            await client.close()
            await store.close()

    try:
        update = asyncio.run(_run())
    except HydraError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    result = update.result
    console.print(
        f"[bold green]Scores saved:[/bold green] {result.model_id} "
        f"user={result.user_score} arbiter={result.arbiter_score}"
    )
    outcome = update.discrepancy
    if outcome is None:
        return
    if outcome.triggered:
        console.print(
            f"[bold red]Discrepancy:[/bold red] chronicle {outcome.entry_code} "
            f"(delta {outcome.delta:.1f})"
        )
    else:
        console.print(f"[green]No discrepancy:[/green] delta {outcome.delta:.1f}")


@app.command()
def decide(
    session_id: Annotated[str, typer.Argument(help="Interview session ID")],
    decision: Annotated[str, typer.Argument(help="hire, reject or retest")],
    competency: Annotated[
        list[str] | None,
        typer.Option("--competency", help="Competency to retest (repeatable)"),
    ] = None,
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Apply a final hire/reject/retest decision to a verdict."""
    _setup_logging(verbose)
    if decision not in ("hire", "reject", "retest"):
        console.print(f"[red]Error:[/red] unknown decision '{decision}'")
        raise typer.Exit(1)

    try:
        config = _load(config_path)
    except (FileNotFoundError, ConfigurationError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    async def _run(chosen: Decision) -> None:
        store = HydraStore.from_config(config)
        # Decisions never call an LLM
        client = create_client(dry_run=True, seed=config.seed)
        try:
            service = VerdictService(config, store, client)
            await service.apply_decision(session_id, chosen, competency)
        finally:
            await store.close()

    try:
        asyncio.run(_run(decision))  # type: ignore[arg-type]
    except HydraError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    console.print(f"[bold green]Decision applied:[/bold green] {decision}")


if __name__ == "__main__":
    app()
