"""Cinema Pippin CLI entry point.

``cinepippin find`` scans a film's SRT track for fill-in-the-blank triplets
and writes one sequence file per selected sequence.

``cinepippin judge`` runs sequence files through the three-round
generate/judge/substitute pipeline against a local Ollama model, prints a
ranked summary and optionally exports playable SRT sets.
"""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from cinepippin.config import PipelineConfig
from cinepippin.errors import PippinError
from cinepippin.inference.ollama import OllamaClient
from cinepippin.ingestion.subtitles import parse_subtitles
from cinepippin.judging.constraints import ConstraintPool
from cinepippin.judging.export import export_judged, write_results
from cinepippin.judging.pipeline import DEFAULT_RETRY_POLICY, JudgingPipeline
from cinepippin.judging.runner import SequenceOutcome, judge_sequences
from cinepippin.judging.writer import ComedyWriter
from cinepippin.triplets.assembler import SequenceAssembler
from cinepippin.triplets.export import read_sequence_file, write_sequences
from cinepippin.triplets.finder import TripletFinder
from cinepippin.triplets.optimized import OptimizedTripletFinder
from cinepippin.triplets.policy import POLICY_NAMES, KeywordChainPolicy, get_policy
from cinepippin.triplets.selection import TARGET_SEQUENCES, select_sequences
from cinepippin.wordfreq import WordFrequencyTable

app = typer.Typer(
    name="cinepippin",
    help="Cinema Pippin: find fill-in-the-blank subtitle triplets and judge comedic rewrites.",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)

_VALID_SUBTITLE_EXTS = {".srt"}
_VALID_SEQUENCE_EXTS = {".txt"}


def _configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("cinepippin")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(console=err_console, show_path=False, markup=False))
    logger.propagate = False


def _input_error(message: str) -> NoReturn:
    err_console.print(Panel(message, title="[red]Input Error[/red]", border_style="red"))
    raise typer.Exit(1)


def _pipeline_error(exc: Exception) -> NoReturn:
    err_console.print(Panel(escape(str(exc)), title="[red]Pipeline Error[/red]", border_style="red"))
    raise typer.Exit(1)


def _check_input(path: Path, valid_exts: set[str], kind: str) -> None:
    # Extension first so a wrong-format path gets our panel even if it is missing.
    if path.suffix.lower() not in valid_exts:
        _input_error(
            f"Unsupported {kind} format: [bold]{path.suffix or '(none)'}[/bold]\n"
            f"Supported formats: {', '.join(sorted(valid_exts))}"
        )
    if not path.exists():
        _input_error(f"File not found: [bold]{path}[/bold]")


def _load_config(**overrides) -> PipelineConfig:
    try:
        return PipelineConfig.from_env(**overrides)
    except ValidationError as exc:
        _input_error(f"Invalid configuration:\n{escape(str(exc))}")


@app.command()
def find(
    subtitle: Annotated[
        Path,
        typer.Argument(file_okay=True, dir_okay=False, resolve_path=True, help="Subtitle file (SRT)."),
    ],
    out: Annotated[
        Optional[Path],
        typer.Option("--out", "-o", file_okay=False, resolve_path=True,
                     help="Directory for sequence files (default: CINEPIPPIN_OUTPUT_DIR or ./outputs)."),
    ] = None,
    policy: Annotated[
        str,
        typer.Option("--policy", "-p", help=f"Triplet acceptance policy: {', '.join(POLICY_NAMES)}."),
    ] = "keyword-chain",
    optimized: Annotated[
        bool,
        typer.Option("--optimized/--standard", help="Use the indexed finder or the plain scan."),
    ] = True,
    max_sequences: Annotated[
        int,
        typer.Option("--max-sequences", "-n", min=1, help="Maximum number of sequences to keep."),
    ] = TARGET_SEQUENCES,
    wordlist: Annotated[
        Optional[Path],
        typer.Option("--wordlist", dir_okay=False, resolve_path=True,
                     help="WORD;COUNT frequency list used to prefer rare keywords."),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", help="Log every scan decision.")] = False,
) -> None:
    """Find triplet sequences in a subtitle file and write them as sequence files."""
    _configure_logging(verbose)
    _check_input(subtitle, _VALID_SUBTITLE_EXTS, "subtitle")
    try:
        acceptance = get_policy(policy)
    except ValueError as exc:
        _input_error(str(exc))
    config = _load_config(output_dir=out, wordlist=wordlist)

    try:
        frames = parse_subtitles(subtitle)
        console.print(f"[green]Parsed[/green] {len(frames)} subtitle frames from {subtitle.name}")

        finder_cls = OptimizedTripletFinder if optimized else TripletFinder
        assembler = SequenceAssembler(finder_cls(acceptance))
        if isinstance(acceptance, KeywordChainPolicy):
            sequences = assembler.assemble_per_opening(frames)
        else:
            sequences = assembler.assemble(frames)

        frequencies = WordFrequencyTable(config.wordlist) if config.wordlist else None
        selected = select_sequences(sequences, frequencies, target=max_sequences)
        paths = write_sequences(selected, config.output_dir, subtitle.stem)
    except PippinError as exc:
        _pipeline_error(exc)

    if not paths:
        console.print(Panel(
            f"No sequences found in [bold]{subtitle.name}[/bold] with the '{policy}' policy.",
            title="[yellow]Nothing Found[/yellow]",
            border_style="yellow",
        ))
        return

    keywords = ", ".join(seq.keyword for seq in selected)
    console.print(Panel(
        f"[bold green]Wrote {len(paths)} sequence file(s)[/bold green]\n"
        f"Directory: {config.output_dir}\n"
        f"Keywords: {keywords}",
        title="Cinema Pippin",
        border_style="green",
    ))


@app.command()
def judge(
    sequence_files: Annotated[
        list[Path],
        typer.Argument(dir_okay=False, resolve_path=True, help="Sequence files written by `find`."),
    ],
    constraints: Annotated[
        Optional[Path],
        typer.Option("--constraints", "-c", dir_okay=False, resolve_path=True,
                     help="Constraint pool, one 'Name -- description' per line."),
    ] = None,
    model: Annotated[Optional[str], typer.Option("--model", help="Ollama model name.")] = None,
    ollama_url: Annotated[Optional[str], typer.Option("--ollama-url", help="Ollama base URL.")] = None,
    workers: Annotated[
        Optional[int],
        typer.Option("--workers", "-w", min=1, help="Sequences judged concurrently."),
    ] = None,
    max_retries: Annotated[
        Optional[int],
        typer.Option("--max-retries", min=0, help="Retries per model call before giving up on a sequence."),
    ] = None,
    seed: Annotated[Optional[int], typer.Option("--seed", help="Seed for constraint draws and shuffles.")] = None,
    export: Annotated[
        Optional[Path],
        typer.Option("--export", "-e", file_okay=False, resolve_path=True,
                     help="Write ranked SRT sets and answers.json into this directory."),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", help="Log raw model responses.")] = False,
) -> None:
    """Judge sequence files with a local language model and rank them by quality."""
    _configure_logging(verbose)
    for path in sequence_files:
        _check_input(path, _VALID_SEQUENCE_EXTS, "sequence file")
    config = _load_config(
        constraints_file=constraints,
        model=model,
        ollama_url=ollama_url,
        workers=workers,
        max_retries=max_retries,
    )

    try:
        pool = ConstraintPool.from_file(config.constraints_file)
        labelled = [(path.stem, read_sequence_file(path)) for path in sequence_files]
    except PippinError as exc:
        _pipeline_error(exc)

    client = OllamaClient(config.ollama_url, config.model, timeout_s=config.request_timeout_s)
    try:
        client.wait_until_ready()
    except PippinError as exc:
        _pipeline_error(exc)

    retry_policy = replace(
        DEFAULT_RETRY_POLICY,
        max_retries=config.max_retries,
        initial_delay_ms=config.retry_delay_ms,
    )
    pipeline = JudgingPipeline(ComedyWriter(client), pool, retry_policy=retry_policy)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Judging sequences...", total=len(labelled))

        def _advance(_outcome: SequenceOutcome) -> None:
            progress.advance(task)

        outcomes = judge_sequences(
            pipeline, labelled, max_workers=config.workers, seed=seed, progress_callback=_advance
        )

    _print_summary(outcomes)

    if export is not None:
        export.mkdir(parents=True, exist_ok=True)
        ranks = export_judged(outcomes, export)
        write_results(outcomes, export / "results.json")
        console.print(f"[green]Exported[/green] {len(ranks)} rank(s) to {export}")

    if not any(o.ok for o in outcomes):
        raise typer.Exit(1)


def _print_summary(outcomes: list[SequenceOutcome]) -> None:
    table = Table(title="Judged sequences")
    table.add_column("#", justify="right")
    table.add_column("Sequence")
    table.add_column("Keyword")
    table.add_column("Best word")
    table.add_column("Score", justify="right")
    for n, outcome in enumerate(outcomes, start=1):
        if outcome.result is not None:
            r = outcome.result
            table.add_row(str(n), outcome.label, r.keyword, r.best_word, f"{r.quality_score}/10")
        else:
            table.add_row(str(n), outcome.label, outcome.sequence.keyword, "-", "[red]failed[/red]")
    console.print(table)

    for outcome in outcomes:
        if outcome.error is not None:
            err_console.print(Panel(
                escape(str(outcome.error)),
                title=f"[red]{outcome.label} skipped[/red]",
                border_style="red",
            ))
