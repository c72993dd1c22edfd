import asyncio
import json
import logging
from pathlib import Path

import typer
from dotenv import load_dotenv

from slipcheck.config import (
    MISSIONS,
    OCRConfig,
    OCREngineKind,
    get_mission_config,
    load_event_config,
    load_ocr_config,
)
from slipcheck.intake import ReceiptFileError, is_receipt_file, load_receipt_image
from slipcheck.integrations.local_export import ReviewExporter
from slipcheck.integrations.ocr import ReceiptRecognizer, VisionEngine
from slipcheck.models import MissionRequirement, ReceiptCheckResult
from slipcheck.pipeline import process_receipt, run_batch
from slipcheck.utils.amounts import format_rupiah
from slipcheck.validation import validate_receipt_for_mission

load_dotenv()

app = typer.Typer(no_args_is_help=True)


@app.callback(invoke_without_command=True)
def callback(ctx: typer.Context):
    """Slipcheck: receipt OCR and mission validation."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


def _resolve_mission(mission_id: int) -> MissionRequirement:
    try:
        return get_mission_config(mission_id)
    except KeyError as e:
        valid = ", ".join(str(m.id) for m in MISSIONS)
        typer.echo(f"Error: unknown mission {mission_id} (choose {valid})", err=True)
        raise typer.Exit(code=1) from e


def _build_recognizer(engine: OCREngineKind | None) -> ReceiptRecognizer:
    config: OCRConfig = load_ocr_config()
    if engine is not None:
        config = config.model_copy(update={"engine": engine})

    try:
        recognizer = ReceiptRecognizer.from_config(config)
        if isinstance(recognizer.engine, VisionEngine):
            # Create the Vision client in the main thread, not in an executor
            _ = recognizer.engine.client
    except Exception as e:
        typer.echo(f"Failed to initialize OCR engine: {e}", err=True)
        raise typer.Exit(code=1) from e
    return recognizer


def _progress_printer(verbose: bool):
    def cli_progress(event_type: str, message: str):
        """Callback to handle progress events and output to CLI."""
        if event_type == "ocr_progress" and not verbose:
            return
        if "error" in event_type or "invalid" in event_type:
            typer.echo(message, err=True)
        else:
            typer.echo(message)

    return cli_progress


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def check(
    image: Path = typer.Argument(..., help="Receipt photo (JPG, PNG, WebP, HEIC)"),
    mission: int = typer.Option(1, "--mission", "-m", help="Mission number"),
    engine: OCREngineKind | None = typer.Option(
        None, "--engine", "-e", help="Recognition engine (overrides config)"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show progress"),
):
    """Check a single receipt against a mission."""
    _configure_logging(verbose)
    requirement = _resolve_mission(mission)
    event = load_event_config()

    try:
        receipt = load_receipt_image(image)
    except ReceiptFileError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    recognizer = _build_recognizer(engine)
    on_progress = _progress_printer(verbose) if not as_json else None

    extraction = asyncio.run(
        process_receipt(receipt, recognizer, on_progress=on_progress)
    )
    verdict = validate_receipt_for_mission(requirement, extraction, event)

    if as_json:
        payload = {
            "file": image.name,
            "mission": requirement.id,
            "extraction": extraction.model_dump(),
            "verdict": verdict.model_dump(),
        }
        typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    amount = format_rupiah(extraction.amount) if extraction.amount else "-"
    typer.echo(f"Mission: {requirement.name}")
    typer.echo(f"Date: {extraction.date or '-'}")
    typer.echo(f"Time: {extraction.time or '-'}")
    typer.echo(f"Amount: {amount}")
    typer.echo(f"Confidence: {extraction.confidence}%")
    if verdict.is_valid:
        typer.echo("Receipt is valid for this mission")
    else:
        typer.echo("Receipt does not meet the mission requirements:")
        for error in verdict.errors:
            typer.echo(f"  - {error}")


@app.command()
def batch(
    folder: Path = typer.Option(
        ..., "--folder", "-f", help="Folder containing receipt photos"
    ),
    mission: int = typer.Option(1, "--mission", "-m", help="Mission number"),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="CSV file to append results to"
    ),
    engine: OCREngineKind | None = typer.Option(
        None, "--engine", "-e", help="Recognition engine (overrides config)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show progress"),
):
    """Check every receipt photo in a folder."""
    _configure_logging(verbose)
    requirement = _resolve_mission(mission)
    event = load_event_config()

    if not folder.is_dir():
        typer.echo(f"Error: folder not found: {folder}", err=True)
        raise typer.Exit(code=1)

    paths = sorted(p for p in folder.iterdir() if is_receipt_file(p))
    if not paths:
        typer.echo("No supported receipt files found in folder.")
        return

    typer.echo(f"Checking {len(paths)} receipts for {requirement.name}")
    recognizer = _build_recognizer(engine)

    results: list[ReceiptCheckResult] = asyncio.run(
        run_batch(
            paths,
            recognizer,
            requirement,
            event,
            on_progress=_progress_printer(verbose),
        )
    )

    valid = sum(1 for r in results if r.verdict and r.verdict.is_valid)
    typer.echo(f"{valid}/{len(results)} receipts valid")

    if output:
        try:
            ReviewExporter().export(results, output)
            typer.echo(f"Results written to {output}")
        except OSError as e:
            typer.echo(f"Failed to write results to {output}: {e}", err=True)
            raise typer.Exit(code=1) from e


@app.command()
def missions():
    """List the event's missions."""
    event = load_event_config()
    typer.echo(f"{event.name} ({event.date.isoformat()})")
    for requirement in MISSIONS:
        typer.echo(
            f"{requirement.id}. {requirement.name}: "
            f"min {format_rupiah(requirement.min_amount)}, "
            f"from {requirement.min_time_display}"
        )


def main():
    app()


if __name__ == "__main__":
    main()
