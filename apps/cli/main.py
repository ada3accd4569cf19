"""Typer CLI entrypoint for typonorm."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Annotated, Literal, cast

import typer

from apps.cli.format_human import render_run_summary
from apps.cli.io import (
    OutputPaths,
    build_output_paths,
    existing_output_files,
    open_surface,
    write_fallback_report_atomic,
    write_run_output_atomic,
)
from typonorm.engine.models import PassIssue, RunReport
from typonorm.engine.options_loader import load_options
from typonorm.orchestrator.pipeline import run_corrections
from typonorm.profiles.loader import DEFAULT_PROFILE_ID, list_profiles, load_profile, resolve_profile
from typonorm.profiles.models import LanguageProfile
from typonorm.surface.base import TextSurface
from typonorm.surface.docx_surface import DocxSurface
from typonorm.utils.errors import SurfaceUnavailableError
from typonorm.utils.events import dump_json, log_event

app = typer.Typer(help="Typographic normalization CLI", rich_markup_mode=None)
ReportMode = Literal["human", "json", "both"]

logger = logging.getLogger("typonorm.cli")

COMMAND_BASE = "typonorm"


@app.callback()
def cli_callback() -> None:
    """CLI root callback to keep `typonorm run` as explicit command form."""


@app.command("run")
def run_command(
    input_path: Annotated[
        Path, typer.Option("--input", exists=True, dir_okay=False, file_okay=True, help="Input .docx or .txt file.")
    ],
    profile: Annotated[str | None, typer.Option(help="Shipped profile id, e.g. fr-FR.")] = None,
    profile_file: Annotated[
        Path | None, typer.Option("--profile-file", help="Profile YAML file to use instead of a shipped one.")
    ] = None,
    options: Annotated[Path | None, typer.Option("--options", help="Run options YAML file.")] = None,
    out_dir: Annotated[Path, typer.Option()] = Path("."),
    report: Annotated[str, typer.Option("--report")] = "human",
    strict: Annotated[
        bool, typer.Option("--strict", help="Exit with code 4 when the run report has errors.")
    ] = False,
    force: Annotated[
        bool, typer.Option("--force", help="Overwrite outputs when they already exist.")
    ] = False,
    no_overwrite: Annotated[
        bool,
        typer.Option(
            "--no-overwrite",
            help="Fail when outputs already exist.",
        ),
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", help="Log pass events at INFO level.")] = False,
) -> None:
    """Normalize one document and write fixed output artifacts."""

    if verbose:
        _configure_logging(logging.INFO)

    paths = build_output_paths(out_dir, input_path)

    normalized_report = report.lower().strip()
    if normalized_report not in {"human", "json", "both"}:
        typer.echo("ERROR: --report must be one of: human, json, both.")
        _safe_write_fallback(paths, "ArgumentValidationError", "invalid report mode", "args")
        raise typer.Exit(code=1)
    report_mode = cast(ReportMode, normalized_report)

    if profile is not None and profile_file is not None:
        typer.echo("ERROR: --profile and --profile-file cannot be used together.")
        _safe_write_fallback(paths, "ArgumentConflict", "conflicting profile flags", "args")
        raise typer.Exit(code=1)

    if force and no_overwrite:
        typer.echo("ERROR: --force and --no-overwrite cannot be used together.")
        _safe_write_fallback(paths, "ArgumentConflict", "conflicting overwrite flags", "args")
        raise typer.Exit(code=1)

    existing = existing_output_files(paths)
    if existing and no_overwrite:
        typer.echo("ERROR: outputs already exist and --no-overwrite is enabled.")
        raise typer.Exit(code=1)
    if existing:
        names = ", ".join(path.name for path in existing)
        typer.echo(f"INFO: overwriting existing outputs: {names}")

    run_report: RunReport | None = None
    surface: TextSurface | None = None
    profile_model: LanguageProfile | None = None
    exit_code = 1
    reason = "unexpected error"
    failure_stage = "unknown"
    failure: Exception | None = None

    try:
        failure_stage = "load_profile"
        run_issues: list[PassIssue] = []
        if profile_file is not None:
            profile_model = load_profile(profile_file)
        else:
            profile_model, profile_issue = resolve_profile(profile or DEFAULT_PROFILE_ID)
            if profile_issue is not None:
                run_issues.append(profile_issue)
                typer.echo(f"WARNING(profile): {profile_issue.message}")
        failure_stage = "load_options"
        run_options = load_options(options)
        failure_stage = "open_input"
        surface = open_surface(input_path)
        failure_stage = "pipeline"
        run_report = run_corrections(
            surface,
            profile_model,
            run_options,
            source=str(input_path),
            issues=run_issues,
        )
        if strict and not run_report.passed:
            exit_code = 4
            reason = "run report has errors"
        else:
            if run_report.warning_count or run_report.error_count:
                typer.echo(
                    "WARNING(report): issues detected "
                    f"(errors={run_report.error_count}, warnings={run_report.warning_count})."
                )
            exit_code = 0
            reason = "success"
    except SurfaceUnavailableError as exc:
        failure = exc
        exit_code = 2
        reason = "input unavailable"
        typer.echo(f"ERROR: {reason}: {exc}")
    except Exception as exc:  # noqa: BLE001
        failure = exc
        exit_code = 1
        reason = "internal error"
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")

    if run_report is not None and surface is not None:
        if report_mode in {"human", "both"}:
            typer.echo(render_run_summary(run_report, command_base=COMMAND_BASE))
        if report_mode in {"json", "both"}:
            typer.echo(dump_json(run_report.model_dump(mode="json")))
        try:
            write_run_output_atomic(paths, surface, run_report)
        except Exception as write_exc:  # noqa: BLE001
            exit_code = 1
            reason = "write output failed"
            typer.echo(f"ERROR: {reason}: {write_exc}")
            _safe_write_fallback(
                paths,
                type(write_exc).__name__,
                str(write_exc),
                "write_output",
                base_report=run_report,
            )
    else:
        _safe_write_fallback(
            paths,
            type(failure).__name__ if failure is not None else "UnknownError",
            str(failure) if failure is not None else reason,
            failure_stage,
            profile_id=profile_model.id if profile_model is not None else profile,
        )

    log_event(logger, logging.INFO, "cli_run_done", exit_code=exit_code, reason=reason)
    if exit_code == 0:
        typer.echo("INFO: success")
    elif exit_code == 4:
        typer.echo("ERROR: run report has errors (strict mode)")

    raise typer.Exit(code=exit_code)


@app.command("profiles")
def profiles_command() -> None:
    """List shipped locale profiles."""

    try:
        profiles = list_profiles()
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc
    for item in profiles:
        marker = " (default)" if item.id == DEFAULT_PROFILE_ID else ""
        typer.echo(f"{item.id}\t{item.meta.label}{marker}")


@app.command("styles")
def styles_command(
    input_path: Annotated[
        Path, typer.Option("--input", exists=True, dir_okay=False, file_okay=True, help="Input .docx file.")
    ],
) -> None:
    """List the paragraph and character styles of a .docx document."""

    try:
        surface = DocxSurface.open(input_path)
    except SurfaceUnavailableError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=2) from exc

    typer.echo("paragraph_styles:")
    for name in surface.paragraph_styles():
        typer.echo(f"  {name}")
    typer.echo("character_styles:")
    for name in surface.character_styles():
        typer.echo(f"  {name}")


def _configure_logging(level: int) -> None:
    logging.basicConfig(level=level, format="%(levelname)s %(name)s %(message)s", stream=sys.stderr)
    logging.getLogger("typonorm").setLevel(level)


def _safe_write_fallback(
    paths: OutputPaths,
    error_type: str,
    error_message: str,
    stage: str,
    *,
    profile_id: str | None = None,
    base_report: RunReport | None = None,
) -> None:
    try:
        write_fallback_report_atomic(
            paths,
            error_type=error_type,
            error_message=error_message,
            stage=stage,
            profile_id=profile_id,
            base_report=base_report,
        )
    except Exception:  # noqa: BLE001
        pass


def main() -> None:
    """Console script entrypoint."""

    app()


if __name__ == "__main__":
    main()
