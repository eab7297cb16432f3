"""
Command-line interface for PM Match.

Commands:
    analyze      - Analyze a resume against a job description or URL
    history      - List saved resumes or jobs
    delete       - Delete a saved entry by id
    save-resume  - Save a resume file to history
"""
from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Optional

import typer

from pm_match.analyzer import analyze_job_match
from pm_match.config import data_dir, ensure_dirs
from pm_match.errors import MatchError
from pm_match.extractor import extract_file
from pm_match.history import JobHistory, ResumeHistory
from pm_match.log import configure_logging, get_logger
from pm_match.models import AnalysisResult, score_band
from pm_match.session import user_message
from pm_match.storage import LocalStore

log = get_logger(__name__)

app = typer.Typer(
    add_completion=False,
    help="Score a resume against a job description with a generative model.",
    no_args_is_help=True,
)


@app.callback()
def _main(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="DEBUG, INFO, WARNING or ERROR (default: LOG_LEVEL or INFO)",
    ),
):
    """PM Match command line."""
    if log_level:
        configure_logging(log_level, force=True)


_BAND_COLORS = {
    "high": typer.colors.GREEN,
    "medium": typer.colors.YELLOW,
    "low": typer.colors.RED,
}


class Kind(str, Enum):
    resumes = "resumes"
    jobs = "jobs"


def _histories() -> tuple[ResumeHistory, JobHistory]:
    ensure_dirs()
    store = LocalStore(data_dir())
    return ResumeHistory(store), JobHistory(store)


def _print_result(result: AnalysisResult) -> None:
    typer.secho(f"\n{result.company_name}", fg=typer.colors.BLUE, bold=True)
    color = _BAND_COLORS.get(score_band(result.score), typer.colors.WHITE)
    typer.secho(f"Match score: {result.score}%", fg=color, bold=True)

    sections = [
        ("Quick take", result.quick_take),
        ("Pitch highlights", result.pitch_highlights),
        ("Strengths", result.strengths),
        ("Skill gaps", result.missing_skills),
    ]
    for title, items in sections:
        typer.echo(f"\n{title}:")
        for item in items:
            typer.echo(f"  • {item}")

    typer.echo("\nOutreach email:")
    typer.echo("=" * 80)
    typer.echo(result.sample_email)
    typer.echo("=" * 80)

    if result.grounding_sources:
        typer.echo("\nSources:")
        for source in result.grounding_sources:
            typer.echo(f"  - {source.title}: {source.uri}")


@app.command("analyze")
def analyze_command(
    resume: Path = typer.Option(..., "--resume", "-r", exists=True, dir_okay=False, help="Resume file (.txt, .md, .pdf, .docx)"),
    job: Optional[Path] = typer.Option(None, "--job", "-j", exists=True, dir_okay=False, help="Job description file"),
    job_text: str = typer.Option("", "--job-text", help="Job description text"),
    url: str = typer.Option("", "--url", "-u", help="Public job posting URL (enables web research)"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result as JSON"),
    no_save: bool = typer.Option(False, "--no-save", help="Do not add the job to history"),
):
    """
    Analyze how well a resume matches a job.

    Examples:\n

        $ pm-match analyze -r resume.pdf -j posting.txt

        $ pm-match analyze -r resume.docx --url https://example.com/jobs/123
    """
    try:
        resume_text = extract_file(resume)
        description = extract_file(job) if job else job_text
        result = analyze_job_match(resume_text, description, url)
    except Exception as exc:
        if not isinstance(exc, MatchError):
            log.error("Unexpected analysis error", exc_info=exc)
        typer.secho(user_message(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if not no_save:
        _, jobs = _histories()
        try:
            jobs.save(result.company_name, description, url)
        except OSError as exc:
            log.warning("Could not save job to history: %s", exc)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        _print_result(result)


@app.command("history")
def history_command(
    kind: Kind = typer.Argument(Kind.resumes, help="Which history to list"),
):
    """List saved resumes or jobs, most recent first."""
    resumes, jobs = _histories()
    entries = resumes.entries if kind is Kind.resumes else jobs.entries
    if not entries:
        typer.echo(f"No saved {kind.value}.")
        return
    for entry in entries:
        url = getattr(entry, "url", "")
        suffix = f"  {url}" if url else ""
        typer.echo(f"{entry.id}  {entry.timestamp}  {entry.name}{suffix}")


@app.command("delete")
def delete_command(
    kind: Kind = typer.Argument(..., help="resumes or jobs"),
    entry_id: str = typer.Argument(..., help="Identifier shown by `history`"),
):
    """Delete one saved entry."""
    resumes, jobs = _histories()
    history = resumes if kind is Kind.resumes else jobs
    if not history.delete(entry_id):
        typer.secho(f"✗ No {kind.value} entry with id {entry_id}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.secho(f"✓ Deleted {entry_id}", fg=typer.colors.GREEN)


@app.command("save-resume")
def save_resume_command(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Resume file"),
    name: str = typer.Option("", "--name", "-n", help="Display name (default: My Resume)"),
):
    """Extract a resume file and save it to history."""
    try:
        text = extract_file(path)
    except MatchError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    resumes, _ = _histories()
    entry = resumes.save(name, text)
    if entry is None:
        typer.secho(f"✗ {path.name} contains no text", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.secho(f"✓ Saved {entry.name} ({entry.id})", fg=typer.colors.GREEN)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
