"""
Resume / job match analysis.

Runs: validate input → build prompt → model request → parse response.
"""
from __future__ import annotations

from pm_match.config import Settings, load_settings
from pm_match.errors import InputValidationError
from pm_match.log import get_logger
from pm_match.model_client import ModelClient
from pm_match.models import AnalysisResult
from pm_match.prompts import build_prompt
from pm_match.response_parser import parse_response

log = get_logger(__name__)


def validate_inputs(resume: str, job_description: str, job_url: str | None) -> None:
    if not resume.strip():
        raise InputValidationError("Please provide your resume content.")
    if not job_description.strip() and not (job_url or "").strip():
        raise InputValidationError("Please provide a job description or a public URL.")


def analyze_job_match(
    resume: str,
    job_description: str,
    job_url: str | None = None,
    *,
    client: ModelClient | None = None,
    settings: Settings | None = None,
) -> AnalysisResult:
    validate_inputs(resume, job_description, job_url)
    settings = settings or load_settings()
    client = client or ModelClient.from_settings(settings)

    prompt = build_prompt(
        resume, job_description, job_url, target_role=settings.target_role,
    )
    log.info(
        "Analyzing match — resume=%d chars, job=%d chars, url=%s",
        len(resume), len(job_description), bool((job_url or "").strip()),
    )
    response = client.generate(prompt)
    return parse_response(response)
