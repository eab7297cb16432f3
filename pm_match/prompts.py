"""Prompt text for the resume / job match analysis."""
from __future__ import annotations

from dataclasses import dataclass

DEFAULT_TARGET_ROLE = "Product Manager"


@dataclass(frozen=True)
class Prompt:
    text: str
    system_instruction: str
    use_search: bool = False


_PROMPT = """\
Analyze this {role} application and return the analysis in a strictly formatted JSON block.

RESUME/EXPERIENCE DATA:
{resume}

JOB DESCRIPTION DATA:
{job_description}
"""

_URL_SECTION = """

CRITICAL: A direct Job URL was provided: {url}.
Use the Google Search tool to:
1. Specifically identify the hiring company name (e.g., "PagerDuty", "Stripe", "CrowdStrike") from this URL.
2. Confirm the specific role requirements if the JD text is missing.
3. Research the company's current product strategy, culture, and recent news.
"""

_SYSTEM_INSTRUCTION = """\
You are an elite {role} Career Coach and Hiring Manager.
Analyze the match between a candidate's resume and a job description.

CORE REQUIREMENT:
Identify the official "Company Name" exactly. If a URL is provided, use Google Search to find the official brand name.
Use the clean brand name (e.g. "PagerDuty" instead of "pagerduty.com").

OUTPUT FORMAT:
You MUST return a JSON object. Do not add any text before or after the JSON.
The JSON must follow this structure:
{{
  "companyName": "String",
  "score": number (0-100),
  "missingSkills": ["String", ...],
  "strengths": ["String", ...],
  "quickTake": ["Exactly 3 high-impact bullets summarizing the fit"],
  "pitchHighlights": ["Exactly 3 ultra-concise bullets explaining the match"],
  "sampleEmail": "A professional outreach email to a Hiring Manager. The email MUST include a section exactly titled 'Why I’m a Strong Fit' followed by 3 bulleted points using the '•' character. CRITICAL: Do NOT use markdown bolding (like **bold**) anywhere in the email. Bullets should be plain text like '• Skill Title: Description'. Keep the total email professional and under 160 words."
}}"""


def system_instruction(target_role: str = DEFAULT_TARGET_ROLE) -> str:
    return _SYSTEM_INSTRUCTION.format(role=target_role)


def build_prompt(
    resume: str,
    job_description: str,
    job_url: str | None = None,
    *,
    target_role: str = DEFAULT_TARGET_ROLE,
) -> Prompt:
    """Assemble the instruction for one analysis; no validation here."""
    text = _PROMPT.format(
        role=target_role,
        resume=resume,
        job_description=job_description or "Text not provided; refer to URL below.",
    )
    url = (job_url or "").strip()
    if url:
        text += _URL_SECTION.format(url=url)
    return Prompt(
        text=text,
        system_instruction=system_instruction(target_role),
        use_search=bool(url),
    )
