"""Pull the JSON analysis object out of the model's free-text answer."""
from __future__ import annotations

import json
import re
from typing import Any

from pm_match.errors import EmptyResponseError, InvalidFormatError, MissingFieldsError
from pm_match.log import get_logger
from pm_match.model_client import ModelResponse
from pm_match.models import RESULT_FIELDS, AnalysisResult, GroundingSource

log = get_logger(__name__)

DEFAULT_SOURCE_TITLE = "External Source"

_FENCED_JSON_RE = re.compile(r"```json\s*\n?(.*?)\n?\s*```", re.DOTALL | re.IGNORECASE)


def extract_json_candidate(text: str) -> str:
    """Return the substring most likely to hold the JSON object.

    A ```json fenced block wins; otherwise the span from the first ``{`` to
    the last ``}``. Raises InvalidFormatError when neither is present.
    """
    text = text.strip()
    fenced = _FENCED_JSON_RE.search(text)
    if fenced:
        return fenced.group(1).strip()

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise InvalidFormatError()
    return text[start:end + 1]


def grounding_sources(chunks: list[dict[str, Any]]) -> list[GroundingSource]:
    sources: list[GroundingSource] = []
    for chunk in chunks:
        web = chunk.get("web")
        if not web:
            continue
        sources.append(
            GroundingSource(
                title=web.get("title") or DEFAULT_SOURCE_TITLE,
                uri=web.get("uri") or "",
            )
        )
    return sources


def parse_response(response: ModelResponse) -> AnalysisResult:
    text = (response.text or "").strip()
    if not text:
        raise EmptyResponseError()

    try:
        data = json.loads(extract_json_candidate(text))
    except (InvalidFormatError, json.JSONDecodeError) as exc:
        log.error("Failed to parse AI response as JSON: %s", exc)
        log.debug("Raw response:\n%s", text)
        raise InvalidFormatError() from exc
    if not isinstance(data, dict):
        log.error("AI response JSON is a %s, not an object", type(data).__name__)
        raise InvalidFormatError()

    missing = [name for name in RESULT_FIELDS if name not in data]
    if missing:
        log.error("AI response missing fields: %s", ", ".join(missing))
        raise MissingFieldsError(missing)

    sources = grounding_sources(response.grounding_chunks)
    try:
        result = AnalysisResult.from_dict(data, grounding_sources=sources or None)
    except (TypeError, ValueError) as exc:
        # e.g. "strengths": null
        log.error("AI response has a malformed field: %s", exc)
        log.debug("Raw response:\n%s", text)
        raise InvalidFormatError() from exc
    log.info(
        "Parsed analysis — company=%s, score=%s, sources=%d",
        result.company_name, result.score, len(sources),
    )
    return result
