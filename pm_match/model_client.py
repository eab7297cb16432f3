"""Send analysis prompts to the generative model and normalize its answer.

Two providers are supported:

* ``gemini`` (default) through google-genai, with the Google Search tool
  attached when the prompt asks for it. Search results come back as
  grounding chunks.
* ``groq`` through the OpenAI-compatible chat completions API. There is no
  search tool there; the search flag is ignored.

Every provider response, whatever its shape, goes through
:func:`normalize_response` and comes out as a :class:`ModelResponse`.
Provider exceptions go through :func:`classify_provider_error`. Nothing is
retried.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

import httpx
import openai
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from pm_match.config import Settings
from pm_match.credentials import current_key
from pm_match.errors import (
    EntitlementError,
    MissingCredentialError,
    ProviderError,
    ProviderTimeoutError,
    QuotaExceededError,
)
from pm_match.log import get_logger
from pm_match.prompts import Prompt

log = get_logger(__name__)

GROQ_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_ENTITLEMENT_MARKERS: tuple[str, ...] = ("Requested entity was not found",)


@dataclass(frozen=True)
class ModelResponse:
    text: str
    grounding_chunks: list[dict[str, Any]] = field(default_factory=list)


# ── Response shape adapter ───────────────────────────────────────────────


def _get(obj: Any, *names: str) -> Any:
    """First present attribute / key among *names* (dicts or objects)."""
    if obj is None:
        return None
    for name in names:
        if isinstance(obj, dict):
            if obj.get(name) is not None:
                return obj[name]
        else:
            value = getattr(obj, name, None)
            if value is not None:
                return value
    return None


def _first(items: Any) -> Any:
    if not items:
        return None
    return items[0]


def _chunk_to_dict(chunk: Any) -> dict[str, Any]:
    web = _get(chunk, "web")
    if web is None:
        return {}
    return {"web": {"title": _get(web, "title"), "uri": _get(web, "uri")}}


def _gemini_text(candidate: Any) -> str:
    parts = _get(_get(candidate, "content"), "parts") or []
    return "".join(_get(p, "text") or "" for p in parts if not _get(p, "thought"))


def normalize_response(raw: Any) -> ModelResponse:
    """Map any supported provider response onto a ModelResponse.

    Supported shapes: google-genai ``GenerateContentResponse`` objects,
    Gemini REST JSON (camelCase or snake_case keys), OpenAI chat completion
    objects or dicts, and bare strings.
    """
    if raw is None:
        return ModelResponse(text="")
    if isinstance(raw, str):
        return ModelResponse(text=raw)

    choices = _get(raw, "choices")
    if choices is not None:
        message = _get(_first(choices), "message")
        return ModelResponse(text=_get(message, "content") or "")

    candidates = _get(raw, "candidates")
    if candidates is not None or _get(raw, "text") is not None:
        candidate = _first(candidates)
        text = ""
        if not isinstance(raw, dict):
            text = getattr(raw, "text", None) or ""
        if not text and candidate is not None:
            text = _gemini_text(candidate)
        metadata = _get(candidate, "grounding_metadata", "groundingMetadata")
        chunks = _get(metadata, "grounding_chunks", "groundingChunks") or []
        return ModelResponse(
            text=text or _get(raw, "text") or "",
            grounding_chunks=[c for c in (_chunk_to_dict(ch) for ch in chunks) if c],
        )

    raise ProviderError(f"Unrecognized model response type: {type(raw).__name__}")


# ── Error mapping ────────────────────────────────────────────────────────


def _status_of(exc: BaseException) -> int | None:
    for attr in ("status_code", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    return None


def classify_provider_error(
    exc: BaseException,
    entitlement_markers: Iterable[str] = DEFAULT_ENTITLEMENT_MARKERS,
) -> ProviderError:
    """Translate a provider/client exception into our error taxonomy."""
    if isinstance(exc, ProviderError):
        return exc

    message = str(exc) or exc.__class__.__name__
    status = _status_of(exc)
    low = message.lower()

    if any(marker and marker in message for marker in entitlement_markers):
        return EntitlementError(message)
    if isinstance(exc, (TimeoutError, httpx.TimeoutException, openai.APITimeoutError)) or status in (408, 504):
        return ProviderTimeoutError(f"The request timed out: {message}")
    if status == 429 or "resource_exhausted" in low or "quota" in low or "rate limit" in low:
        return QuotaExceededError(f"Quota exceeded: {message}")
    if status in (401, 403) or "api key not valid" in low or "api_key_invalid" in low:
        return MissingCredentialError(f"API key not configured or invalid: {message}")
    return ProviderError(message)


# ── Client ───────────────────────────────────────────────────────────────


class ModelClient:
    def __init__(
        self,
        provider: str = "gemini",
        model: str | None = None,
        api_key: str | None = None,
        entitlement_markers: Iterable[str] = DEFAULT_ENTITLEMENT_MARKERS,
    ) -> None:
        self.provider = provider
        self.model = model or Settings(provider=provider).model
        self.api_key = api_key
        self.entitlement_markers = tuple(entitlement_markers)

    @classmethod
    def from_settings(cls, settings: Settings, api_key: str | None = None) -> "ModelClient":
        return cls(
            provider=settings.provider,
            model=settings.model,
            api_key=api_key,
            entitlement_markers=settings.entitlement_markers,
        )

    def generate(self, prompt: Prompt) -> ModelResponse:
        # Key is resolved per call so a newly selected key takes effect.
        api_key = self.api_key or current_key(self.provider)
        if not api_key:
            raise MissingCredentialError()

        log.info(
            "Requesting analysis from %s (%s, search=%s)",
            self.provider, self.model, prompt.use_search,
        )
        try:
            if self.provider == "groq":
                raw = self._call_groq(api_key, prompt)
            else:
                raw = self._call_gemini(api_key, prompt)
        except (genai_errors.APIError, openai.OpenAIError, httpx.HTTPError, TimeoutError) as exc:
            err = classify_provider_error(exc, self.entitlement_markers)
            log.error("%s request failed (%s): %s", self.provider, type(err).__name__, exc)
            raise err from exc

        response = normalize_response(raw)
        log.info(
            "Received %d characters, %d grounding chunk(s)",
            len(response.text), len(response.grounding_chunks),
        )
        return response

    def _call_gemini(self, api_key: str, prompt: Prompt) -> Any:
        client = genai.Client(api_key=api_key)
        tools = [types.Tool(google_search=types.GoogleSearch())] if prompt.use_search else None
        return client.models.generate_content(
            model=self.model,
            contents=prompt.text,
            config=types.GenerateContentConfig(
                system_instruction=prompt.system_instruction,
                tools=tools,
            ),
        )

    def _call_groq(self, api_key: str, prompt: Prompt) -> Any:
        if prompt.use_search:
            log.warning("Groq has no search tool — analysing the URL without web research")
        client = openai.OpenAI(api_key=api_key, base_url=GROQ_BASE_URL)
        return client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": prompt.system_instruction},
                {"role": "user", "content": prompt.text},
            ],
            temperature=0.3,
        )
