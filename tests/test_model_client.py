from __future__ import annotations

from types import SimpleNamespace

import httpx
import openai
import pytest

from pm_match import model_client as model_client_module
from pm_match.errors import (
    EntitlementError,
    MissingCredentialError,
    ProviderError,
    ProviderTimeoutError,
    QuotaExceededError,
)
from pm_match.model_client import (
    ModelClient,
    ModelResponse,
    classify_provider_error,
    normalize_response,
)
from pm_match.prompts import build_prompt


class _FakeOpenAIError(openai.OpenAIError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _gemini_object(text, chunks=None):
    metadata = SimpleNamespace(grounding_chunks=chunks) if chunks is not None else None
    candidate = SimpleNamespace(
        content=SimpleNamespace(parts=[SimpleNamespace(text=text, thought=None)]),
        grounding_metadata=metadata,
    )
    return SimpleNamespace(text=text, candidates=[candidate])


# ── normalize_response, one test per supported shape ─────────────────────


def test_normalize_bare_string():
    assert normalize_response("hello") == ModelResponse(text="hello")


def test_normalize_none_is_empty():
    assert normalize_response(None).text == ""


def test_normalize_gemini_object_with_grounding():
    raw = _gemini_object(
        '{"a": 1}',
        chunks=[
            SimpleNamespace(web=SimpleNamespace(title="Acme blog", uri="https://acme.example/blog")),
            SimpleNamespace(web=None, retrieved_context=SimpleNamespace(uri="gs://x")),
            SimpleNamespace(web=SimpleNamespace(title=None, uri="https://news.example")),
        ],
    )
    response = normalize_response(raw)
    assert response.text == '{"a": 1}'
    assert response.grounding_chunks == [
        {"web": {"title": "Acme blog", "uri": "https://acme.example/blog"}},
        {"web": {"title": None, "uri": "https://news.example"}},
    ]


def test_normalize_gemini_object_without_metadata():
    response = normalize_response(_gemini_object("plain"))
    assert response == ModelResponse(text="plain", grounding_chunks=[])


def test_normalize_gemini_object_falls_back_to_parts():
    raw = _gemini_object("from parts")
    raw.text = None
    assert normalize_response(raw).text == "from parts"


def test_normalize_gemini_rest_dict_camel_case():
    raw = {
        "candidates": [{
            "content": {"parts": [{"text": "part one "}, {"text": "part two"}]},
            "groundingMetadata": {
                "groundingChunks": [{"web": {"uri": "https://a.example", "title": "A"}}],
            },
        }],
    }
    response = normalize_response(raw)
    assert response.text == "part one part two"
    assert response.grounding_chunks == [{"web": {"title": "A", "uri": "https://a.example"}}]


def test_normalize_gemini_dict_snake_case():
    raw = {
        "text": "dumped",
        "candidates": [{"grounding_metadata": {"grounding_chunks": [{"web": {"uri": "u", "title": "t"}}]}}],
    }
    response = normalize_response(raw)
    assert response.text == "dumped"
    assert response.grounding_chunks == [{"web": {"title": "t", "uri": "u"}}]


def test_normalize_openai_object():
    raw = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="groq says"))])
    assert normalize_response(raw) == ModelResponse(text="groq says")


def test_normalize_openai_dict():
    raw = {"choices": [{"message": {"role": "assistant", "content": "dict says"}}]}
    assert normalize_response(raw).text == "dict says"


def test_normalize_unknown_shape_raises():
    with pytest.raises(ProviderError):
        normalize_response(42)


# ── classify_provider_error ──────────────────────────────────────────────


def test_entitlement_marker_wins():
    err = classify_provider_error(_FakeOpenAIError("404 NOT_FOUND. Requested entity was not found.", 404))
    assert isinstance(err, EntitlementError)


def test_entitlement_markers_are_configurable():
    exc = _FakeOpenAIError("tier does not include grounding")
    assert isinstance(classify_provider_error(exc, ["does not include grounding"]), EntitlementError)
    assert type(classify_provider_error(exc)) is ProviderError


def test_quota_by_status_and_message():
    assert isinstance(classify_provider_error(_FakeOpenAIError("slow down", 429)), QuotaExceededError)
    assert isinstance(classify_provider_error(_FakeOpenAIError("RESOURCE_EXHAUSTED: quota")), QuotaExceededError)


def test_timeouts():
    assert isinstance(classify_provider_error(TimeoutError("deadline")), ProviderTimeoutError)
    assert isinstance(classify_provider_error(httpx.ReadTimeout("read timed out")), ProviderTimeoutError)
    request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
    assert isinstance(classify_provider_error(openai.APITimeoutError(request=request)), ProviderTimeoutError)
    assert isinstance(classify_provider_error(_FakeOpenAIError("gateway", 504)), ProviderTimeoutError)


def test_invalid_key():
    err = classify_provider_error(_FakeOpenAIError("API key not valid. Please pass a valid API key.", 400))
    assert isinstance(err, MissingCredentialError)
    assert isinstance(classify_provider_error(_FakeOpenAIError("nope", 401)), MissingCredentialError)


def test_other_errors_keep_original_message():
    err = classify_provider_error(_FakeOpenAIError("500 INTERNAL. Something broke", 500))
    assert type(err) is ProviderError
    assert str(err) == "500 INTERNAL. Something broke"


# ── ModelClient.generate ─────────────────────────────────────────────────


class _FakeGenaiClient:
    calls: list[dict] = []
    response = None
    error: BaseException | None = None

    def __init__(self, api_key):
        self.api_key = api_key
        self.models = SimpleNamespace(generate_content=self._generate)

    def _generate(self, **kwargs):
        type(self).calls.append({"api_key": self.api_key, **kwargs})
        if type(self).error is not None:
            raise type(self).error
        return type(self).response


@pytest.fixture
def fake_genai(monkeypatch):
    _FakeGenaiClient.calls = []
    _FakeGenaiClient.response = _gemini_object("{}")
    _FakeGenaiClient.error = None
    monkeypatch.setattr(model_client_module.genai, "Client", _FakeGenaiClient)
    return _FakeGenaiClient


def test_missing_key_raises_before_any_request(fake_genai):
    client = ModelClient(provider="gemini", model="gemini-test")
    with pytest.raises(MissingCredentialError, match="API key not configured"):
        client.generate(build_prompt("r", "j"))
    assert fake_genai.calls == []


def test_gemini_request_without_url_has_no_search_tool(fake_genai, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "env-key")
    response = ModelClient(provider="gemini", model="gemini-test").generate(build_prompt("r", "j"))

    call = fake_genai.calls[0]
    assert call["api_key"] == "env-key"
    assert call["model"] == "gemini-test"
    assert "RESUME/EXPERIENCE DATA" in call["contents"]
    assert call["config"].tools is None
    assert "companyName" in call["config"].system_instruction
    assert response.text == "{}"


def test_gemini_request_with_url_enables_search(fake_genai):
    client = ModelClient(provider="gemini", model="gemini-test", api_key="explicit")
    client.generate(build_prompt("r", "", "https://jobs.example/1"))
    tools = fake_genai.calls[0]["config"].tools
    assert tools and tools[0].google_search is not None


def test_gemini_errors_are_classified(fake_genai):
    fake_genai.error = _FakeOpenAIError("Requested entity was not found.", 404)
    client = ModelClient(provider="gemini", model="gemini-test", api_key="k")
    with pytest.raises(EntitlementError):
        client.generate(build_prompt("r", "", "https://jobs.example/1"))


def test_groq_uses_chat_completions(monkeypatch):
    captured = {}

    class _FakeOpenAI:
        def __init__(self, api_key, base_url):
            captured["api_key"] = api_key
            captured["base_url"] = base_url
            self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

        def _create(self, **kwargs):
            captured.update(kwargs)
            return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="groq json"))])

    monkeypatch.setattr(model_client_module.openai, "OpenAI", _FakeOpenAI)
    monkeypatch.setenv("GROQ_API_KEY", "gsk_test")

    client = ModelClient(provider="groq", model="llama-test")
    response = client.generate(build_prompt("r", "j", "https://jobs.example/1"))

    assert response.text == "groq json"
    assert captured["api_key"] == "gsk_test"
    assert captured["base_url"] == model_client_module.GROQ_BASE_URL
    assert captured["model"] == "llama-test"
    assert [m["role"] for m in captured["messages"]] == ["system", "user"]


def test_from_settings_uses_provider_model():
    from pm_match.config import Settings

    settings = Settings(provider="groq", groq_model="llama-x", entitlement_markers=["m"])
    client = ModelClient.from_settings(settings)
    assert client.provider == "groq"
    assert client.model == "llama-x"
    assert client.entitlement_markers == ("m",)
