from __future__ import annotations

import pytest

from pm_match.storage import LocalStore

_ENV_KEYS = (
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "GROQ_API_KEY",
    "LLM_PROVIDER",
    "GEMINI_MODEL",
    "GROQ_LLM_MODEL",
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("PM_MATCH_DATA_DIR", str(tmp_path / "data"))


@pytest.fixture
def store(tmp_path) -> LocalStore:
    return LocalStore(tmp_path / "store")


@pytest.fixture
def analysis_payload() -> dict:
    return {
        "companyName": "Acme",
        "score": 82,
        "missingSkills": ["SQL", "Pricing strategy"],
        "strengths": ["B2B SaaS launches", "Roadmap ownership"],
        "quickTake": ["Strong platform PM", "Gap in pricing", "Good culture fit"],
        "pitchHighlights": ["Shipped 3 APIs", "Grew ARR 40%", "Led 12 engineers"],
        "sampleEmail": "Hi Jane,\n\nWhy I’m a Strong Fit\n• Platform: shipped APIs\n\nBest,\nSam",
    }
