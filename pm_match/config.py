"""Load settings and env configuration."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from pm_match.log import get_logger

log = get_logger(__name__)

load_dotenv()

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = ROOT_DIR / "config"
SETTINGS_PATH: Path = CONFIG_DIR / "settings.yaml"
ENV_PATH: Path = ROOT_DIR / ".env"

DEFAULT_LOADING_MESSAGES: list[str] = [
    "Analyzing core competencies...",
    "Mapping experience to job requirements...",
    "Identifying key skill matches...",
    "Spotting critical experience gaps...",
    "Researching company product culture...",
    "Drafting your personalized pitch...",
    "Finalizing match score...",
]


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def data_dir() -> Path:
    """Directory holding the local key/value store files."""
    override = get_env("PM_MATCH_DATA_DIR")
    return Path(override).expanduser() if override else ROOT_DIR / "data"


@dataclass
class Settings:
    provider: str = "gemini"
    gemini_model: str = "gemini-3-pro-preview"
    groq_model: str = "llama-3.3-70b-versatile"
    target_role: str = "Product Manager"
    status_interval: float = 2.5
    entitlement_markers: list[str] = field(
        default_factory=lambda: ["Requested entity was not found"]
    )
    loading_messages: list[str] = field(
        default_factory=lambda: list(DEFAULT_LOADING_MESSAGES)
    )

    @property
    def model(self) -> str:
        return self.groq_model if self.provider == "groq" else self.gemini_model


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        log.warning("Ignoring %s — expected a mapping, got %s", path.name, type(data).__name__)
        return {}
    return data


def load_settings(path: Path | None = None) -> Settings:
    """Defaults, overlaid by config/settings.yaml, overlaid by env vars."""
    data = _read_yaml(path or SETTINGS_PATH)
    model = data.get("model", {}) or {}
    ui = data.get("ui", {}) or {}

    settings = Settings()
    settings.provider = str(data.get("provider", settings.provider)).lower()
    settings.gemini_model = model.get("gemini", settings.gemini_model)
    settings.groq_model = model.get("groq", settings.groq_model)
    settings.target_role = data.get("target_role", settings.target_role)
    settings.status_interval = float(ui.get("status_interval", settings.status_interval))
    if data.get("entitlement_markers"):
        settings.entitlement_markers = [str(m) for m in data["entitlement_markers"]]
    if ui.get("loading_messages"):
        settings.loading_messages = [str(m) for m in ui["loading_messages"]]

    settings.provider = (get_env("LLM_PROVIDER") or settings.provider).lower()
    settings.gemini_model = get_env("GEMINI_MODEL") or settings.gemini_model
    settings.groq_model = get_env("GROQ_LLM_MODEL") or settings.groq_model

    if settings.provider not in ("gemini", "groq"):
        log.warning("Unknown LLM_PROVIDER %r — falling back to gemini", settings.provider)
        settings.provider = "gemini"
    return settings


def ensure_dirs() -> None:
    data_dir().mkdir(parents=True, exist_ok=True)
