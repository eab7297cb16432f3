"""Check for and select the model provider's API key.

Keys live in the process environment and are persisted to the project's
``.env`` file when the user selects one from the UI.
"""
from __future__ import annotations

import os
from pathlib import Path

from dotenv import set_key

from pm_match.config import ENV_PATH, get_env
from pm_match.log import get_logger

log = get_logger(__name__)

KEY_ENV_VARS: dict[str, str] = {
    "gemini": "GEMINI_API_KEY",
    "groq": "GROQ_API_KEY",
}


def key_env_var(provider: str) -> str:
    return KEY_ENV_VARS.get(provider, KEY_ENV_VARS["gemini"])


def current_key(provider: str) -> str:
    key = get_env(key_env_var(provider))
    if not key and provider == "gemini":
        # google-genai's own convention
        key = get_env("GOOGLE_API_KEY")
    return key


def has_selected_key(provider: str) -> bool:
    return bool(current_key(provider))


def select_key(provider: str, key: str, env_path: Path | None = None) -> None:
    """Persist *key* for *provider* and make it active for this process."""
    key = key.strip()
    if not key:
        raise ValueError("API key cannot be empty")
    var = key_env_var(provider)
    path = env_path or ENV_PATH
    path.touch(exist_ok=True)
    set_key(str(path), var, key)
    os.environ[var] = key
    log.info("Selected new %s key (saved to %s)", provider, path.name)
