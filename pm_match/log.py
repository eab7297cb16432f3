"""Logging setup for the app, the CLI and the library modules.

Modules call ``get_logger(__name__)``; the first call installs a stdout
handler and a per-day file under ``logs/`` (or ``PM_MATCH_LOG_DIR``).
The CLI calls :func:`configure_logging` directly to apply ``--log-level``.
"""
from __future__ import annotations

import logging
import logging.config
import os
from datetime import date
from pathlib import Path

DEFAULT_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Client libraries that log every request at INFO.
QUIET_LOGGERS = ("httpx", "httpcore", "google_genai", "openai", "pypdf")

_state = {"configured": False}


def log_dir() -> Path:
    override = os.environ.get("PM_MATCH_LOG_DIR", "").strip()
    return Path(override).expanduser() if override else DEFAULT_LOG_DIR


def log_file_for(day: date, directory: Path | None = None) -> Path:
    return (directory or log_dir()) / f"pm_match_{day:%Y-%m-%d}.log"


def _level(name: str | None) -> str:
    name = (name or os.environ.get("LOG_LEVEL") or "INFO").upper()
    return name if isinstance(logging.getLevelName(name), int) else "INFO"


def _build_config(level: str, log_file: Path | None) -> dict:
    handlers: dict[str, dict] = {
        "console": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "formatter": "plain",
            "level": level,
        },
    }
    if log_file is not None:
        handlers["file"] = {
            "class": "logging.FileHandler",
            "filename": str(log_file),
            "encoding": "utf-8",
            "formatter": "plain",
            "level": "DEBUG",
        }
    quiet = max(logging.getLevelName(level), logging.WARNING)
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"plain": {"format": LOG_FORMAT, "datefmt": DATE_FORMAT}},
        "handlers": handlers,
        "root": {"level": level, "handlers": list(handlers)},
        "loggers": {name: {"level": logging.getLevelName(quiet)} for name in QUIET_LOGGERS},
    }


def configure_logging(level: str | None = None, *, force: bool = False) -> str:
    """Install the console and file handlers; returns the effective level.

    Left alone when the root logger already has handlers (pytest, Streamlit)
    unless *force* is set.
    """
    resolved = _level(level)
    root = logging.getLogger()
    if root.handlers and not force:
        root.setLevel(resolved)
        quiet = max(logging.getLevelName(resolved), logging.WARNING)
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(quiet)
        _state["configured"] = True
        return resolved

    log_file: Path | None = log_file_for(date.today())
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        log_file = None  # read-only checkout: console only

    if force:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
    logging.config.dictConfig(_build_config(resolved, log_file))
    _state["configured"] = True
    return resolved


def get_logger(name: str) -> logging.Logger:
    if not _state["configured"]:
        configure_logging()
    return logging.getLogger(name)
