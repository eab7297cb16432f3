"""Presentation state for one browser session.

The Streamlit script reruns top to bottom on every interaction, so the
state it needs between runs lives in an :class:`AnalysisSession` kept in
``st.session_state``. Nothing here imports Streamlit.
"""
from __future__ import annotations

import enum
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence, TypeVar

from pm_match.config import DEFAULT_LOADING_MESSAGES
from pm_match.errors import EntitlementError, InputValidationError, MatchError
from pm_match.log import get_logger
from pm_match.models import AnalysisResult

log = get_logger(__name__)

T = TypeVar("T")

ENTITLEMENT_MESSAGE = (
    "Your project configuration requires a paid API key for search features. "
    "Please select one."
)


class LoadingStatus(enum.Enum):
    IDLE = "IDLE"
    LOADING = "LOADING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class View(enum.Enum):
    INPUT = "input"
    RESULTS = "results"


def user_message(exc: BaseException) -> str:
    """One banner string for any error raised by the analysis flow."""
    if isinstance(exc, EntitlementError):
        return ENTITLEMENT_MESSAGE
    if isinstance(exc, InputValidationError):
        return str(exc)
    detail = str(exc) or exc.__class__.__name__
    return f"Analysis failed: {detail}. Check the logs for more details."


@dataclass
class AnalysisSession:
    resume: str = ""
    job_description: str = ""
    job_url: str = ""
    status: LoadingStatus = LoadingStatus.IDLE
    result: AnalysisResult | None = None
    error: str | None = None
    needs_credential: bool = False
    message_index: int = 0
    # in-flight request, kept across reruns
    pending: Future | None = field(default=None, repr=False, compare=False)

    @property
    def view(self) -> View:
        if self.status is LoadingStatus.SUCCESS and self.result is not None:
            return View.RESULTS
        return View.INPUT

    @property
    def is_loading(self) -> bool:
        return self.status is LoadingStatus.LOADING

    def begin(self) -> None:
        self.status = LoadingStatus.LOADING
        self.error = None
        self.message_index = 0
        self.pending = None

    def submit(self, fn: Callable[[], T], executor: Executor) -> Future:
        """Start *fn* unless this session already has a request in flight."""
        if self.pending is None:
            self.pending = executor.submit(fn)
        else:
            log.debug("Reattaching to in-flight analysis request")
        return self.pending

    def succeed(self, result: AnalysisResult) -> None:
        self.result = result
        self.error = None
        self.pending = None
        self.status = LoadingStatus.SUCCESS

    def fail(self, exc: BaseException) -> str:
        if isinstance(exc, MatchError):
            log.error("Analysis error (%s): %s", type(exc).__name__, exc)
        else:
            log.error("Unexpected analysis error", exc_info=exc)
        if isinstance(exc, EntitlementError):
            self.needs_credential = True
        self.result = None
        self.pending = None
        self.error = user_message(exc)
        self.status = LoadingStatus.ERROR
        return self.error

    def credential_selected(self) -> None:
        self.needs_credential = False

    def reset(self) -> None:
        """Back to the input view; typed inputs are kept."""
        self.status = LoadingStatus.IDLE
        self.result = None
        self.error = None
        self.message_index = 0
        self.pending = None

    def next_message(self, messages: Sequence[str] = DEFAULT_LOADING_MESSAGES) -> str:
        self.message_index = (self.message_index + 1) % len(messages)
        return messages[self.message_index]


def wait_with_status(
    future: Future,
    on_tick: Callable[[int], None],
    interval: float = 2.5,
) -> Any:
    """Block until *future* is done, calling *on_tick* every *interval*.

    An exception from *on_tick* propagates at once and leaves *future*
    running, so a later call can wait on it again.
    """
    ticks = 0
    while True:
        done, _ = wait([future], timeout=interval)
        if done:
            return future.result()
        ticks += 1
        on_tick(ticks)


def run_with_status(
    fn: Callable[[], T],
    on_tick: Callable[[int], None],
    interval: float = 2.5,
) -> T:
    """Run *fn* on one worker thread, calling *on_tick* every *interval*.

    Ticks stop as soon as *fn* finishes; its result is returned and its
    exception re-raised unchanged. There is no timeout.
    """
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pm-match")
    try:
        return wait_with_status(pool.submit(fn), on_tick, interval)
    finally:
        pool.shutdown(wait=False)
