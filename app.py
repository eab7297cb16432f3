"""Streamlit UI for PM Match — resume / job description fit analysis."""
from __future__ import annotations

import html
import sys
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path

import streamlit as st

ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(ROOT))

from pm_match.analyzer import analyze_job_match
from pm_match.config import data_dir, ensure_dirs, load_settings
from pm_match.credentials import has_selected_key, key_env_var, select_key
from pm_match.dashboard import company_label, http_url, render_results
from pm_match.errors import ExtractionError
from pm_match.extractor import ACCEPTED_EXTENSIONS, extract_text
from pm_match.history import JobHistory, ResumeHistory
from pm_match.log import get_logger
from pm_match.session import AnalysisSession, View, wait_with_status
from pm_match.storage import LocalStore

log = get_logger(__name__)

UPLOAD_TYPES: list[str] = [ext.lstrip(".") for ext in ACCEPTED_EXTENSIONS]

_CSS = """
<style>
[data-testid="stAppViewContainer"] {
    background: linear-gradient(135deg, #0f172a 0%, #111827 50%, #020617 100%);
    color: #f8fafc;
}
[data-testid="stSidebar"] {
    background: rgba(15,23,42,0.7);
    backdrop-filter: blur(16px);
    border-right: 1px solid rgba(148,163,184,0.15);
}
.block-container {
    padding-top: 2rem;
    max-width: 1000px;
}
[data-testid="stForm"],
[data-testid="stExpander"] {
    background: rgba(30,41,59,0.45);
    border-radius: 12px;
    border: 1px solid rgba(148,163,184,0.15);
}
.stButton > button[kind="primary"] {
    border-radius: 8px;
    font-weight: 600;
}
.history-meta {
    color: #94a3b8;
    font-size: 0.8rem;
}
</style>
"""

# ── Helpers ──────────────────────────────────────────────────────────────


def _session() -> AnalysisSession:
    if "analysis" not in st.session_state:
        st.session_state["analysis"] = AnalysisSession()
    return st.session_state["analysis"]


def _store() -> LocalStore:
    ensure_dirs()
    return LocalStore(data_dir())


def _format_ts(ts: int) -> str:
    return datetime.fromtimestamp(ts / 1000).strftime("%Y-%m-%d %H:%M")


def _handle_upload(uploaded, target_key: str) -> None:
    """Extract an uploaded file once and load it into a text area."""
    if uploaded is None:
        return
    marker = f"_{target_key}_upload_id"
    if st.session_state.get(marker) == uploaded.file_id:
        return
    st.session_state[marker] = uploaded.file_id
    try:
        with st.spinner(f"Reading {uploaded.name}…"):
            st.session_state[target_key] = extract_text(
                uploaded.getvalue(), uploaded.name, uploaded.type,
            )
        _session().error = None
    except ExtractionError as exc:
        _session().error = str(exc)


def _key_form(provider: str, form_key: str) -> None:
    with st.form(form_key):
        key = st.text_input(
            f"{key_env_var(provider)}",
            type="password",
            placeholder="Paste your API key",
        )
        if st.form_submit_button(
            "Use this key", type="primary", use_container_width=True,
            disabled=_session().is_loading,
        ):
            try:
                select_key(provider, key)
            except ValueError as exc:
                st.error(str(exc))
            else:
                _session().credential_selected()
                st.success("API key saved. Submit your analysis again.")
                st.rerun()


# ── Callbacks ────────────────────────────────────────────────────────────


def _start_analysis() -> None:
    session = _session()
    session.resume = st.session_state.get("resume_text", "")
    session.job_description = st.session_state.get("job_text", "")
    session.job_url = st.session_state.get("job_url", "")
    session.begin()


def _reset() -> None:
    session = _session()
    session.reset()
    # Widget values are dropped while the results view is shown.
    st.session_state["resume_text"] = session.resume
    st.session_state["job_text"] = session.job_description
    st.session_state["job_url"] = session.job_url


def _use_resume(entry_id: str) -> None:
    entry = ResumeHistory(_store()).get(entry_id)
    if entry:
        st.session_state["resume_text"] = entry.content


def _use_job(entry_id: str) -> None:
    entry = JobHistory(_store()).get(entry_id)
    if entry:
        st.session_state["job_text"] = entry.content
        st.session_state["job_url"] = entry.url


def _delete_resume(entry_id: str) -> None:
    ResumeHistory(_store()).delete(entry_id)


def _delete_job(entry_id: str) -> None:
    JobHistory(_store()).delete(entry_id)


def _save_resume() -> None:
    entry = ResumeHistory(_store()).save(
        st.session_state.get("resume_name", ""),
        st.session_state.get("resume_text", ""),
    )
    if entry:
        st.session_state["resume_name"] = ""
        st.toast(f"Saved “{entry.name}”")


# ── Analysis run ─────────────────────────────────────────────────────────


def _executor() -> ThreadPoolExecutor:
    if "executor" not in st.session_state:
        st.session_state["executor"] = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="pm-match",
        )
    return st.session_state["executor"]


def _remember_job(session: AnalysisSession) -> None:
    try:
        JobHistory(_store()).save(
            session.result.company_name, session.job_description, session.job_url,
        )
    except (OSError, ValueError) as exc:
        log.warning("Could not save job to history: %s", exc)


def _run_analysis() -> None:
    session = _session()
    settings = load_settings()
    messages = settings.loading_messages
    placeholder = st.empty()
    placeholder.info(messages[session.message_index % len(messages)])

    def _tick(_: int) -> None:
        placeholder.info(session.next_message(messages))

    future = session.submit(
        lambda: analyze_job_match(
            session.resume, session.job_description, session.job_url,
            settings=settings,
        ),
        _executor(),
    )
    try:
        result = wait_with_status(future, on_tick=_tick, interval=settings.status_interval)
    except Exception as exc:
        session.fail(exc)
    else:
        session.succeed(result)
        _remember_job(session)
    placeholder.empty()
    st.rerun()


# ── Page: Analyze ────────────────────────────────────────────────────────


def _resume_column(session: AnalysisSession) -> None:
    st.subheader("1 — Your Resume")
    uploaded = st.file_uploader(
        "Upload resume", type=UPLOAD_TYPES, key="resume_upload",
        disabled=session.is_loading,
    )
    _handle_upload(uploaded, "resume_text")
    st.text_area(
        "Resume text", key="resume_text", height=260,
        placeholder="Paste your resume or experience summary…",
        disabled=session.is_loading,
    )

    c1, c2 = st.columns([3, 1])
    with c1:
        st.text_input(
            "Save as", key="resume_name", placeholder="My Resume",
            label_visibility="collapsed", disabled=session.is_loading,
        )
    with c2:
        st.button(
            "Save", on_click=_save_resume, use_container_width=True,
            disabled=session.is_loading,
        )

    resumes = ResumeHistory(_store())
    with st.expander(f"Saved resumes ({len(resumes)})"):
        if not len(resumes):
            st.caption("No saved resumes yet.")
        for entry in resumes:
            c1, c2, c3 = st.columns([4, 1, 1])
            c1.markdown(
                f"**{html.escape(entry.name)}**<br><span class='history-meta'>{_format_ts(entry.timestamp)}</span>",
                unsafe_allow_html=True,
            )
            c2.button(
                "Use", key=f"use_r_{entry.id}", on_click=_use_resume, args=(entry.id,),
                disabled=session.is_loading,
            )
            c3.button(
                "🗑️", key=f"del_r_{entry.id}", on_click=_delete_resume, args=(entry.id,),
                disabled=session.is_loading,
            )


def _job_column(session: AnalysisSession) -> None:
    st.subheader("2 — Target Job")
    st.text_input(
        "Job posting URL", key="job_url",
        placeholder="https://…  (company research uses web search)",
        disabled=session.is_loading,
    )
    uploaded = st.file_uploader(
        "Upload job description", type=UPLOAD_TYPES, key="job_upload",
        disabled=session.is_loading,
    )
    _handle_upload(uploaded, "job_text")
    st.text_area(
        "Job description", key="job_text", height=260,
        placeholder="Paste the job description…",
        disabled=session.is_loading,
    )

    jobs = JobHistory(_store())
    with st.expander(f"Recent jobs ({len(jobs)})"):
        if not len(jobs):
            st.caption("Jobs are saved automatically after each analysis.")
        for entry in jobs:
            c1, c2, c3 = st.columns([4, 1, 1])
            url = http_url(entry.url)
            link = f" · <a href='{html.escape(url)}' target='_blank'>link</a>" if url else ""
            c1.markdown(
                f"**{html.escape(company_label(entry.name))}**<br><span class='history-meta'>{_format_ts(entry.timestamp)}{link}</span>",
                unsafe_allow_html=True,
            )
            c2.button(
                "Use", key=f"use_j_{entry.id}", on_click=_use_job, args=(entry.id,),
                disabled=session.is_loading,
            )
            c3.button(
                "🗑️", key=f"del_j_{entry.id}", on_click=_delete_job, args=(entry.id,),
                disabled=session.is_loading,
            )


def page_analyze() -> None:
    session = _session()
    settings = load_settings()

    if session.needs_credential or not has_selected_key(settings.provider):
        st.warning(
            session.error if session.needs_credential and session.error
            else f"No {settings.provider.title()} API key configured — add one to run an analysis."
        )
        _key_form(settings.provider, "key_banner")

    if session.view is View.RESULTS:
        render_results(session.result, on_reset=_reset)
        return

    st.header("PM Match")
    st.write(
        "Compare your resume against a job description and get a match score, "
        "gaps, strengths, and a drafted outreach email."
    )

    if session.error and not session.needs_credential:
        st.error(session.error)

    c1, c2 = st.columns(2)
    with c1:
        _resume_column(session)
    with c2:
        _job_column(session)

    st.divider()
    st.button(
        "Analyzing…" if session.is_loading else "Analyze Match",
        type="primary",
        use_container_width=True,
        disabled=session.is_loading,
        on_click=_start_analysis,
    )

    if session.is_loading:
        _run_analysis()


# ── Page: History ────────────────────────────────────────────────────────


def _history_table(entries, with_url: bool) -> None:
    import pandas as pd

    rows = [
        {
            "name": e.name,
            "saved_at": _format_ts(e.timestamp),
            "characters": len(e.content),
            **({"url": http_url(e.url)} if with_url else {}),
        }
        for e in entries
    ]
    df = pd.DataFrame(rows)
    column_config = {"url": st.column_config.LinkColumn("Posting")} if with_url else None
    st.dataframe(df, use_container_width=True, hide_index=True, column_config=column_config)


def page_history() -> None:
    st.header("Saved Resumes & Jobs")
    tab_resumes, tab_jobs = st.tabs(["Resumes", "Jobs"])

    with tab_resumes:
        resumes = ResumeHistory(_store())
        if not len(resumes):
            st.info("No saved resumes yet. Save one from the Analyze page.")
        else:
            c1, c2 = st.columns(2)
            c1.metric("Saved resumes", len(resumes))
            c2.metric("Latest", resumes.entries[0].name)
            _history_table(resumes.entries, with_url=False)
            chosen = st.selectbox(
                "Delete a resume", resumes.entries,
                format_func=lambda e: f"{e.name} — {_format_ts(e.timestamp)}",
                key="delete_resume_choice",
            )
            if st.button("Delete resume") and chosen:
                _delete_resume(chosen.id)
                st.rerun()

    with tab_jobs:
        jobs = JobHistory(_store())
        if not len(jobs):
            st.info("No jobs yet. Jobs are saved after each successful analysis.")
        else:
            c1, c2 = st.columns(2)
            c1.metric("Saved jobs", len(jobs))
            c2.metric("With URL", sum(1 for j in jobs if j.url))
            _history_table(jobs.entries, with_url=True)
            chosen = st.selectbox(
                "Delete a job", jobs.entries,
                format_func=lambda e: f"{e.name} — {_format_ts(e.timestamp)}",
                key="delete_job_choice",
            )
            if st.button("Delete job") and chosen:
                _delete_job(chosen.id)
                st.rerun()


# ── Page: Settings ───────────────────────────────────────────────────────


def page_settings() -> None:
    st.header("Settings")
    settings = load_settings()

    c1, c2, c3 = st.columns(3)
    c1.metric("Provider", settings.provider.title())
    c2.metric("Model", settings.model)
    c3.metric("Web search", "Yes" if settings.provider == "gemini" else "No")
    st.caption(
        "Change the provider or model in `config/settings.yaml` or with the "
        "`LLM_PROVIDER`, `GEMINI_MODEL` and `GROQ_LLM_MODEL` environment variables."
    )

    st.subheader("API Key")
    st.markdown(
        "Search-grounded analysis (when a job URL is given) needs a key with "
        "access to the Google Search tool."
    )
    _key_form(settings.provider, "key_settings")


# ── Main ─────────────────────────────────────────────────────────────────


def _check(label: str, ok: bool) -> str:
    icon = "✅" if ok else "⬜"
    return f"{icon}  {label}"


def _sidebar_status() -> None:
    settings = load_settings()
    with st.sidebar:
        st.divider()
        st.markdown("**Status**")
        st.markdown(_check(f"{settings.provider.title()} API key", has_selected_key(settings.provider)))
        st.markdown(_check("Resume entered", bool(st.session_state.get("resume_text", "").strip())))
        st.markdown(_check(
            "Job entered",
            bool(st.session_state.get("job_text", "").strip() or st.session_state.get("job_url", "").strip()),
        ))


def _wrap(page):
    def _run() -> None:
        st.markdown(_CSS, unsafe_allow_html=True)
        _sidebar_status()
        page()

    _run.__name__ = page.__name__
    return _run


pages = [
    st.Page(_wrap(page_analyze), title="Analyze", icon="🎯", url_path="analyze", default=True),
    st.Page(_wrap(page_history), title="History", icon="🗂️", url_path="history"),
    st.Page(_wrap(page_settings), title="Settings", icon="⚙️", url_path="settings"),
]

# page links are hidden while a request is in flight
nav = st.navigation(pages, position="hidden" if _session().is_loading else "sidebar")
nav.run()
