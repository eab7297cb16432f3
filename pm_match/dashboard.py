"""Streamlit rendering of an analysis result."""
from __future__ import annotations

import html
from typing import Any, Callable, Iterable
from urllib.parse import urlparse

import plotly.graph_objects as go
import streamlit as st

from pm_match.models import AnalysisResult, score_band

GREEN = "#22c55e"
YELLOW = "#eab308"
RED = "#ef4444"
NEUTRAL = "#64748b"
TRACK = "#1e293b"

_BAND_COLORS = {"high": GREEN, "medium": YELLOW, "low": RED}

UNKNOWN_COMPANY = "Unknown Company"


def score_color(score: Any) -> str:
    return _BAND_COLORS.get(score_band(score), NEUTRAL)


def _as_number(score: Any) -> float | None:
    try:
        return float(score)
    except (TypeError, ValueError):
        return None


def score_gauge(score: Any) -> go.Figure:
    """Half-circle gauge; the score is shown as given, not clamped."""
    fig = go.Figure(go.Indicator(
        mode="gauge+number",
        value=_as_number(score),
        number={"suffix": "%"},
        gauge={
            "axis": {"range": [0, 100], "visible": False},
            "bar": {"color": score_color(score), "thickness": 0.35},
            "bgcolor": TRACK,
            "borderwidth": 0,
        },
        title={"text": "MATCH", "font": {"size": 12}},
    ))
    fig.update_layout(height=240, margin=dict(l=10, r=10, t=30, b=10))
    return fig


def http_url(url: Any) -> str | None:
    """*url* if it is an absolute http(s) link, else None."""
    if not isinstance(url, str):
        return None
    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme.lower() in ("http", "https") and parsed.netloc:
        return url
    return None


def company_label(name: Any) -> str:
    return str(name).strip() if name not in (None, "") else UNKNOWN_COMPANY


def company_header_html(name: Any) -> str:
    return (
        "<h1 style='text-align:center;text-transform:uppercase'>"
        f"{html.escape(company_label(name))}</h1>"
    )


def _bullets(items: Iterable[str]) -> str:
    return "\n".join(f"- {item}" for item in items) or "_None_"


def render_results(result: AnalysisResult, on_reset: Callable[[], None]) -> None:
    st.button("← Back to inputs", on_click=on_reset)

    st.markdown(company_header_html(result.company_name), unsafe_allow_html=True)
    st.caption("Strategic analysis complete")

    st.subheader("Overall Competency Fit")
    st.plotly_chart(score_gauge(result.score), use_container_width=True)

    c1, c2 = st.columns(2)
    with c1:
        st.subheader("Quick Take")
        st.markdown(_bullets(result.quick_take))
    with c2:
        st.subheader("Pitch Highlights")
        st.markdown(_bullets(result.pitch_highlights))

    c1, c2 = st.columns(2)
    with c1:
        st.subheader("Strengths")
        st.markdown(_bullets(result.strengths))
    with c2:
        st.subheader("Skill Gaps")
        st.markdown(_bullets(result.missing_skills))

    email = str(result.sample_email or "")
    st.subheader("Outreach Email")
    # st.code carries its own copy-to-clipboard button
    st.code(email, language=None, wrap_lines=True)
    st.download_button(
        "Download email",
        data=email,
        file_name=f"outreach_{company_label(result.company_name).replace(' ', '_').lower()}.txt",
        mime="text/plain",
    )

    links = [(s.title, http_url(s.uri)) for s in result.grounding_sources or ()]
    links = [(title, uri) for title, uri in links if uri]
    if links:
        st.subheader("Sources")
        for title, uri in links:
            st.markdown(f"- [{title}]({uri})")
