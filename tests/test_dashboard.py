from __future__ import annotations

import pytest

from pm_match.dashboard import (
    GREEN,
    NEUTRAL,
    RED,
    YELLOW,
    company_header_html,
    http_url,
    score_color,
    score_gauge,
)


@pytest.mark.parametrize(
    "score, color",
    [(100, GREEN), (80, GREEN), (79, YELLOW), (50, YELLOW), (49, RED), (0, RED)],
)
def test_score_color_thresholds(score, color):
    assert score_color(score) == color


@pytest.mark.parametrize("score, color", [("82", GREEN), ("55.5", YELLOW), ("n/a", NEUTRAL), (None, NEUTRAL)])
def test_score_color_tolerates_non_numeric_scores(score, color):
    assert score_color(score) == color


def test_gauge_shows_score_unclamped():
    fig = score_gauge(140)
    indicator = fig.data[0]
    assert indicator.value == 140
    assert indicator.gauge.bar.color == GREEN
    assert tuple(indicator.gauge.axis.range) == (0, 100)


def test_gauge_low_score_is_red():
    assert score_gauge(12).data[0].gauge.bar.color == RED


def test_gauge_accepts_string_score():
    indicator = score_gauge("82").data[0]
    assert indicator.value == 82
    assert indicator.gauge.bar.color == GREEN


def test_company_header_escapes_markup():
    header = company_header_html('<img src=x onerror="alert(1)">')
    assert "<img" not in header
    assert "&lt;img src=x onerror=&quot;alert(1)&quot;&gt;" in header


def test_company_header_without_name():
    assert "Unknown Company" in company_header_html(None)


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://jobs.example/1", "https://jobs.example/1"),
        (" http://jobs.example ", "http://jobs.example"),
        ("javascript:alert(1)", None),
        ("jobs.example/1", None),
        ("", None),
        (None, None),
    ],
)
def test_http_url_only_allows_web_links(url, expected):
    assert http_url(url) == expected
