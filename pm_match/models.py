"""Data models for analysis results and saved history entries."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# JSON key the model is asked for -> attribute name.
RESULT_FIELDS: dict[str, str] = {
    "companyName": "company_name",
    "score": "score",
    "missingSkills": "missing_skills",
    "strengths": "strengths",
    "quickTake": "quick_take",
    "pitchHighlights": "pitch_highlights",
    "sampleEmail": "sample_email",
}


def score_band(score: Any) -> str | None:
    """"high" (>= 80), "medium" (>= 50), "low", or None if *score* isn't numeric."""
    try:
        value = float(score)
    except (TypeError, ValueError):
        return None
    if value >= 80:
        return "high"
    if value >= 50:
        return "medium"
    return "low"


@dataclass(frozen=True)
class GroundingSource:
    title: str
    uri: str


@dataclass(frozen=True)
class AnalysisResult:
    company_name: str
    score: int
    missing_skills: tuple[str, ...]
    strengths: tuple[str, ...]
    quick_take: tuple[str, ...]
    pitch_highlights: tuple[str, ...]
    sample_email: str
    grounding_sources: tuple[GroundingSource, ...] | None = None

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        grounding_sources: list[GroundingSource] | None = None,
    ) -> "AnalysisResult":
        """Build from the camelCase object; values are taken as given."""
        return cls(
            company_name=data["companyName"],
            score=data["score"],
            missing_skills=tuple(data["missingSkills"]),
            strengths=tuple(data["strengths"]),
            quick_take=tuple(data["quickTake"]),
            pitch_highlights=tuple(data["pitchHighlights"]),
            sample_email=data["sampleEmail"],
            grounding_sources=tuple(grounding_sources) if grounding_sources else None,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for key, attr in RESULT_FIELDS.items():
            value = getattr(self, attr)
            out[key] = list(value) if isinstance(value, tuple) else value
        if self.grounding_sources:
            out["groundingSources"] = [
                {"title": s.title, "uri": s.uri} for s in self.grounding_sources
            ]
        return out


@dataclass
class SavedResume:
    id: str
    name: str
    content: str
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "content": self.content,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SavedResume":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            content=str(data.get("content", "")),
            timestamp=int(data.get("timestamp", 0)),
        )


@dataclass
class SavedJob:
    id: str
    name: str
    content: str
    timestamp: int
    url: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "content": self.content,
            "url": self.url,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SavedJob":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            content=str(data.get("content", "")),
            url=str(data.get("url") or ""),
            timestamp=int(data.get("timestamp", 0)),
        )
