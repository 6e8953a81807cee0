"""Shared typed models for the digest pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ThreatLevel(str, Enum):
    """Coarse competitive-risk classification of a scored paper."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


@dataclass(frozen=True, slots=True)
class Paper:
    """Normalized paper record as delivered by the metadata source."""

    paper_id: str
    title: str
    abstract: str
    categories: tuple[str, ...] = ()
    authors: tuple[str, ...] = ()
    url: str = ""
    published_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    domain: float = 0.0
    generative: float = 0.0
    data_edge: float = 0.0
    commercial: float = 0.0
    category_boost: float = 0.0


@dataclass(frozen=True, slots=True)
class ScoringResult:
    """Output of the relevance scorer for a single paper."""

    score: float
    breakdown: ScoreBreakdown
    triple_match: bool
    threat_level: ThreatLevel
    raw_score: float
    is_relevant: bool


@dataclass(frozen=True, slots=True)
class QueuedPaper:
    """A scored paper held in the digest queue."""

    paper: Paper
    scoring: ScoringResult
    added_at: datetime


@dataclass(frozen=True, slots=True)
class QueueStats:
    total_papers: int
    threat_counts: dict[ThreatLevel, int] = field(default_factory=dict)
    avg_score: float = 0.0
    triple_match_count: int = 0
    oldest_added_at: datetime | None = None
    last_digest_sent_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class TriggerDecision:
    should_trigger: bool
    reason: str
