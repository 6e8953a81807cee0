"""Keyword-weighted relevance scoring and threat classification (no LLM calls)."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from keyword_rules import (
    AUDIO_CATEGORIES,
    DATA_RIGHTS_PATTERN,
    DOMAIN_PATTERN,
    EXCLUSIVITY_PATTERN,
    HIGH_RELEVANCE_CATEGORIES,
    MEDIUM_RELEVANCE_CATEGORIES,
    MODELS_PATTERN,
    ConfigError,
    KeywordTier,
)
from models import Paper, ScoreBreakdown, ScoringResult, ThreatLevel
from settings import ScoringConfig

LOGGER = logging.getLogger(__name__)

# Sub-score ceilings.
DOMAIN_CAP = 3.0
GENERATIVE_CAP = 3.0
DATA_EDGE_CAP = 4.0
COMMERCIAL_CAP = 3.0
CATEGORY_BOOST_CAP = 2.0

# Per-keyword ceilings for occurrence-counted tiers.
DOMAIN_KEYWORD_CAP = 1.5
DATA_EDGE_KEYWORD_CAP = 2.0

AUDIO_CATEGORY_BONUS = 1.0
TRIPLE_MATCH_BONUS = 2.0
SCORE_SCALE = 10.0


@dataclass(frozen=True, slots=True)
class RelevanceFilterResult:
    relevant: list[tuple[Paper, ScoringResult]]
    filtered_out: int
    total_analyzed: int


class CompetitiveIntelScorer:
    """Score papers for competitive-intelligence relevance.

    The scorer is stateless per call: the same paper and config always
    produce the same ScoringResult.
    """

    def __init__(self, config: ScoringConfig) -> None:
        if config is None or config.rules is None or config.weights is None or config.thresholds is None:
            raise ConfigError("Scorer requires keyword rules, combination weights and threat thresholds")

        self.config = config
        self.rules = config.rules
        self.weights = config.weights
        self.thresholds = config.thresholds

        # Highest reachable raw score given caps and weights; fixed for the
        # lifetime of the scorer.
        self.max_possible_raw_score = (
            DOMAIN_CAP * self.weights.domain
            + GENERATIVE_CAP * self.weights.generative
            + DATA_EDGE_CAP * self.weights.data_edge
            + COMMERCIAL_CAP * self.weights.commercial
            + CATEGORY_BOOST_CAP * self.weights.category_boost
            + TRIPLE_MATCH_BONUS
        )

    def score_paper(self, paper: Paper) -> ScoringResult:
        """Return the relevance score, breakdown and threat level for one paper."""
        text = f"{paper.title or ''} {paper.abstract or ''}"
        categories = tuple(paper.categories or ())

        breakdown = ScoreBreakdown(
            domain=self.score_domain(text, categories),
            generative=self.score_generative(text),
            data_edge=self.score_data_edge(text),
            commercial=self.score_commercial(text),
            category_boost=self.score_category_relevance(categories),
        )

        weighted_total = (
            breakdown.domain * self.weights.domain
            + breakdown.generative * self.weights.generative
            + breakdown.data_edge * self.weights.data_edge
            + breakdown.commercial * self.weights.commercial
            + breakdown.category_boost * self.weights.category_boost
        )

        triple_match = has_triple_match(text)
        raw_score = weighted_total + (TRIPLE_MATCH_BONUS if triple_match else 0.0)

        normalized = min(raw_score / self.max_possible_raw_score, 1.0) * SCORE_SCALE
        score = round(normalized, 1)

        return ScoringResult(
            score=score,
            breakdown=breakdown,
            triple_match=triple_match,
            threat_level=self.assess_threat_level(breakdown, text),
            raw_score=raw_score,
            is_relevant=score >= self.config.min_relevance_score,
        )

    def score_domain(self, text: str, categories: Iterable[str]) -> float:
        score = _counted(self.rules.domain_tier1, text, DOMAIN_KEYWORD_CAP)
        score += _flat(self.rules.domain_tier2, text)
        if any(cat in AUDIO_CATEGORIES for cat in categories):
            score += AUDIO_CATEGORY_BONUS
        return min(score, DOMAIN_CAP)

    def score_generative(self, text: str) -> float:
        score = _flat(self.rules.generative_tier1, text) + _flat(self.rules.generative_tier2, text)
        return min(score, GENERATIVE_CAP)

    def score_data_edge(self, text: str) -> float:
        score = (
            _counted(self.rules.data_edge_critical, text, DATA_EDGE_KEYWORD_CAP)
            + _counted(self.rules.data_edge_licensing, text, DATA_EDGE_KEYWORD_CAP)
            + _flat(self.rules.data_edge_commercial, text)
            + _flat(self.rules.data_edge_compliance, text)
        )
        return min(score, DATA_EDGE_CAP)

    def score_commercial(self, text: str) -> float:
        score = (
            _flat(self.rules.industry, text)
            + _flat(self.rules.commercial_tier1, text)
            + _flat(self.rules.commercial_tier2, text)
        )
        return min(score, COMMERCIAL_CAP)

    @staticmethod
    def score_category_relevance(categories: Iterable[str]) -> float:
        categories = tuple(categories)
        if any(cat in HIGH_RELEVANCE_CATEGORIES for cat in categories):
            return 2.0
        if any(cat in MEDIUM_RELEVANCE_CATEGORIES for cat in categories):
            return 1.0
        return 0.0

    def assess_threat_level(self, breakdown: ScoreBreakdown, text: str) -> ThreatLevel:
        """Classify competitive threat from sub-scores.

        Rule order matters: proprietary-data advantage in generative models
        is checked before commercial product development.
        """
        t = self.thresholds

        if breakdown.data_edge >= t.high_data_edge and breakdown.generative >= t.high_generative:
            if EXCLUSIVITY_PATTERN.search(text):
                return ThreatLevel.HIGH
            return ThreatLevel.MEDIUM

        if breakdown.commercial >= t.medium_commercial and breakdown.generative >= t.medium_generative:
            return ThreatLevel.MEDIUM

        return ThreatLevel.LOW

    def score_papers(self, papers: Iterable[Paper]) -> list[tuple[Paper, ScoringResult]]:
        return [(paper, self.score_paper(paper)) for paper in papers]

    def filter_relevant_papers(self, papers: Iterable[Paper]) -> RelevanceFilterResult:
        """Score papers and keep the relevant ones, highest score first."""
        scored = self.score_papers(papers)
        relevant = [pair for pair in scored if pair[1].is_relevant]
        relevant.sort(key=lambda pair: pair[1].score, reverse=True)

        LOGGER.info(
            "Relevance filter: total=%s, relevant=%s, filtered_out=%s",
            len(scored),
            len(relevant),
            len(scored) - len(relevant),
        )
        return RelevanceFilterResult(
            relevant=relevant,
            filtered_out=len(scored) - len(relevant),
            total_analyzed=len(scored),
        )


def has_triple_match(text: str) -> bool:
    """True iff text hits the domain, model and data-rights families.

    Each family is a fresh search on an immutable compiled pattern, so the
    result never depends on earlier calls.
    """
    return bool(
        DOMAIN_PATTERN.search(text)
        and MODELS_PATTERN.search(text)
        and DATA_RIGHTS_PATTERN.search(text)
    )


def _counted(tier: KeywordTier, text: str, keyword_cap: float) -> float:
    total = 0.0
    for keyword in tier.keywords:
        occurrences = tier.count(keyword, text)
        if occurrences:
            total += min(occurrences * tier.weight, keyword_cap)
    return total


def _flat(tier: KeywordTier, text: str) -> float:
    return len(tier.matched(text)) * tier.weight
