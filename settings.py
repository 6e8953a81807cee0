"""Explicit configuration objects for the scorer and the digest queue.

Every knob is read once (from the environment in the CLI) and passed to
component constructors; nothing here is global or mutable.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from pathlib import Path

from keyword_rules import ConfigError, KeywordRuleSet, load_rule_set

DEFAULT_QUEUE_PATH = "data/queue.json"
DEFAULT_DIGEST_OUTPUT_DIR = "output/digests"


@dataclass(frozen=True, slots=True)
class CombinationWeights:
    """Multipliers applied to each sub-score before summing."""

    domain: float = 1.0
    generative: float = 1.0
    data_edge: float = 1.5
    commercial: float = 1.0
    category_boost: float = 0.5


@dataclass(frozen=True, slots=True)
class ThreatThresholds:
    high_data_edge: float = 2.0
    high_generative: float = 1.5
    medium_commercial: float = 1.5
    medium_generative: float = 1.0


@dataclass(frozen=True, slots=True)
class ScoringConfig:
    rules: KeywordRuleSet = field(default_factory=load_rule_set)
    weights: CombinationWeights = field(default_factory=CombinationWeights)
    thresholds: ThreatThresholds = field(default_factory=ThreatThresholds)
    min_relevance_score: float = 5.0


@dataclass(frozen=True, slots=True)
class QueueConfig:
    """Queue gate and digest trigger thresholds.

    Attributes:
        min_relevance_score: Papers scoring below this are never queued.
        digest_threshold: Queue size that triggers a digest.
        max_days_between_digests: Days after the last digest at which a
            non-empty queue triggers a digest regardless of size.
        queue_path: JSON file backing the queue in the CLI.
        digest_output_dir: Directory receiving exported digest CSVs.
        max_papers_per_digest: Cap on rows written per exported digest.
    """

    min_relevance_score: float = 5.0
    digest_threshold: int = 5
    max_days_between_digests: float = 7.0
    queue_path: Path = Path(DEFAULT_QUEUE_PATH)
    digest_output_dir: Path = Path(DEFAULT_DIGEST_OUTPUT_DIR)
    max_papers_per_digest: int = 20


@dataclass(frozen=True, slots=True)
class Settings:
    scoring: ScoringConfig
    queue: QueueConfig

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from environment variables, falling back to defaults.

        Raises ConfigError on unreadable weight tables or non-numeric or
        negative values.
        """
        min_relevance = _env_float("MIN_RELEVANCE_SCORE", 5.0)

        scoring = ScoringConfig(
            rules=load_rule_set(os.getenv("SCORING_WEIGHTS_PATH") or None),
            weights=CombinationWeights(
                domain=_env_float("SCORE_WEIGHT_DOMAIN", 1.0),
                generative=_env_float("SCORE_WEIGHT_GENERATIVE", 1.0),
                data_edge=_env_float("SCORE_WEIGHT_DATA_EDGE", 1.5),
                commercial=_env_float("SCORE_WEIGHT_COMMERCIAL", 1.0),
                category_boost=_env_float("SCORE_WEIGHT_CATEGORY_BOOST", 0.5),
            ),
            thresholds=ThreatThresholds(
                high_data_edge=_env_float("THREAT_HIGH_DATA_EDGE", 2.0),
                high_generative=_env_float("THREAT_HIGH_GENERATIVE", 1.5),
                medium_commercial=_env_float("THREAT_MEDIUM_COMMERCIAL", 1.5),
                medium_generative=_env_float("THREAT_MEDIUM_GENERATIVE", 1.0),
            ),
            min_relevance_score=min_relevance,
        )

        queue = QueueConfig(
            min_relevance_score=min_relevance,
            digest_threshold=_env_int("DIGEST_THRESHOLD", 5),
            max_days_between_digests=_env_float("MAX_DAYS_BETWEEN_DIGESTS", 7.0),
            queue_path=Path(os.getenv("QUEUE_PATH", DEFAULT_QUEUE_PATH)),
            digest_output_dir=Path(os.getenv("DIGEST_OUTPUT_DIR", DEFAULT_DIGEST_OUTPUT_DIR)),
            max_papers_per_digest=_env_int("MAX_PAPERS_PER_DIGEST", 20),
        )
        return cls(scoring=scoring, queue=queue)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc
    if not math.isfinite(value):
        raise ConfigError(f"{name} must be a finite number, got {raw!r}")
    if value < 0:
        raise ConfigError(f"{name} must be non-negative, got {value}")
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc
    if value < 1:
        raise ConfigError(f"{name} must be at least 1, got {value}")
    return value
