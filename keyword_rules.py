"""Keyword rule set for competitive-intelligence scoring (no LLM calls).

The rule set is plain data: tiered keyword lists with a weight per tier,
grouped by signal category (domain, generative model, data edge,
commercial). A built-in table ships below; an override file with the same
shape can be loaded with :func:`load_rule_set`.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any


class ConfigError(RuntimeError):
    """Raised when scoring or queue configuration is missing or malformed."""


# arXiv subject codes. Audio codes add a flat bonus to the domain sub-score;
# the relevance sets drive the category boost.
AUDIO_CATEGORIES: frozenset[str] = frozenset({"cs.SD", "eess.AS", "cs.MM"})
HIGH_RELEVANCE_CATEGORIES: frozenset[str] = frozenset({"cs.SD", "eess.AS"})
MEDIUM_RELEVANCE_CATEGORIES: frozenset[str] = frozenset({"cs.LG", "cs.MM", "cs.HC", "cs.CL"})

# Triple-match pattern families. Evaluated independently of the tiers.
DOMAIN_PATTERN = re.compile(
    r"\b(music|audio|sound|waveform|symbolic|midi|stems|harmonic|timbre|melody|rhythm)\b",
    re.IGNORECASE,
)
MODELS_PATTERN = re.compile(
    r"\b(generative|diffusion|transformer|autoregressive|latent|flow|foundation)\b",
    re.IGNORECASE,
)
DATA_RIGHTS_PATTERN = re.compile(
    r"\b(proprietary|private|in[-\s]house|internal|owned|rights|licens(e|ing|ed)|consent"
    r"|commercial|dataset|corpus|curation|synthetic data|copyright|watermark|attribution"
    r"|compliance)\b",
    re.IGNORECASE,
)
EXCLUSIVITY_PATTERN = re.compile(r"\b(proprietary|exclusive|private|in[-\s]house)\b", re.IGNORECASE)

DEFAULT_SCORING_WEIGHTS: dict[str, Any] = {
    "domain_keywords": {
        "tier1": {
            "keywords": ["music", "audio", "musical", "song", "songs", "melody"],
            "weight": 0.5,
        },
        "tier2": {
            "keywords": [
                "sound",
                "midi",
                "timbre",
                "rhythm",
                "harmony",
                "waveform",
                "stems",
                "vocals",
                "singing",
                "instrument",
                "symbolic music",
                "music information retrieval",
            ],
            "weight": 0.3,
        },
    },
    "generative_keywords": {
        "tier1": {
            "keywords": [
                "generative",
                "diffusion",
                "music generation",
                "audio generation",
                "text-to-music",
                "text-to-audio",
                "autoregressive",
                "neural synthesis",
            ],
            "weight": 1.0,
        },
        "tier2": {
            "keywords": [
                "transformer",
                "transformers",
                "latent",
                "language model",
                "foundation model",
                "vae",
                "gan",
                "synthesis",
                "flow matching",
            ],
            "weight": 0.5,
        },
    },
    "data_edge_keywords": {
        "tier1_critical": {
            "keywords": ["proprietary", "exclusive", "in-house", "internal dataset", "private dataset"],
            "weight": 1.0,
        },
        "tier2_licensing": {
            "keywords": [
                "licensed",
                "licensing",
                "license",
                "copyright",
                "copyrighted",
                "rights holders",
                "royalty-free",
            ],
            "weight": 0.75,
        },
        "tier3_commercial": {
            "keywords": ["catalog", "catalogs", "commercial", "royalties", "monetization", "paid"],
            "weight": 0.5,
        },
        "tier4_compliance": {
            "keywords": [
                "consent",
                "attribution",
                "opt-out",
                "watermark",
                "watermarking",
                "provenance",
                "compliance",
                "fair use",
            ],
            "weight": 0.5,
        },
    },
    "industry_keywords": {
        "keywords": [
            "record label",
            "record labels",
            "production music",
            "sync licensing",
            "sample library",
            "music industry",
            "streaming",
            "advertising",
            "film",
            "publishers",
        ],
        "weight": 0.75,
    },
    "commercial_keywords": {
        "tier1": {
            "keywords": ["commercial", "product", "production", "deployment", "deployed", "real-world", "startup"],
            "weight": 0.75,
        },
        "tier2": {
            "keywords": ["industry", "market", "users", "creators", "artists", "platform", "scalable", "professional"],
            "weight": 0.25,
        },
    },
}


@dataclass(frozen=True, slots=True)
class KeywordTier:
    """One weighted keyword list."""

    keywords: tuple[str, ...]
    weight: float

    def count(self, keyword: str, text: str) -> int:
        return len(keyword_pattern(keyword).findall(text))

    def matched(self, text: str) -> list[str]:
        return [kw for kw in self.keywords if keyword_pattern(kw).search(text)]


@dataclass(frozen=True, slots=True)
class KeywordRuleSet:
    domain_tier1: KeywordTier
    domain_tier2: KeywordTier
    generative_tier1: KeywordTier
    generative_tier2: KeywordTier
    data_edge_critical: KeywordTier
    data_edge_licensing: KeywordTier
    data_edge_commercial: KeywordTier
    data_edge_compliance: KeywordTier
    industry: KeywordTier
    commercial_tier1: KeywordTier
    commercial_tier2: KeywordTier

    @classmethod
    def from_dict(cls, data: Any) -> KeywordRuleSet:
        """Build a rule set from the JSON table shape; raise ConfigError if malformed."""
        if not isinstance(data, dict):
            raise ConfigError("Scoring weights must be a JSON object")

        domain = _section(data, "domain_keywords")
        generative = _section(data, "generative_keywords")
        data_edge = _section(data, "data_edge_keywords")
        commercial = _section(data, "commercial_keywords")

        return cls(
            domain_tier1=_tier(domain, "domain_keywords.tier1", "tier1"),
            domain_tier2=_tier(domain, "domain_keywords.tier2", "tier2"),
            generative_tier1=_tier(generative, "generative_keywords.tier1", "tier1"),
            generative_tier2=_tier(generative, "generative_keywords.tier2", "tier2"),
            data_edge_critical=_tier(data_edge, "data_edge_keywords.tier1_critical", "tier1_critical"),
            data_edge_licensing=_tier(data_edge, "data_edge_keywords.tier2_licensing", "tier2_licensing"),
            data_edge_commercial=_tier(data_edge, "data_edge_keywords.tier3_commercial", "tier3_commercial"),
            data_edge_compliance=_tier(data_edge, "data_edge_keywords.tier4_compliance", "tier4_compliance"),
            industry=_tier(data, "industry_keywords", "industry_keywords"),
            commercial_tier1=_tier(commercial, "commercial_keywords.tier1", "tier1"),
            commercial_tier2=_tier(commercial, "commercial_keywords.tier2", "tier2"),
        )


def load_rule_set(path: str | Path | None = None) -> KeywordRuleSet:
    """Load the keyword table from path, or the built-in table when path is None."""
    if path is None:
        return KeywordRuleSet.from_dict(DEFAULT_SCORING_WEIGHTS)

    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read scoring weights file {path}: {exc}") from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Scoring weights file {path} is not valid JSON: {exc}") from exc

    return KeywordRuleSet.from_dict(data)


@lru_cache(maxsize=1024)
def keyword_pattern(keyword: str) -> re.Pattern[str]:
    """Return the compiled whole-word, case-insensitive pattern for keyword."""
    return re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE)


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name)
    if not isinstance(section, dict):
        raise ConfigError(f"Scoring weights are missing the '{name}' table")
    return section


def _tier(parent: dict[str, Any], label: str, key: str) -> KeywordTier:
    block = parent.get(key)
    if not isinstance(block, dict):
        raise ConfigError(f"Scoring weights are missing the '{label}' tier")

    keywords = block.get("keywords")
    if not isinstance(keywords, list) or not all(isinstance(kw, str) and kw.strip() for kw in keywords):
        raise ConfigError(f"'{label}.keywords' must be a list of non-empty strings")

    weight = block.get("weight")
    # bool is an int subclass; reject it explicitly.
    if isinstance(weight, bool) or not isinstance(weight, (int, float)) or weight < 0:
        raise ConfigError(f"'{label}.weight' must be a non-negative number, got {weight!r}")

    return KeywordTier(keywords=tuple(kw.strip() for kw in keywords), weight=float(weight))
