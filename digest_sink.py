"""CSV export of a digest (score-sorted queue snapshot)."""

from __future__ import annotations

import csv
import logging
from datetime import UTC, datetime
from pathlib import Path

from models import QueuedPaper, QueueStats, ThreatLevel

LOGGER = logging.getLogger(__name__)

CSV_COLUMNS = [
    "rank",
    "paper_id",
    "title",
    "url",
    "authors",
    "categories",
    # Scoring
    "score",
    "threat_level",
    "triple_match",
    "domain",
    "generative",
    "data_edge",
    "commercial",
    "category_boost",
    "raw_score",
    # Timestamps
    "published_at",
    "added_at",
]


def digest_filename(now: datetime | None = None) -> str:
    """Return the digest file name, e.g. ``digest_2026-01-31T093000.csv``."""
    now = now or datetime.now(UTC)
    return now.strftime("digest_%Y-%m-%dT%H%M%S.csv")


def _unused_path(directory: Path, filename: str) -> Path:
    # Never overwrite an earlier export.
    path = directory / filename
    suffix = 1
    while path.exists():
        path = directory / f"{Path(filename).stem}_{suffix}.csv"
        suffix += 1
    return path


def digest_subject(entries: list[QueuedPaper], stats: QueueStats) -> str:
    high = stats.threat_counts.get(ThreatLevel.HIGH, 0)
    return f"ArXiv Intelligence Digest - {len(entries)} Papers ({high} HIGH priority)"


def write_digest(
    entries: list[QueuedPaper],
    stats: QueueStats,
    output_dir: str | Path,
    max_papers: int | None = None,
    now: datetime | None = None,
) -> Path:
    """Write entries (already sorted by score) to a timestamped CSV in output_dir.

    Args:
        entries:    Queue snapshot, highest score first.
        stats:      Queue stats at export time; used for the log line.
        output_dir: Directory for digest files; created if missing.
        max_papers: Optional cap on exported rows.
        now:        Timestamp used for the file name.

    Returns:
        Path of the written CSV file.
    """
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    path = _unused_path(directory, digest_filename(now))

    selected = entries[:max_papers] if max_papers is not None else entries

    with path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=CSV_COLUMNS)
        writer.writeheader()
        for rank, entry in enumerate(selected, start=1):
            writer.writerow(_row(rank, entry))

    LOGGER.info(
        "Wrote digest to %s: %s", path, digest_subject(selected, stats)
    )
    return path


def _row(rank: int, entry: QueuedPaper) -> dict[str, object]:
    paper = entry.paper
    scoring = entry.scoring
    breakdown = scoring.breakdown
    return {
        "rank": rank,
        "paper_id": paper.paper_id,
        "title": paper.title,
        "url": paper.url,
        "authors": "; ".join(paper.authors),
        "categories": " ".join(paper.categories),
        "score": scoring.score,
        "threat_level": scoring.threat_level.value,
        "triple_match": scoring.triple_match,
        "domain": breakdown.domain,
        "generative": breakdown.generative,
        "data_edge": breakdown.data_edge,
        "commercial": breakdown.commercial,
        "category_boost": breakdown.category_boost,
        "raw_score": round(scoring.raw_score, 2),
        "published_at": paper.published_at.isoformat() if paper.published_at else "",
        "added_at": entry.added_at.isoformat(),
    }
