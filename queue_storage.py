"""Persistence backends for the paper queue.

The queue talks to a ``QueueStorage`` (``load``/``save``); the JSON file
backend is used by the CLI and the in-memory backend by tests.
"""

from __future__ import annotations

import copy
import json
import logging
import os
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from models import Paper, QueuedPaper, ScoreBreakdown, ScoringResult, ThreatLevel

LOGGER = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when queue state cannot be read or written."""


@dataclass(slots=True)
class QueueState:
    papers: list[QueuedPaper]
    created_at: datetime | None = None
    last_digest_sent_at: datetime | None = None


class QueueStorage(Protocol):
    def load(self) -> QueueState | None:
        """Return the persisted state, or None when nothing has been saved yet."""

    def save(self, state: QueueState) -> None:
        ...


@dataclass
class InMemoryStorage:
    """Storage that keeps a private copy of the last saved state."""

    state: QueueState | None = None
    save_count: int = field(default=0, init=False)

    def load(self) -> QueueState | None:
        return copy.deepcopy(self.state)

    def save(self, state: QueueState) -> None:
        self.state = copy.deepcopy(state)
        self.save_count += 1


class JsonFileStorage:
    """Queue state stored as a single pretty-printed JSON document."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> QueueState | None:
        if not self.path.exists():
            return None

        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
            return state_from_dict(payload)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise StorageError(f"Failed to load queue from {self.path}: {exc}") from exc

    def save(self, state: QueueState) -> None:
        payload = json.dumps(state_to_dict(state), indent=2, ensure_ascii=False)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise StorageError(f"Failed to save queue to {self.path}: {exc}") from exc

        LOGGER.debug("Saved %s queued papers to %s", len(state.papers), self.path)


def state_to_dict(state: QueueState) -> dict[str, Any]:
    return {
        "papers": [_queued_to_dict(entry) for entry in state.papers],
        "last_digest_sent_at": _format_datetime(state.last_digest_sent_at),
        "created_at": _format_datetime(state.created_at),
    }


def state_from_dict(payload: Any) -> QueueState:
    if not isinstance(payload, dict):
        raise ValueError("Unexpected queue payload shape: expected an object")

    papers = payload.get("papers") or []
    if not isinstance(papers, list):
        raise ValueError("Unexpected queue payload shape: 'papers' must be a list")

    return QueueState(
        papers=[_queued_from_dict(item) for item in papers],
        created_at=_parse_datetime(payload.get("created_at")),
        last_digest_sent_at=_parse_datetime(payload.get("last_digest_sent_at")),
    )


def _queued_to_dict(entry: QueuedPaper) -> dict[str, Any]:
    paper = entry.paper
    scoring = entry.scoring
    breakdown = scoring.breakdown
    return {
        "paper_id": paper.paper_id,
        "title": paper.title,
        "abstract": paper.abstract,
        "categories": list(paper.categories),
        "authors": list(paper.authors),
        "url": paper.url,
        "published_at": _format_datetime(paper.published_at),
        "scoring": {
            "score": scoring.score,
            "breakdown": {
                "domain": breakdown.domain,
                "generative": breakdown.generative,
                "data_edge": breakdown.data_edge,
                "commercial": breakdown.commercial,
                "category_boost": breakdown.category_boost,
            },
            "triple_match": scoring.triple_match,
            "threat_level": scoring.threat_level.value,
            "raw_score": scoring.raw_score,
            "is_relevant": scoring.is_relevant,
        },
        "added_at": _format_datetime(entry.added_at),
    }


def _queued_from_dict(item: dict[str, Any]) -> QueuedPaper:
    scoring = item["scoring"]
    breakdown = scoring["breakdown"]
    added_at = _parse_datetime(item["added_at"])
    if added_at is None:
        raise ValueError(f"Queued paper {item.get('paper_id')!r} has no added_at timestamp")

    return QueuedPaper(
        paper=Paper(
            paper_id=item["paper_id"],
            title=item.get("title") or "",
            abstract=item.get("abstract") or "",
            categories=tuple(item.get("categories") or ()),
            authors=tuple(item.get("authors") or ()),
            url=item.get("url") or "",
            published_at=_parse_datetime(item.get("published_at")),
        ),
        scoring=ScoringResult(
            score=float(scoring["score"]),
            breakdown=ScoreBreakdown(
                domain=float(breakdown["domain"]),
                generative=float(breakdown["generative"]),
                data_edge=float(breakdown["data_edge"]),
                commercial=float(breakdown["commercial"]),
                category_boost=float(breakdown["category_boost"]),
            ),
            triple_match=bool(scoring["triple_match"]),
            threat_level=ThreatLevel(scoring["threat_level"]),
            raw_score=float(scoring["raw_score"]),
            is_relevant=bool(scoring["is_relevant"]),
        ),
        added_at=added_at,
    )


def _format_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_datetime(raw: Any) -> datetime | None:
    if not isinstance(raw, str) or not raw:
        return None

    parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed
