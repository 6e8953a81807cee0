"""Persistent, deduplicated queue of scored papers awaiting a digest."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from digest_trigger import should_trigger_digest
from models import Paper, QueuedPaper, QueueStats, ScoringResult, ThreatLevel, TriggerDecision
from queue_storage import QueueState, QueueStorage, StorageError
from settings import QueueConfig

LOGGER = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class PaperQueue:
    """Ordered queue of relevant papers, persisted after every mutation.

    Insertion order is preserved; no two entries share a paper_id. Only
    ``add``, ``remove_old_papers``, ``mark_sent`` and ``clear`` mutate the
    queue.
    """

    def __init__(
        self,
        config: QueueConfig,
        storage: QueueStorage,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.config = config
        self.storage = storage
        self.clock = clock
        self.last_save_ok = True

        self._papers: list[QueuedPaper] = []
        self.last_digest_sent_at: datetime | None = None
        self.created_at: datetime = clock()
        self._load()

    def _load(self) -> None:
        try:
            state = self.storage.load()
        except StorageError as exc:
            LOGGER.error("Queue load failed, starting with an empty queue: %s", exc)
            return

        if state is None:
            self._save()
            return

        self._papers = list(state.papers)
        self.last_digest_sent_at = state.last_digest_sent_at
        if state.created_at is not None:
            self.created_at = state.created_at
        LOGGER.info("Loaded %s queued papers", len(self._papers))

    def _save(self) -> bool:
        state = QueueState(
            papers=list(self._papers),
            created_at=self.created_at,
            last_digest_sent_at=self.last_digest_sent_at,
        )
        try:
            self.storage.save(state)
        except StorageError as exc:
            self.last_save_ok = False
            LOGGER.error("Queue save failed; in-memory state is not durable: %s", exc)
            return False

        self.last_save_ok = True
        return True

    def add(self, paper: Paper, scoring: ScoringResult) -> bool:
        """Append a scored paper; return False for duplicates or low scores."""
        if any(entry.paper.paper_id == paper.paper_id for entry in self._papers):
            LOGGER.info("Paper %s already in queue, skipping", paper.paper_id)
            return False

        if scoring.score < self.config.min_relevance_score:
            LOGGER.info(
                "Paper %s below min score (%s < %s), not adding to queue",
                paper.paper_id,
                scoring.score,
                self.config.min_relevance_score,
            )
            return False

        self._papers.append(QueuedPaper(paper=paper, scoring=scoring, added_at=self.clock()))
        self._save()
        LOGGER.info("Added paper to queue: %s [score=%s]", paper.title, scoring.score)
        return True

    def get_all(self) -> list[QueuedPaper]:
        return list(self._papers)

    def get_sorted_by_score(self) -> list[QueuedPaper]:
        # sorted() is stable, so equal scores keep insertion order.
        return sorted(self._papers, key=lambda entry: entry.scoring.score, reverse=True)

    def count(self) -> int:
        return len(self._papers)

    def clear(self) -> None:
        """Empty the queue after a digest and restart the time-threshold clock."""
        self._papers = []
        self.last_digest_sent_at = self.clock()
        self._save()
        LOGGER.info("Queue cleared")

    def mark_sent(self, paper_ids: list[str]) -> int:
        """Drop papers that went out in a digest and restart the time-threshold clock.

        Papers not listed stay queued for the next digest. Returns how many
        entries were removed.
        """
        sent = set(paper_ids)
        kept = [entry for entry in self._papers if entry.paper.paper_id not in sent]
        removed = len(self._papers) - len(kept)

        self._papers = kept
        self.last_digest_sent_at = self.clock()
        self._save()
        LOGGER.info("Marked %s papers as sent, %s still queued", removed, len(kept))
        return removed

    def should_trigger_digest(self) -> TriggerDecision:
        return should_trigger_digest(
            count=self.count(),
            last_digest_sent_at=self.last_digest_sent_at,
            now=self.clock(),
            digest_threshold=self.config.digest_threshold,
            max_days_between_digests=self.config.max_days_between_digests,
        )

    def get_stats(self) -> QueueStats:
        papers = self._papers
        threat_counts = {level: 0 for level in ThreatLevel}
        for entry in papers:
            threat_counts[entry.scoring.threat_level] += 1

        avg_score = sum(entry.scoring.score for entry in papers) / len(papers) if papers else 0.0

        return QueueStats(
            total_papers=len(papers),
            threat_counts=threat_counts,
            avg_score=round(avg_score, 1),
            triple_match_count=sum(1 for entry in papers if entry.scoring.triple_match),
            oldest_added_at=min((entry.added_at for entry in papers), default=None),
            last_digest_sent_at=self.last_digest_sent_at,
        )

    def remove_old_papers(self, max_age_days: float = 30) -> int:
        """Drop papers queued more than max_age_days ago; return how many were removed."""
        cutoff = self.clock() - timedelta(days=max_age_days)
        kept = [entry for entry in self._papers if entry.added_at >= cutoff]
        removed = len(self._papers) - len(kept)

        if removed > 0:
            self._papers = kept
            self._save()
            LOGGER.info("Removed %s papers older than %s days", removed, max_age_days)

        return removed
