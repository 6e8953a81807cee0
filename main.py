"""CLI entrypoint for the competitive-intel paper digest."""

from __future__ import annotations

import argparse
import logging

from dotenv import load_dotenv

from arxiv_feed import extract_arxiv_id, fetch_paper
from digest_sink import write_digest
from models import ThreatLevel
from paper_queue import PaperQueue
from queue_storage import JsonFileStorage
from scorer import CompetitiveIntelScorer
from settings import Settings

LOGGER = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Score arXiv papers and manage the competitive-intel digest queue")
    parser.add_argument(
        "command",
        choices=["score", "add", "status", "digest", "cleanup"],
        help=(
            "'score': fetch and score papers without queueing. "
            "'add': fetch, score and queue papers, sending a digest when the trigger fires. "
            "'status': print queue stats and the trigger decision. "
            "'digest': export the queue to CSV and clear it if the trigger fires. "
            "'cleanup': drop papers older than --max-age-days."
        ),
    )
    parser.add_argument("papers", nargs="*", help="arXiv ids or URLs (score/add only)")
    parser.add_argument("--dry-run", action="store_true", help="Score papers but do not modify the queue")
    parser.add_argument("--force", action="store_true", help="Export a digest even if the trigger has not fired")
    parser.add_argument("--max-age-days", type=float, default=30, help="Age cutoff for 'cleanup' (default 30)")
    return parser.parse_args(argv)


def build_queue(settings: Settings) -> PaperQueue:
    return PaperQueue(settings.queue, JsonFileStorage(settings.queue.queue_path))


def run_score(ids: list[str], scorer: CompetitiveIntelScorer) -> int:
    """Fetch and score each id, logging the breakdown. Returns the number scored."""
    scored = 0
    for raw in ids:
        arxiv_id = extract_arxiv_id(raw)
        if not arxiv_id:
            LOGGER.warning("Not an arXiv id or URL: %s", raw)
            continue

        paper = fetch_paper(arxiv_id)
        if paper is None:
            continue

        result = scorer.score_paper(paper)
        b = result.breakdown
        LOGGER.info(
            "%s | score=%s/10 relevant=%s threat=%s triple_match=%s | "
            "domain=%s/3 generative=%s/3 data_edge=%s/4 commercial=%s/3 category_boost=%s/2",
            paper.title,
            result.score,
            result.is_relevant,
            result.threat_level.value,
            result.triple_match,
            b.domain,
            b.generative,
            b.data_edge,
            b.commercial,
            b.category_boost,
        )
        scored += 1
    return scored


def run_add(
    ids: list[str],
    scorer: CompetitiveIntelScorer,
    queue: PaperQueue,
    settings: Settings,
    dry_run: bool,
) -> int:
    """Fetch, score and queue each id; flush a digest whenever the trigger fires.

    Returns the number of papers added to the queue.
    """
    added = 0
    skipped = 0
    failed = 0

    for raw in ids:
        arxiv_id = extract_arxiv_id(raw)
        if not arxiv_id:
            LOGGER.warning("Not an arXiv id or URL: %s", raw)
            failed += 1
            continue

        try:
            paper = fetch_paper(arxiv_id)
            if paper is None:
                failed += 1
                continue

            scoring = scorer.score_paper(paper)
            LOGGER.info(
                "Scored paper_id=%s score=%s threat=%s triple_match=%s",
                paper.paper_id,
                scoring.score,
                scoring.threat_level.value,
                scoring.triple_match,
            )

            if not scoring.is_relevant:
                skipped += 1
                LOGGER.info(
                    "Below relevance threshold (%s < %s): %s",
                    scoring.score,
                    settings.scoring.min_relevance_score,
                    paper.paper_id,
                )
                continue

            if dry_run:
                LOGGER.info("[dry-run] Would queue: %s", paper.title)
                continue

            if not queue.add(paper, scoring):
                skipped += 1
                continue

            added += 1
            LOGGER.info("Queued paper_id=%s (%s papers in queue)", paper.paper_id, queue.count())
            run_digest(queue, settings, force=False)
        except Exception as exc:  # keep processing the remaining ids
            failed += 1
            LOGGER.exception("Failed processing %s: %s", arxiv_id, exc)

    LOGGER.info("Add complete. added=%s skipped=%s failed=%s", added, skipped, failed)
    return added


def run_status(queue: PaperQueue) -> None:
    stats = queue.get_stats()
    decision = queue.should_trigger_digest()
    LOGGER.info(
        "Queue: total=%s high=%s medium=%s low=%s avg_score=%s triple_matches=%s oldest=%s last_digest=%s",
        stats.total_papers,
        stats.threat_counts.get(ThreatLevel.HIGH, 0),
        stats.threat_counts.get(ThreatLevel.MEDIUM, 0),
        stats.threat_counts.get(ThreatLevel.LOW, 0),
        stats.avg_score,
        stats.triple_match_count,
        stats.oldest_added_at.isoformat() if stats.oldest_added_at else None,
        stats.last_digest_sent_at.isoformat() if stats.last_digest_sent_at else None,
    )
    LOGGER.info("Digest trigger: %s", decision.reason)


def run_digest(queue: PaperQueue, settings: Settings, force: bool) -> bool:
    """Export the queue when the trigger fires (or force is set).

    Exported papers leave the queue; papers beyond max_papers_per_digest
    stay queued for the next digest. Returns True if a digest was written.
    """
    decision = queue.should_trigger_digest()
    LOGGER.info("Queue status: %s", decision.reason)

    if not decision.should_trigger and not force:
        return False

    entries = queue.get_sorted_by_score()
    if not entries:
        LOGGER.info("No papers to send")
        return False

    max_papers = settings.queue.max_papers_per_digest
    path = write_digest(entries, queue.get_stats(), settings.queue.digest_output_dir, max_papers=max_papers)

    overflow = entries[max_papers:]
    if not overflow:
        queue.clear()
        LOGGER.info("Digest written to %s; queue cleared", path)
        return True

    queue.mark_sent([entry.paper.paper_id for entry in entries[:max_papers]])
    LOGGER.warning(
        "Digest written to %s with %s papers; %s papers over the limit stay queued",
        path,
        max_papers,
        len(overflow),
    )
    return True


def main(argv: list[str] | None = None) -> None:
    """Initialize config and execute the requested command."""
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    args = parse_args(argv)

    settings = Settings.from_env()
    scorer = CompetitiveIntelScorer(settings.scoring)

    if args.command == "score":
        run_score(args.papers, scorer)
        return

    queue = build_queue(settings)

    if args.command == "add":
        run_add(args.papers, scorer, queue, settings, dry_run=args.dry_run)
    elif args.command == "status":
        run_status(queue)
    elif args.command == "digest":
        run_digest(queue, settings, force=args.force)
    elif args.command == "cleanup":
        queue.remove_old_papers(args.max_age_days)


if __name__ == "__main__":
    main()
