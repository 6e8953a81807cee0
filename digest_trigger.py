"""Digest trigger policy: decide whether the queue should be flushed."""

from __future__ import annotations

import math
from datetime import datetime

from models import TriggerDecision

SECONDS_PER_DAY = 24 * 60 * 60


def should_trigger_digest(
    count: int,
    last_digest_sent_at: datetime | None,
    now: datetime,
    digest_threshold: int,
    max_days_between_digests: float,
) -> TriggerDecision:
    """Return whether a digest is due, with a human-readable reason.

    Decision order:
    1. count >= digest_threshold triggers, whatever the elapsed time.
    2. A previous digest exists, at least max_days_between_digests have
       passed since it, and the queue is non-empty.
    3. Otherwise no trigger.
    """
    if count >= digest_threshold:
        return TriggerDecision(
            should_trigger=True,
            reason=f"Paper threshold reached ({count}/{digest_threshold})",
        )

    if last_digest_sent_at is not None:
        days_since = (now - last_digest_sent_at).total_seconds() / SECONDS_PER_DAY
        if days_since >= max_days_between_digests and count > 0:
            return TriggerDecision(
                should_trigger=True,
                reason=(
                    f"Time threshold reached ({math.floor(days_since)} days since last digest, "
                    f"max {_fmt_days(max_days_between_digests)} days)"
                ),
            )

    return TriggerDecision(
        should_trigger=False,
        reason=(
            f"Waiting for more papers ({count}/{digest_threshold}) "
            f"or {_fmt_days(max_days_between_digests)} days"
        ),
    )


def _fmt_days(days: float) -> str:
    return str(int(days)) if float(days).is_integer() else str(days)
