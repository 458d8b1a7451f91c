from __future__ import annotations

import random


def is_due(last_run_at: float | None, interval_seconds: float, now: float) -> bool:
    """A task that never ran is due immediately; otherwise once ``interval_seconds`` elapsed."""
    if last_run_at is None:
        return True
    return now - last_run_at >= interval_seconds


def next_backoff(
    current: float,
    *,
    base: float,
    maximum: float,
    jitter: float | None = None,
) -> float:
    """Double the previous delay with up to 50% jitter, capped at ``maximum``."""
    spread = random.uniform(0.0, 0.5) if jitter is None else jitter
    return min(max(current, base) * (2.0 + spread), maximum)
