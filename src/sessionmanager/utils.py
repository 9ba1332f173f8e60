import time
from datetime import UTC, datetime


def now() -> datetime:
    return datetime.now(UTC)


def recency_score() -> int:
    """Current wall-clock time in microseconds, used as the sorted-set score of a session.

    Scores are compared across processes and restarts, so this is not a monotonic
    clock. A backwards step of the system clock can reorder eviction until it catches up.
    """
    return time.time_ns() // 1000


def short_token(token: str) -> str:
    """Shorten a session token for log output."""
    return token[:8]
