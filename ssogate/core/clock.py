"""Wall clock used for token timestamps."""

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], int]


def utc_now() -> int:
    """Current time as integer unix seconds."""
    return int(datetime.now(UTC).timestamp())
