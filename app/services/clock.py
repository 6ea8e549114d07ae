# app/services/clock.py
from datetime import datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]

_ONE_SECOND = timedelta(seconds=1)


def utcnow() -> datetime:
    """DB 컬럼이 naive UTC 이므로 tzinfo 를 떼서 돌려준다."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def elapsed_seconds(since: datetime | None, now: datetime) -> int:
    """since ~ now 사이 경과 초 (내림). since 가 없거나 시계가 거꾸로면 0."""
    if since is None:
        return 0
    return max(0, (now - since) // _ONE_SECOND)


def seconds_before(now: datetime, seconds: int) -> datetime:
    return now - timedelta(seconds=seconds)
