import time
from datetime import datetime, timezone


def utc_date(now_ms: int) -> str:
    """Calendar date (YYYY-MM-DD, UTC) of an epoch-millisecond timestamp."""
    return datetime.fromtimestamp(now_ms / 1000, tz=timezone.utc).date().isoformat()


class Clock:
    def now_ms(self) -> int:
        return int(time.time() * 1000)

    def today(self) -> str:
        return utc_date(self.now_ms())
