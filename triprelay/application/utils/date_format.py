from __future__ import annotations

import time
from datetime import datetime
from zoneinfo import ZoneInfo


def now_ms() -> int:
    return int(time.time() * 1000)


def format_date_ddmmyyyy(timestamp_ms: int, timezone: ZoneInfo) -> str:
    """Format an epoch timestamp in milliseconds as DD-MM-YYYY in the given zone."""
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone)
    return moment.strftime("%d-%m-%Y")
