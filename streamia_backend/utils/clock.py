from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def now_utc_iso() -> str:
    return utc_now().isoformat()
