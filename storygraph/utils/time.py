from __future__ import annotations

from datetime import datetime, timezone


def utc_now_aware() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    return utc_now_aware().isoformat().replace("+00:00", "Z")


def unix_millis(moment: datetime | None = None) -> int:
    return int((moment or utc_now_aware()).timestamp() * 1000)
