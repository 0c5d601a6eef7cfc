from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from ..core.config import Settings, settings

DAY_KEY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def utc_today(now: Optional[datetime] = None) -> date:
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is not None:
        current = current.astimezone(timezone.utc)
    return current.date()


def parse_day_key(raw: Any) -> Optional[date]:
    if isinstance(raw, date):
        return raw
    value = str(raw if raw is not None else "").strip()
    if not DAY_KEY_PATTERN.match(value):
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


def resolve_day_key(raw: Any, *, today: Optional[date] = None, config: Settings = settings) -> date:
    """Accept a client day key only inside the skew window around UTC today."""
    reference = today or utc_today()
    if not config.accept_client_day_key:
        return reference
    requested = parse_day_key(raw)
    if requested is None:
        return reference
    if abs((requested - reference).days) > max(config.day_key_skew_days, 0):
        return reference
    return requested


def previous_day(day: date) -> date:
    return day - timedelta(days=1)
