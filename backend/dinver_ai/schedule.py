"""
Opening-hours evaluation pinned to the restaurants' local time zone.

Weekly schedules look like ``{"periods": [period_mon, ..., period_sun]}`` where each
period is ``{"open": {"day": 0, "time": "1000"}, "close": {"day": 0, "time": "2200"}}``
(Monday = 0) or null for a closed day. A close day different from the open day
means the period runs past midnight. Date-keyed overrides
(``{"2026-12-24": {"open": "10:00", "close": "02:00", "closeDayOffset": 1}}``)
replace the weekly entry for that calendar day.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

PINNED_TIMEZONE = "Europe/Zagreb"
ZONE = ZoneInfo(PINNED_TIMEZONE)

DAY_LABELS = {
    "hr": ["Pon", "Uto", "Sri", "Čet", "Pet", "Sub", "Ned"],
    "en": ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"],
}
CLOSED_LABEL = {"hr": "Zatvoreno", "en": "Closed"}

_DAY_KEYWORDS = {
    "hr": re.compile(
        r"\b(ponedjelj\w*|utor\w*|srijed\w*|četvrt\w*|cetvrt\w*|petak|petk\w*|subot\w*|nedjelj\w*)\b"
    ),
    "en": re.compile(
        r"\b(monday|tuesday|wednesday|thursday|friday|saturday|sunday|mon|tues?|wed|thu(?:rs?)?|fri)s?\b"
    ),
}
_DAY_INDEX = {
    "pon": 0, "uto": 1, "sri": 2, "čet": 3, "cet": 3, "pet": 4, "sub": 5, "ned": 6,
    "mon": 0, "tue": 1, "wed": 2, "thu": 3, "fri": 4, "sat": 5, "sun": 6,
}
_TOMORROW = re.compile(r"\b(sutra|tomorrow)\b")


def now_in_zone(now: datetime | None = None) -> datetime:
    """Current wall-clock time in the pinned zone; naive instants are read as UTC."""
    if now is None:
        return datetime.now(ZONE)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(ZONE)


def minutes_since_midnight(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute


def _compact_time(value: Any) -> str:
    text = str(value or "").strip()
    if ":" in text:
        hours, _, minutes = text.partition(":")
        if hours.isdigit() and minutes[:2].isdigit():
            return f"{int(hours):02d}{minutes[:2]}"
    return text


def parse_hhmm(value: Any) -> int:
    """Minutes since midnight for an ``HHMM`` (or ``HH:MM``) string."""
    text = _compact_time(value)
    if len(text) != 4 or not text.isdigit():
        raise ValueError(f"Malformed time {value!r}")
    hours, minutes = int(text[:2]), int(text[2:])
    if hours > 24 or minutes > 59 or (hours == 24 and minutes):
        raise ValueError(f"Time out of range {value!r}")
    return hours * 60 + minutes


def format_time(value: Any) -> str:
    try:
        total = parse_hhmm(value)
    except ValueError:
        return ""
    return f"{total // 60:02d}:{total % 60:02d}"


def _periods(opening_hours: Any) -> list[Any] | None:
    if not isinstance(opening_hours, Mapping):
        return None
    periods = opening_hours.get("periods")
    return periods if isinstance(periods, list) else None


def period_for_day(opening_hours: Any, mon0: int) -> dict[str, Any] | None:
    periods = _periods(opening_hours)
    if not periods or not 0 <= mon0 < len(periods):
        return None
    period = periods[mon0]
    return period if isinstance(period, dict) else None


def todays_period(
    opening_hours: Any,
    overrides: Mapping[str, Any] | None,
    now: datetime | None = None,
) -> dict[str, Any] | None:
    moment = now_in_zone(now)
    mon0 = moment.weekday()
    override = (overrides or {}).get(moment.date().isoformat())
    if isinstance(override, Mapping) and override.get("open") and override.get("close"):
        offset = override.get("closeDayOffset", override.get("close_day_offset"))
        spans_midnight = offset == 1
        return {
            "open": {"day": mon0, "time": _compact_time(override["open"])},
            "close": {
                "day": (mon0 + 1) % 7 if spans_midnight else mon0,
                "time": _compact_time(override["close"]),
            },
        }
    return period_for_day(opening_hours, mon0)


def is_open_now(
    opening_hours: Any,
    overrides: Mapping[str, Any] | None,
    now: datetime | None = None,
) -> bool:
    try:
        moment = now_in_zone(now)
        period = todays_period(opening_hours, overrides, moment)
        if not period:
            return False
        open_part = period.get("open") or {}
        close_part = period.get("close") or {}
        if not open_part.get("time") or not close_part.get("time"):
            return False
        opens = parse_hhmm(open_part["time"])
        closes = parse_hhmm(close_part["time"])
        current = minutes_since_midnight(moment)
        if close_part.get("day", open_part.get("day")) == open_part.get("day"):
            return opens <= current < closes
        return current >= opens or current < closes
    except (ValueError, TypeError, AttributeError, KeyError) as exc:
        logger.debug("Unreadable schedule treated as closed: %s", exc)
        return False


def period_hours(period: Mapping[str, Any] | None) -> str | None:
    """``"10:00-22:00"`` for a period, or None when either bound is missing or malformed."""
    if not period:
        return None
    opens = format_time((period.get("open") or {}).get("time"))
    closes = format_time((period.get("close") or {}).get("time"))
    if not opens or not closes:
        return None
    return f"{opens}-{closes}"


def compress_schedule(opening_hours: Any, lang: str) -> str:
    """Group consecutive days with identical hours: ``Mon-Fri: 10:00-22:00, Sun: Closed``."""
    if _periods(opening_hours) is None:
        return ""
    labels = DAY_LABELS.get(lang, DAY_LABELS["en"])
    closed = CLOSED_LABEL.get(lang, CLOSED_LABEL["en"])
    groups: list[tuple[list[str], str]] = []
    for mon0, label in enumerate(labels):
        hours = period_hours(period_for_day(opening_hours, mon0)) or closed
        if groups and groups[-1][1] == hours:
            groups[-1][0].append(label)
        else:
            groups.append(([label], hours))
    parts = []
    for days, hours in groups:
        day_range = f"{days[0]}-{days[-1]}" if len(days) > 1 else days[0]
        parts.append(f"{day_range}: {hours}")
    return ", ".join(parts)


def describe_opening_hours(
    opening_hours: Any,
    overrides: Mapping[str, Any] | None,
    lang: str,
    now: datetime | None = None,
) -> dict[str, Any] | None:
    if _periods(opening_hours) is None and not overrides:
        return None
    moment = now_in_zone(now)
    today = todays_period(opening_hours, overrides, moment)
    hours = period_hours(today)
    if hours:
        opens, closes = hours.split("-")
        today_status: dict[str, Any] = {
            "is_open": is_open_now(opening_hours, overrides, moment),
            "opens": opens,
            "closes": closes,
        }
    else:
        today_status = {"closed": True}
    return {"formatted": compress_schedule(opening_hours, lang), "today": today_status}


def weekday_from_text(text: str, lang: str, now: datetime | None = None) -> tuple[int, bool]:
    """Monday-indexed weekday a question asks about, and whether it was named explicitly."""
    lowered = (text or "").lower()
    moment = now_in_zone(now)
    match = _DAY_KEYWORDS.get(lang, _DAY_KEYWORDS["en"]).search(lowered)
    if match:
        return _DAY_INDEX[match.group(1)[:3]], True
    if _TOMORROW.search(lowered):
        return (moment + timedelta(days=1)).weekday(), True
    return moment.weekday(), False
