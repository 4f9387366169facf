from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from dateutil import parser as date_parser


def format_date(d: date) -> str:
    """``date(2025, 1, 1)`` → ``"20250101"``."""
    return d.strftime("%Y%m%d")


def today_in(tz: Optional[str] = None, now: Optional[datetime] = None) -> date:
    """Civil date in ``tz`` (IANA name; ``None`` is the process-local zone)."""
    tzinfo = ZoneInfo(tz) if tz else None
    if now is None:
        return datetime.now(tzinfo).date()
    return now.astimezone(tzinfo).date()


def parse_date_arg(
    value: Optional[str], today: Optional[date] = None, tz: Optional[str] = None
) -> date:
    """Parse a CLI date argument.

    Accepts ``YYYYMMDD``, any ISO-8601 date / datetime, or any other string
    ``dateutil`` understands (``2025/01/11``, ``Jan 11 2025``). Missing value
    means today in ``tz``. Aware datetimes are converted to ``tz`` before the
    civil date is taken.
    """
    if value is None or not str(value).strip():
        return today or today_in(tz)

    s = str(value).strip()
    if len(s) == 8 and s.isdigit():
        return datetime.strptime(s, "%Y%m%d").date()

    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        try:
            dt = date_parser.parse(s)
        except OverflowError as e:
            raise ValueError(f"date out of range: {s!r}") from e

    if dt.tzinfo is not None:
        dt = dt.astimezone(ZoneInfo(tz) if tz else None)
    return dt.date()


def midnight_timestamp(d: date, tz: Optional[str] = None) -> int:
    """Unix seconds of civil midnight at the start of ``d``.

    ``tz`` is an IANA zone name; ``None`` uses the process-local zone.
    """
    tzinfo = ZoneInfo(tz) if tz else None
    midnight = datetime(d.year, d.month, d.day, tzinfo=tzinfo)
    return int(midnight.timestamp())
