# ABOUTME: Local seasonal calendar: month-to-season entries loaded from a bundled JSON file.
# ABOUTME: Parses the optional month parameter ("1".."12" or "01".."12") into a two-digit key.

import json
import logging
import re
from datetime import date
from pathlib import Path

from src.errors import CalendarUnavailable, InvalidMonth

logger = logging.getLogger(__name__)

_MONTH_RE = re.compile(r"0[1-9]|1[0-2]")


def load_months(path: Path) -> dict:
    """Read the month mapping from the calendar file.

    A file without a "months" object yields an empty mapping. Raises CalendarUnavailable
    if the file cannot be read or is not JSON.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8") or "{}")
    except (OSError, ValueError) as e:
        logger.error("Could not load calendar from %s: %s", path, e)
        raise CalendarUnavailable(str(e)) from e
    months = data.get("months") if isinstance(data, dict) else None
    return months if isinstance(months, dict) else {}


def resolve_month(raw: str | None, today: date) -> str:
    """Return the requested month as "01".."12", or today's month when none is given."""
    if not raw:
        return f"{today.month:02d}"
    month = raw.strip().zfill(2)
    if not _MONTH_RE.fullmatch(month):
        raise InvalidMonth(f"invalid month: {raw!r}")
    return month
