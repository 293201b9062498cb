"""
Experience duration arithmetic and dashboard statistics.

Durations are reported in a compact "1y6m" form. Dates are month-precision
strings in either "Jan 2023" or "2023-01" form.
"""

import logging
from datetime import date
from typing import Any, Dict, Iterable, Optional

from .models import Document, RawItem

logger = logging.getLogger(__name__)

# Average month length in days
DAYS_PER_MONTH = 30.44

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}


def parse_month_year(value: Optional[str]) -> Optional[date]:
    """
    Parse "Jan 2023" or "2023-01" (also "2023-01-15") into the first of that month.

    Returns:
        The date, or None if the string is empty or not understood.
    """
    if not value or not isinstance(value, str):
        return None
    value = value.strip()

    if " " in value:
        month_str, _, year_str = value.partition(" ")
        month = MONTHS.get(month_str[:3].lower())
        if month is None:
            return None
        try:
            return date(int(year_str.strip()), month, 1)
        except ValueError:
            return None

    if "-" in value:
        parts = value.split("-")
        try:
            year, month = int(parts[0]), int(parts[1])
            return date(year, month, 1)
        except (ValueError, IndexError):
            return None

    return None


def months_between(start: date, end: date) -> int:
    """Whole months from start to end using the average month length."""
    return int((end - start).days // DAYS_PER_MONTH)


def format_months(total: int) -> str:
    """Format a month count as "XyYm"; anything under one month is "0m"."""
    if total < 1:
        return "0m"
    years, months = divmod(total, 12)
    if years == 0:
        return f"{months}m"
    if months == 0:
        return f"{years}y"
    return f"{years}y{months}m"


def _span_months(start: Optional[str], end: Optional[str], current: bool, today: date) -> Optional[int]:
    start_date = parse_month_year(start)
    if current or not end:
        end_date: Optional[date] = today
    else:
        end_date = parse_month_year(end)
    if start_date is None or end_date is None:
        return None
    return months_between(start_date, end_date)


def experience_duration(
    start: Optional[str],
    end: Optional[str] = None,
    current: bool = False,
    today: Optional[date] = None,
) -> str:
    """Duration of one position; open-ended or current positions run to today."""
    months = _span_months(start, end, current, today or date.today())
    if months is None:
        return "0m"
    return format_months(months)


def total_experience(experiences: Iterable[Any], today: Optional[date] = None) -> str:
    """
    Sum of all position durations.

    Accepts Experience records or dicts with startDate/endDate/current.
    Negative spans count as zero; overlapping positions are not de-duplicated.
    """
    today = today or date.today()
    total = 0
    for exp in experiences:
        if isinstance(exp, RawItem):
            continue
        if isinstance(exp, dict):
            start, end, current = exp.get("startDate"), exp.get("endDate"), exp.get("current", False)
        else:
            start, end, current = exp.start_date, exp.end_date, exp.current
        months = _span_months(start, end, bool(current), today)
        if months is not None:
            total += max(0, months)
    return format_months(total)


def document_stats(document: Document, today: Optional[date] = None) -> Dict[str, Any]:
    """Collection counts plus profile presence and total experience."""
    stats: Dict[str, Any] = dict(document.counts())
    stats["hasProfile"] = document.profile is not None
    stats["totalExperience"] = total_experience(document.experiences, today=today)
    return stats
