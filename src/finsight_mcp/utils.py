"""Utility functions for finsight analytics."""

from datetime import date, datetime

from .errors import InvalidDateError


DATE_FORMAT = "%Y-%m-%d"


def round_money(value: float) -> float:
    """Round a monetary or percentage value to 2 decimal places."""
    return round(value, 2)


def parse_iso_date(value: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` string.

    Args:
        value: Date string as found in the transaction source.

    Returns:
        Parsed calendar date.

    Raises:
        InvalidDateError: If the string is empty or not a valid calendar date.
    """
    if not value or not isinstance(value, str):
        raise InvalidDateError()
    try:
        parsed = datetime.strptime(value, DATE_FORMAT).date()
    except ValueError as e:
        raise InvalidDateError() from e
    # strptime accepts unpadded fields such as "2024-1-5"
    if parsed.strftime(DATE_FORMAT) != value:
        raise InvalidDateError()
    return parsed


def year_month(value: date) -> str:
    """Zero-padded ``YYYY-MM`` key, so string order equals chronological order."""
    return f"{value.year:04d}-{value.month:02d}"


def months_between(start: date, end: date) -> int:
    """Inclusive number of calendar months spanned by two dates.

    Jan 1 -> Feb 15 is 2 months; any two days of the same month is 1.
    """
    years = end.year - start.year
    months = end.month - start.month
    return years * 12 + months + 1


def safe_percentage(part: float, total: float) -> float:
    """Share of ``part`` in ``total`` as 0-100, or 0 when total is not positive."""
    if total > 0:
        return part / total * 100
    return 0.0
