# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Calendar-month helpers — pure computation, no I/O.
Windows are half-open: [first day 00:00, first day of next month 00:00).
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def month_start(moment: datetime, months_back: int = 0) -> datetime:
    """First instant of the month `months_back` months before `moment`'s month."""
    month_index = moment.year * 12 + (moment.month - 1) - months_back
    year, month = divmod(month_index, 12)
    return moment.replace(
        year=year, month=month + 1, day=1, hour=0, minute=0, second=0, microsecond=0
    )


def month_window(moment: datetime, months_back: int = 0) -> tuple[datetime, datetime]:
    """Return (start, end) bounding one calendar month, end exclusive."""
    start = month_start(moment, months_back)
    end = month_start(moment, months_back - 1)
    return start, end


def period_label(moment: datetime, months_back: int = 0) -> str:
    """'YYYY-MM' label for the month, as used in logs and audit details."""
    start = month_start(moment, months_back)
    return f"{start.year:04d}-{start.month:02d}"
