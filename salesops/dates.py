"""Reporting windows.

Every page works on an inclusive ``[start, end]`` window of ISO dates. Meeting
leads are fetched over a wider window (``lead_query_window``) because their
attribution date can trail or precede the row's creation time; the attribution
filters in ``salesops.attribution`` narrow them back down in memory.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta

from salesops.util import iso_date, parse_iso_date, today_iso, today_utc


LEAD_QUERY_FLOOR = "2000-01-01"


def in_range(day: str, start: str, end: str) -> bool:
    # ISO dates sort lexicographically.
    return bool(day) and start <= day <= end


@dataclass(frozen=True)
class DateRange:
    start: str
    end: str

    @classmethod
    def of(cls, start: str, end: str) -> "DateRange":
        start = str(start).strip()[:10]
        end = str(end).strip()[:10]
        if end < start:
            start, end = end, start
        return cls(start=start, end=end)

    @classmethod
    def month(cls, year: int, month: int) -> "DateRange":
        last = calendar.monthrange(year, month)[1]
        return cls(start=iso_date(date(year, month, 1)), end=iso_date(date(year, month, last)))

    @classmethod
    def current_month(cls, today: date | None = None) -> "DateRange":
        today = today or today_utc()
        return cls.month(today.year, today.month)

    @classmethod
    def resolve(cls, start: str | None, end: str | None, today: date | None = None) -> "DateRange":
        """Range from optional query params; blanks fall back to the current month."""
        default = cls.current_month(today)
        return cls.of(start or default.start, end or default.end)

    def contains(self, day: str) -> bool:
        return in_range(day, self.start, self.end)

    def query_ceiling(self, today: str | None = None) -> str:
        today = today or today_iso()
        return self.end if self.end >= today else today

    def lead_query_window(self, today: str | None = None) -> tuple[str, str]:
        """Creation-time bounds for the lead fetch.

        One day past the ceiling: a lead saved late in the evening west of UTC
        carries a created_at on the next UTC day.
        """
        ceiling = parse_iso_date(self.query_ceiling(today)) + timedelta(days=1)
        return LEAD_QUERY_FLOOR, iso_date(ceiling)

    def as_dict(self) -> dict[str, str]:
        return {"start_date": self.start, "end_date": self.end}


def year_to_date(year: int, today: str | None = None) -> DateRange:
    year_start = f"{year}-01-01"
    year_end = f"{year}-12-31"
    t = today or today_iso()
    if t < year_start:
        t = year_start
    if t > year_end:
        t = year_end
    return DateRange(start=year_start, end=t)


def days_in_year(year: int) -> int:
    return 366 if calendar.isleap(year) else 365


def day_of_year(day: str) -> int:
    return parse_iso_date(day).timetuple().tm_yday
