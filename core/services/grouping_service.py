"""Date grouping of the filtered photo sequence for section headers."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, timedelta

from core.models import DateGroup, Photo, as_local

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


class GroupingService:
    """Buckets photos into date-labelled groups relative to today."""

    def group(self, photos: Iterable[Photo], now: datetime | None = None) -> list[DateGroup]:
        """Group `photos` by effective day.

        Buckets, by precedence: today, yesterday, this week (weeks start on
        Sunday), this month, then one bucket per calendar month. Groups come
        out in first-encounter order and keep the input order of photos.
        """
        today = (as_local(now) if now else datetime.now()).date()
        yesterday = today - timedelta(days=1)
        # date.weekday(): Monday == 0 ... Sunday == 6
        week_start = today - timedelta(days=(today.weekday() + 1) % 7)
        month_start = today.replace(day=1)

        groups: dict[str, DateGroup] = {}
        for photo in photos:
            day = photo.effective_date.date()
            key, label = _bucket(day, today, yesterday, week_start, month_start)
            group = groups.get(key)
            if group is None:
                group = groups[key] = DateGroup(label=label, key=key)
            group.photos.append(photo)
        return list(groups.values())


def _bucket(
    day: date, today: date, yesterday: date, week_start: date, month_start: date
) -> tuple[str, str]:
    if day == today:
        return "today", "Today"
    if day == yesterday:
        return "yesterday", "Yesterday"
    if day >= week_start:
        return "this-week", "This Week"
    if day >= month_start:
        return "this-month", "This Month"
    return f"{day.year}-{day.month:02d}", f"{MONTH_NAMES[day.month - 1]} {day.year}"
