from datetime import date
from datetime import datetime
from datetime import timedelta
from datetime import timezone

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel
from pydantic import ConfigDict

from backend.models import DAYS_IN_WEEK


# Weekday numbers follow `date.weekday()`: Monday is 0, Sunday is 6.
MONDAY = 0
SUNDAY = 6

WINDOW_MONTHS = 12
MAX_WEEK_SPAN = 52


class DateWindow(BaseModel):
    """Week-aligned date range, one list of 7 dates per column."""

    model_config = ConfigDict(frozen=True)

    start_date: date
    last_date: date
    weeks: list[list[date]]

    @property
    def week_starts(self) -> list[date]:
        return [week[0] for week in self.weeks]

    def dates(self) -> list[date]:
        """All dates in column-major order."""

        return [day for week in self.weeks for day in week]


def local_today(
    now: datetime | None = None, utc_offset_minutes: int | None = None
) -> date:
    """Return the caller's local calendar date.

    `utc_offset_minutes` is minutes east of UTC. When given, `now` is
    shifted into that fixed offset (a naive `now` is taken as UTC). A fixed
    offset does not follow DST transitions; pass an aware `now` in the
    right zone and no offset to get DST-correct behaviour.
    """

    if now is None:
        now = datetime.now(timezone.utc)

    if utc_offset_minutes is not None:
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        now = now.astimezone(timezone(timedelta(minutes=utc_offset_minutes)))

    return now.date()


def start_of_week(day: date, week_start: int = SUNDAY) -> date:
    return day - timedelta(days=(day.weekday() - week_start) % DAYS_IN_WEEK)


def calendar_week_difference(
    later: date, earlier: date, week_start: int = SUNDAY
) -> int:
    """Number of week boundaries between two dates."""

    delta = start_of_week(later, week_start) - start_of_week(earlier, week_start)
    return delta.days // DAYS_IN_WEEK


def build_date_window(last_date: date, week_start: int = SUNDAY) -> DateWindow:
    """Build the trailing-year window ending at `last_date`.

    The window starts on the week boundary at or before the same date
    twelve months earlier. That start can sit 53 week boundaries back
    depending on the weekday of `last_date`; it is then moved forward one
    week so the span never exceeds 52. The final column may contain dates
    after `last_date`.
    """

    start = start_of_week(last_date - relativedelta(months=WINDOW_MONTHS), week_start)
    if calendar_week_difference(last_date, start, week_start) > MAX_WEEK_SPAN:
        start += timedelta(weeks=1)

    weeks: list[list[date]] = []
    current = start
    while current <= last_date:
        weeks.append([current + timedelta(days=row) for row in range(DAYS_IN_WEEK)])
        current += timedelta(weeks=1)

    return DateWindow(start_date=start, last_date=last_date, weeks=weeks)
