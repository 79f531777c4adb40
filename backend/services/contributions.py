import logging
from collections.abc import Iterable
from collections.abc import Mapping
from datetime import date
from typing import Any

from pydantic import ValidationError

from backend.models import DAYS_IN_WEEK
from backend.models import ContributionRecord
from backend.models import DayCell
from backend.models import Grid
from backend.services.date_range import DateWindow


logger = logging.getLogger(__name__)


def parse_contribution_records(
    raw_records: Iterable[Mapping[str, Any] | ContributionRecord],
) -> list[ContributionRecord]:
    """Validate raw upstream items, skipping the ones that do not parse."""

    records: list[ContributionRecord] = []
    skipped = 0
    for item in raw_records:
        if isinstance(item, ContributionRecord):
            records.append(item)
            continue
        try:
            records.append(ContributionRecord.model_validate(item))
        except ValidationError:
            skipped += 1

    if skipped:
        logger.debug("Skipped %d invalid contribution records", skipped)
    return records


def index_by_date(
    records: Iterable[ContributionRecord],
) -> dict[date, ContributionRecord]:
    """Index records by date. The first record for a date wins."""

    indexed: dict[date, ContributionRecord] = {}
    for record in records:
        indexed.setdefault(record.date, record)
    return indexed


def map_contributions(
    window: DateWindow, records: Iterable[ContributionRecord]
) -> list[DayCell]:
    """Produce one cell per window date, in column-major order."""

    by_date = index_by_date(records)
    cells: list[DayCell] = []
    for day in window.dates():
        if day > window.last_date:
            cells.append(DayCell(date=day, is_future=True))
            continue

        record = by_date.get(day)
        if record is None:
            cells.append(DayCell(date=day))
        else:
            cells.append(
                DayCell(date=day, count=record.count, intensity=record.intensity)
            )
    return cells


def assemble_grid(cells: list[DayCell]) -> Grid:
    """Group cells into week columns of exactly seven days.

    Raises:
        ValueError: If the cell count is not a whole number of weeks.
    """

    if len(cells) % DAYS_IN_WEEK:
        raise ValueError(
            f"Expected a multiple of {DAYS_IN_WEEK} cells, got {len(cells)}"
        )

    return [
        cells[offset : offset + DAYS_IN_WEEK]
        for offset in range(0, len(cells), DAYS_IN_WEEK)
    ]


def count_contributions(grid: Grid) -> int:
    return sum(cell.count for column in grid for cell in column if not cell.is_future)
