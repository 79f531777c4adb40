from functools import reduce

from backend.models import Grid
from backend.models import MonthLabel


Month = tuple[int, int]
_PlanState = tuple[Month | None, tuple[MonthLabel, ...]]


def plan_month_labels(grid: Grid) -> list[MonthLabel]:
    """Decide which week columns get a month label.

    A column's month is the month of its first row. A label is emitted when
    that month differs from the last emitted one, except for single-week
    slivers at the edges: the first column when the second column already
    belongs to the next month, and a new month starting in the last column.

    Months are (year, month) pairs, so the same text can appear twice when
    the window covers the same month in consecutive years.
    """

    months: list[Month] = [(column[0].date.year, column[0].date.month) for column in grid]
    last_index = len(months) - 1

    def step(state: _PlanState, item: tuple[int, Month]) -> _PlanState:
        last_emitted, labels = state
        index, month = item
        if month == last_emitted:
            return state
        if index == 0 and last_index > 0 and months[1] != month:
            return state
        if index == last_index and index > 0:
            return state

        text = grid[index][0].date.strftime("%b")
        return month, (*labels, MonthLabel(column_index=index, text=text))

    initial: _PlanState = (None, ())
    _, labels = reduce(step, enumerate(months), initial)
    return list(labels)
