from datetime import date

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class GridDay(BaseModel):
    """Single day item used in the grid response."""

    date: date
    count: int
    intensity: int
    is_future: bool


class GridWeek(BaseModel):
    """Week column containing seven chronologically ordered days."""

    week_start: date
    days: list[GridDay]


class GridMonthLabel(BaseModel):
    column_index: int
    text: str


class GridResponse(BaseModel):
    """Contribution grid payload backing the rendered badge."""

    model_config = ConfigDict(populate_by_name=True)

    username: str
    from_date: date = Field(alias="from")
    to_date: date = Field(alias="to")
    total: int
    weeks: list[GridWeek]
    month_labels: list[GridMonthLabel]
