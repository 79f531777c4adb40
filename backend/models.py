from datetime import date
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import model_validator


DAYS_IN_WEEK = 7
MAX_INTENSITY = 4

ColorScheme = Literal["light", "dark"]


class ContributionRecord(BaseModel):
    """One upstream per-day activity record."""

    model_config = ConfigDict(frozen=True)

    date: date
    count: int = Field(default=0, ge=0)
    intensity: int = Field(default=0, ge=0, le=MAX_INTENSITY)


class DayCell(BaseModel):
    """A single grid cell. Future cells always carry zero count and intensity."""

    model_config = ConfigDict(frozen=True)

    date: date
    count: int = Field(default=0, ge=0)
    intensity: int = Field(default=0, ge=0, le=MAX_INTENSITY)
    is_future: bool = False

    @model_validator(mode="after")
    def check_future_is_empty(self) -> "DayCell":
        if self.is_future and (self.count or self.intensity):
            raise ValueError("future days cannot carry contributions")
        return self

    @property
    def key(self) -> str:
        return self.date.isoformat()


WeekColumn = list[DayCell]
Grid = list[WeekColumn]


class MonthLabel(BaseModel):
    model_config = ConfigDict(frozen=True)

    column_index: int = Field(ge=0)
    text: str


class RenderOptions(BaseModel):
    """Visual options for the rendered badge.

    Every field that differs from its default is written into the footer
    link, see `backend.services.svg_renderer.encode_render_options`.
    """

    model_config = ConfigDict(frozen=True)

    box_size: int = Field(default=10, ge=1, le=50)
    box_margin: int = Field(default=2, ge=0, le=20)
    border_radius: int = Field(default=2, ge=0, le=25)
    show_weekdays: bool = True
    show_footer: bool = True
    color_scheme: ColorScheme = "light"
