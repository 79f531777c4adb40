from collections.abc import Mapping
from typing import NamedTuple
from urllib.parse import quote
from urllib.parse import urlencode

import svgwrite
from svgwrite.container import Group
from svgwrite.shapes import Rect
from svgwrite.text import Text

from backend.models import DAYS_IN_WEEK
from backend.models import MAX_INTENSITY
from backend.models import DayCell
from backend.models import Grid
from backend.models import MonthLabel
from backend.models import RenderOptions


LABEL_ROW_HEIGHT = 15
WEEKDAY_TEXT_WIDTH = 28
FOOTER_HEIGHT = 20
CANVAS_MARGIN = 20
FONT_SIZE = 9
LEGEND_TEXT_GAP = 4
LEGEND_MORE_WIDTH = 26

PROVIDER_NAME = "GitHub"
DEFAULT_PROFILE_BASE_URL = "https://github.com"
TEXT_COLOR = "var(--color-text-default)"


class ColorPair(NamedTuple):
    fill: str
    stroke: str


INTENSITY_COLORS: dict[int, ColorPair] = {
    0: ColorPair(
        "var(--color-calendar-graph-day-bg)",
        "var(--color-calendar-graph-day-border)",
    ),
    1: ColorPair(
        "var(--color-calendar-graph-day-L1-bg)",
        "var(--color-calendar-graph-day-L1-border)",
    ),
    2: ColorPair(
        "var(--color-calendar-graph-day-L2-bg)",
        "var(--color-calendar-graph-day-L2-border)",
    ),
    3: ColorPair(
        "var(--color-calendar-graph-day-L3-bg)",
        "var(--color-calendar-graph-day-L3-border)",
    ),
    4: ColorPair(
        "var(--color-calendar-graph-day-L4-bg)",
        "var(--color-calendar-graph-day-L4-border)",
    ),
}

# Query parameter name -> RenderOptions field, in link order.
OPTION_QUERY_NAMES: dict[str, str] = {
    "size": "box_size",
    "radius": "border_radius",
    "margin": "box_margin",
    "weeks": "show_weekdays",
    "footer": "show_footer",
    "scheme": "color_scheme",
}


class Geometry(NamedTuple):
    step: int
    text_width: int
    footer_height: int
    chart_height: int
    width: int
    height: int

    @property
    def grid_bottom(self) -> int:
        return LABEL_ROW_HEIGHT + DAYS_IN_WEEK * self.step


def compute_geometry(columns: int, options: RenderOptions) -> Geometry:
    step = options.box_size + options.box_margin
    text_width = WEEKDAY_TEXT_WIDTH if options.show_weekdays else 0
    footer_height = FOOTER_HEIGHT if options.show_footer else 0
    chart_height = (
        LABEL_ROW_HEIGHT + footer_height + DAYS_IN_WEEK * step + CANVAS_MARGIN
    )
    width = columns * step + text_width + CANVAS_MARGIN
    height = chart_height + 2 * CANVAS_MARGIN
    return Geometry(step, text_width, footer_height, chart_height, width, height)


def intensity_bucket(cell: DayCell) -> int:
    """Color bucket for a cell. Empty and future days use the no-data bucket."""

    if cell.is_future or not cell.count:
        return 0
    return min(max(cell.intensity, 0), MAX_INTENSITY)


def encode_render_options(options: RenderOptions) -> dict[str, str]:
    """Query parameters for every option that differs from its default."""

    defaults = RenderOptions()
    params: dict[str, str] = {}
    for name, field in OPTION_QUERY_NAMES.items():
        value = getattr(options, field)
        if value == getattr(defaults, field):
            continue
        if isinstance(value, bool):
            params[name] = "true" if value else "false"
        else:
            params[name] = str(value)
    return params


def decode_render_options(params: Mapping[str, str]) -> RenderOptions:
    """Inverse of `encode_render_options`. Missing parameters mean default.

    Raises:
        pydantic.ValidationError: If a parameter value is invalid.
    """

    values = {
        field: params[name] for name, field in OPTION_QUERY_NAMES.items() if name in params
    }
    return RenderOptions.model_validate(values)


def canonical_badge_url(base_url: str, username: str, options: RenderOptions) -> str:
    url = f"{base_url.rstrip('/')}/badge/{quote(username)}"
    query = encode_render_options(options)
    if not query:
        return url
    return f"{url}?{urlencode(query)}"


def day_url(profile_base_url: str, username: str, cell: DayCell) -> str:
    query = urlencode({"tab": "overview", "from": cell.key, "to": cell.key})
    return f"{profile_base_url.rstrip('/')}/{quote(username)}?{query}"


def footer_sentence(total: int, username: str) -> str:
    noun = "contribution" if total == 1 else "contributions"
    return f"{total} {noun} in the last year by @{username} on {PROVIDER_NAME}"


def _text(
    drawing: svgwrite.Drawing,
    x: int,
    y: int,
    content: str,
    anchor: str | None = None,
) -> Text:
    extra = {"text_anchor": anchor} if anchor else {}
    return drawing.text(
        content, insert=(x, y), fill=TEXT_COLOR, font_size=FONT_SIZE, **extra
    )


def _rect(
    drawing: svgwrite.Drawing,
    x: int,
    y: int,
    options: RenderOptions,
    bucket: int,
) -> Rect:
    colors = INTENSITY_COLORS[bucket]
    return drawing.rect(
        insert=(x, y),
        size=(options.box_size, options.box_size),
        rx=options.border_radius,
        ry=options.border_radius,
        fill=colors.fill,
        stroke=colors.stroke,
    )


def _add_cells(
    drawing: svgwrite.Drawing,
    parent: Group,
    grid: Grid,
    username: str,
    options: RenderOptions,
    geometry: Geometry,
    profile_base_url: str,
) -> None:
    cells = parent.add(
        drawing.g(transform=f"translate({geometry.text_width}, {LABEL_ROW_HEIGHT})")
    )
    for week, column in enumerate(grid):
        week_group = cells.add(
            drawing.g(transform=f"translate({week * geometry.step}, 0)")
        )
        for day, cell in enumerate(column):
            rect = _rect(
                drawing, 0, day * geometry.step, options, intensity_bucket(cell)
            )
            rect.set_desc(title=f"{cell.key} / {cell.count}")
            link = week_group.add(
                drawing.a(day_url(profile_base_url, username, cell))
            )
            link.add(rect)


def _add_month_labels(
    drawing: svgwrite.Drawing,
    parent: Group,
    month_labels: list[MonthLabel],
    geometry: Geometry,
) -> None:
    labels = parent.add(drawing.g(transform=f"translate({geometry.text_width}, 0)"))
    for label in month_labels:
        labels.add(
            _text(
                drawing,
                label.column_index * geometry.step,
                LABEL_ROW_HEIGHT - 5,
                label.text,
            )
        )


def _add_weekday_labels(
    drawing: svgwrite.Drawing,
    parent: Group,
    grid: Grid,
    options: RenderOptions,
    geometry: Geometry,
) -> None:
    if not grid or not grid[0]:
        return

    labels = parent.add(drawing.g(transform=f"translate(0, {LABEL_ROW_HEIGHT})"))
    for row, cell in enumerate(grid[0]):
        # Every other row only, so labels do not crowd each other.
        if row % 2 == 0:
            continue
        y = row * geometry.step + options.box_size - 1
        labels.add(_text(drawing, 0, y, cell.date.strftime("%a")))


def _add_footer(
    drawing: svgwrite.Drawing,
    parent: Group,
    total: int,
    username: str,
    options: RenderOptions,
    geometry: Geometry,
    badge_base_url: str,
) -> None:
    link = parent.add(
        drawing.a(canonical_badge_url(badge_base_url, username, options))
    )
    y = geometry.grid_bottom + geometry.footer_height - 5
    link.add(_text(drawing, geometry.text_width, y, footer_sentence(total, username)))


def _add_legend(
    drawing: svgwrite.Drawing,
    parent: Group,
    columns: int,
    options: RenderOptions,
    geometry: Geometry,
) -> None:
    swatches = len(INTENSITY_COLORS)
    right_edge = geometry.text_width + columns * geometry.step
    x = max(
        geometry.text_width,
        right_edge - swatches * geometry.step - LEGEND_MORE_WIDTH,
    )
    y = geometry.grid_bottom + geometry.footer_height + max(
        0, (CANVAS_MARGIN - options.box_size) // 2
    )

    legend = parent.add(drawing.g(transform=f"translate({x}, {y})"))
    legend.add(
        _text(drawing, -LEGEND_TEXT_GAP, options.box_size - 1, "Less", anchor="end")
    )
    for bucket in sorted(INTENSITY_COLORS):
        legend.add(_rect(drawing, bucket * geometry.step, 0, options, bucket))
    legend.add(
        _text(
            drawing,
            swatches * geometry.step + LEGEND_TEXT_GAP - options.box_margin,
            options.box_size - 1,
            "More",
        )
    )


def render_svg(
    grid: Grid,
    month_labels: list[MonthLabel],
    username: str,
    options: RenderOptions | None = None,
    total: int | None = None,
    badge_base_url: str = "",
    profile_base_url: str = DEFAULT_PROFILE_BASE_URL,
) -> str:
    """Render the contribution grid as a standalone SVG document.

    Colors are theme custom properties, so the host page decides the
    palette through `data-color-mode`. The footer sentence is rendered
    only when the footer is enabled and `total` is given.
    """

    options = options or RenderOptions()
    geometry = compute_geometry(len(grid), options)

    # debug=False: the validator rejects data-* attributes and var() colors.
    drawing = svgwrite.Drawing(size=(geometry.width, geometry.height), debug=False)
    drawing["viewBox"] = f"0 0 {geometry.width} {geometry.height}"
    drawing["data-color-mode"] = options.color_scheme

    canvas = drawing.add(
        drawing.g(transform=f"translate({CANVAS_MARGIN}, {CANVAS_MARGIN})")
    )
    _add_cells(drawing, canvas, grid, username, options, geometry, profile_base_url)
    _add_month_labels(drawing, canvas, month_labels, geometry)
    if options.show_weekdays:
        _add_weekday_labels(drawing, canvas, grid, options, geometry)
    if options.show_footer and total is not None:
        _add_footer(drawing, canvas, total, username, options, geometry, badge_base_url)
    _add_legend(drawing, canvas, len(grid), options, geometry)
    return drawing.tostring()
