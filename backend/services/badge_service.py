import logging
from collections.abc import Iterable
from collections.abc import Mapping
from datetime import date
from typing import Any
from typing import NamedTuple

import httpx

from backend.clients.contributions_client import fetch_contributions
from backend.models import ContributionRecord
from backend.models import Grid
from backend.models import MonthLabel
from backend.models import RenderOptions
from backend.services.contributions import assemble_grid
from backend.services.contributions import count_contributions
from backend.services.contributions import map_contributions
from backend.services.contributions import parse_contribution_records
from backend.services.date_range import DateWindow
from backend.services.date_range import build_date_window
from backend.services.month_labels import plan_month_labels
from backend.services.svg_renderer import DEFAULT_PROFILE_BASE_URL
from backend.services.svg_renderer import render_svg


logger = logging.getLogger(__name__)

RawContributions = Iterable[Mapping[str, Any] | ContributionRecord]


class ContributionsNotFoundError(Exception):
    """Raised when the upstream provider does not know the user."""


class ContributionsAPIError(Exception):
    """Raised when the upstream request fails for any other reason."""


class BadgeGrid(NamedTuple):
    window: DateWindow
    grid: Grid
    total: int
    month_labels: list[MonthLabel]


def default_cache_token(today: date) -> str:
    """Cache-busting token that changes once per day."""

    return today.strftime("%Y%m%d")


def build_badge_grid(contributions: RawContributions, today: date) -> BadgeGrid:
    """Run the date, mapping and labelling stages for one render."""

    window = build_date_window(today)
    records = parse_contribution_records(contributions)
    grid = assemble_grid(map_contributions(window, records))
    return BadgeGrid(
        window=window,
        grid=grid,
        total=count_contributions(grid),
        month_labels=plan_month_labels(grid),
    )


def render_badge(
    contributions: RawContributions,
    username: str,
    today: date,
    options: RenderOptions | None = None,
    badge_base_url: str = "",
    profile_base_url: str = DEFAULT_PROFILE_BASE_URL,
) -> str:
    """Render the contribution badge SVG. Pure function of its arguments."""

    badge = build_badge_grid(contributions, today)
    return render_svg(
        badge.grid,
        badge.month_labels,
        username,
        options=options,
        total=badge.total,
        badge_base_url=badge_base_url,
        profile_base_url=profile_base_url,
    )


def build_grid_payload(
    contributions: RawContributions, username: str, today: date
) -> dict[str, object]:
    """JSON-friendly view of the same grid the SVG is drawn from."""

    badge = build_badge_grid(contributions, today)
    weeks = [
        {
            "week_start": column[0].key,
            "days": [
                {
                    "date": cell.key,
                    "count": cell.count,
                    "intensity": cell.intensity,
                    "is_future": cell.is_future,
                }
                for cell in column
            ],
        }
        for column in badge.grid
    ]
    return {
        "username": username,
        "from": badge.window.start_date.isoformat(),
        "to": badge.window.last_date.isoformat(),
        "total": badge.total,
        "weeks": weeks,
        "month_labels": [label.model_dump() for label in badge.month_labels],
    }


def get_user_contributions(
    username: str, api_url: str, cache_token: str
) -> list[Mapping[str, Any]]:
    """Fetch raw contributions, mapping failures to service errors."""

    try:
        return fetch_contributions(
            username=username,
            api_url=api_url,
            cache_token=cache_token,
        )
    except httpx.HTTPStatusError as exc:
        if exc.response.status_code == 404:
            raise ContributionsNotFoundError from exc
        logger.warning(
            "Contributions API returned %s for %s",
            exc.response.status_code,
            username,
        )
        raise ContributionsAPIError from exc
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Contributions API request failed for %s: %s", username, exc)
        raise ContributionsAPIError from exc
