from collections.abc import Mapping
from datetime import date
from datetime import datetime
from typing import Annotated
from typing import Any
from zoneinfo import ZoneInfo

from fastapi import APIRouter
from fastapi import HTTPException
from fastapi import Path
from fastapi import Query
from fastapi import Request
from fastapi import Response
from pydantic import ValidationError

from backend.api.schemas.badge import GridResponse
from backend.models import RenderOptions
from backend.services.badge_service import ContributionsAPIError
from backend.services.badge_service import ContributionsNotFoundError
from backend.services.badge_service import build_grid_payload
from backend.services.badge_service import default_cache_token
from backend.services.badge_service import get_user_contributions
from backend.services.badge_service import render_badge
from backend.services.date_range import local_today
from backend.services.svg_renderer import decode_render_options
from backend.settings import Settings


router = APIRouter()
settings = Settings()

USERNAME_PATTERN = r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,38})$"
SVG_MEDIA_TYPE = "image/svg+xml"

Username = Annotated[str, Path(pattern=USERNAME_PATTERN, max_length=39)]
CacheToken = Annotated[str | None, Query(max_length=32)]
UtcOffset = Annotated[
    int | None, Query(ge=-840, le=840, description="Minutes east of UTC")
]


def current_date(utc_offset_minutes: int | None) -> date:
    """Today in the configured zone, or in a caller-supplied fixed offset."""

    return local_today(datetime.now(ZoneInfo(settings.timezone)), utc_offset_minutes)


def load_contributions(username: str, cache_token: str) -> list[Mapping[str, Any]]:
    try:
        return get_user_contributions(
            username=username,
            api_url=settings.contributions_api_url,
            cache_token=cache_token,
        )
    except ContributionsNotFoundError as exc:
        raise HTTPException(status_code=404, detail="user not found") from exc
    except ContributionsAPIError as exc:
        raise HTTPException(
            status_code=502, detail="Contributions API request failed"
        ) from exc


def parse_render_options(request: Request) -> RenderOptions:
    try:
        return decode_render_options(request.query_params)
    except ValidationError as exc:
        raise HTTPException(
            status_code=422, detail="invalid rendering options"
        ) from exc


@router.get("/")
async def root() -> dict[str, str]:
    """Return a basic service greeting."""

    return {"message": "Contribution badge service"}


@router.get("/health/live")
def health_live() -> dict[str, str]:
    """Return liveness probe response for health checks."""

    return {"status": "ok"}


@router.get("/badge/{username}", response_class=Response)
def get_badge(
    request: Request,
    username: Username,
    v: CacheToken = None,
    tz: UtcOffset = None,
) -> Response:
    """Return the contribution graph badge as an SVG document."""

    options = parse_render_options(request)
    today = current_date(tz)
    contributions = load_contributions(username, v or default_cache_token(today))

    svg = render_badge(
        contributions,
        username,
        today,
        options=options,
        badge_base_url=settings.public_base_url,
        profile_base_url=settings.profile_base_url,
    )
    return Response(
        content=svg,
        media_type=SVG_MEDIA_TYPE,
        headers={"Cache-Control": f"public, max-age={settings.cache_max_age}"},
    )


@router.get("/badge/{username}/grid", response_model=GridResponse)
def get_badge_grid(
    username: Username,
    v: CacheToken = None,
    tz: UtcOffset = None,
) -> dict[str, object]:
    """Return the contribution grid behind the badge as JSON."""

    today = current_date(tz)
    contributions = load_contributions(username, v or default_cache_token(today))
    return build_grid_payload(contributions, username, today)
