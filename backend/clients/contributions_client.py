import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

import httpx


logger = logging.getLogger(__name__)

USER_AGENT = "contribution-badge"


def fetch_contributions(
    username: str,
    api_url: str,
    cache_token: str,
) -> list[Mapping[str, Any]]:
    """Fetch raw per-day contribution records for a user.

    Calls `GET {api_url}/api/v1/{username}?v={cache_token}` and returns the
    `contributions` list as-is. Field-level validation happens in the
    mapper; only the payload structure is checked here.

    Raises:
        httpx.HTTPError: On transport failures or non-2xx responses.
        ValueError: If the payload does not have the expected shape.
    """

    url = f"{api_url.rstrip('/')}/api/v1/{quote(username)}"
    logger.debug("Fetching contributions from %s", url)

    response = httpx.get(
        url,
        params={"v": cache_token},
        headers={"Accept": "application/json", "User-Agent": USER_AGENT},
        timeout=15.0,
    )
    response.raise_for_status()

    payload: Any = response.json()
    if not isinstance(payload, Mapping):
        raise ValueError("Contributions response is invalid")

    contributions = payload.get("contributions")
    if not isinstance(contributions, list):
        raise ValueError("Contributions response is missing contributions")

    records = [item for item in contributions if isinstance(item, Mapping)]
    if len(records) != len(contributions):
        logger.warning(
            "Dropped %d malformed contribution items for %s",
            len(contributions) - len(records),
            username,
        )
    return records
