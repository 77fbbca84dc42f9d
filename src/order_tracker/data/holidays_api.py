"""Public holiday lookup used to seed the business-day calendar."""

from __future__ import annotations

import logging
from datetime import date

import httpx

from ..config import settings
from ..models.domain import Holiday

logger = logging.getLogger(__name__)


def fetch_public_holidays(
    year: int,
    country_code: str | None = None,
    client: httpx.Client | None = None,
) -> list[Holiday]:
    """National public holidays for ``year``; failures are logged and yield an empty list."""
    country = (country_code or settings.holidays_country_code).upper()
    url = f"{settings.holidays_api_url.rstrip('/')}/{year}/{country}"
    owns_client = client is None
    http = client or httpx.Client(timeout=settings.http_timeout_seconds)
    try:
        response = http.get(url)
        response.raise_for_status()
        payload = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Error fetching public holidays for {country} {year}: {e}")
        return []
    finally:
        if owns_client:
            http.close()

    holidays: list[Holiday] = []
    for entry in payload if isinstance(payload, list) else []:
        try:
            day = date.fromisoformat(str(entry["date"]))
        except (KeyError, TypeError, ValueError):
            logger.warning(f"Skipping malformed holiday entry: {entry!r}")
            continue
        description = entry.get("localName") or entry.get("name") or ""
        holidays.append(Holiday(day=day, description=str(description)))
    logger.info(f"Fetched {len(holidays)} public holidays for {country} {year}")
    return holidays
