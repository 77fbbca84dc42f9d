"""Published route sheet: person name -> delivery route label."""

from __future__ import annotations

import csv
import io
import logging
from typing import Mapping, Optional

import httpx

from ..config import settings
from ..services.identity import normalize_name

logger = logging.getLogger(__name__)

NAME_COLUMN = 1
ROUTE_COLUMN = 4


def parse_route_sheet(text: str, excluded_routes: tuple[str, ...] | None = None) -> dict[str, str]:
    """Build the name -> route map from the sheet's CSV export (header row skipped)."""
    excluded = set(settings.excluded_routes if excluded_routes is None else excluded_routes)
    mapping: dict[str, str] = {}
    reader = csv.reader(io.StringIO(text))
    next(reader, None)
    for cells in reader:
        if len(cells) <= ROUTE_COLUMN:
            continue
        name = normalize_name(cells[NAME_COLUMN])
        route = cells[ROUTE_COLUMN].strip()
        if not name or not route or route in excluded:
            continue
        mapping[name] = route
    return mapping


def fetch_route_sheet(url: str | None = None, client: httpx.Client | None = None) -> dict[str, str]:
    """Download and parse the route sheet; an unreachable sheet yields an empty map."""
    target = url or settings.route_sheet_url
    if not target:
        return {}
    owns_client = client is None
    http = client or httpx.Client(timeout=settings.http_timeout_seconds, follow_redirects=True)
    try:
        response = http.get(target)
        response.raise_for_status()
        mapping = parse_route_sheet(response.text)
        logger.info(f"Loaded {len(mapping)} routes from the published route sheet")
        return mapping
    except (httpx.HTTPError, csv.Error) as e:
        logger.error(f"Error fetching route sheet: {e}")
        return {}
    finally:
        if owns_client:
            http.close()


def route_labels(sheet: Mapping[str, str]) -> list[str]:
    return sorted(set(sheet.values()))


def resolve_route(stored_route: Optional[str], person_name: Optional[str], sheet: Mapping[str, str]) -> Optional[str]:
    """Carrier route when present, else the sheet route for the customer name."""
    if stored_route and stored_route.strip():
        return stored_route.strip()
    key = normalize_name(person_name)
    return sheet.get(key) if key else None
