from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Query, Response

from barometre.core.config import settings
from barometre.core.errors import UnknownLookupKey
from barometre.models.dto import TimeRange
from barometre.services.executor import WarehouseStore
from barometre.services.labels import NATIONAL  # noqa: F401  re-exported for the routers

log = logging.getLogger(__name__)

def max_results(
    max_results: int = Query(
        settings.MAX_RESULTS_DEFAULT, alias="maxResults", ge=1,
        description=f"Nombre de lignes à retourner ({settings.MAX_RESULTS_DEFAULT} par défaut, "
                    f"{settings.MAX_RESULTS_CAP} max)",
    ),
) -> int:
    return min(max_results, settings.MAX_RESULTS_CAP)

def current_year(year: Optional[int] = Query(None, description="Année (par défaut, année en cours)")) -> int:
    return year or datetime.now().year

def _naive_utc(dt: datetime) -> datetime:
    # warehouse timestamps are stored without zone, in UTC
    return dt.astimezone(timezone.utc).replace(tzinfo=None)

def range_params(rng: TimeRange, **extra: Any) -> Dict[str, Any]:
    return {"start": _naive_utc(rng.start), "end": _naive_utc(rng.end), **extra}

def date_params(start: date, end: date, **extra: Any) -> Dict[str, Any]:
    return {"start": start, "end": end, **extra}

def lookup_or_404(store: WarehouseStore, key: str, params: Dict[str, Any], response: Response) -> Dict[str, Any]:
    """First row of ``key``; an empty object with status 404 when nothing matches."""
    try:
        return store.fetch_one(key, params)
    except UnknownLookupKey:
        log.info("query=%s status=not_found params=%s", key, params)
        response.status_code = 404
        return {}

def interval_parts(value: Any) -> Any:
    """timedelta -> {'minutes', 'seconds', 'milliseconds'} (plus 'hours' when set)."""
    if not isinstance(value, timedelta):
        return value
    total_ms = value.total_seconds() * 1000
    hours, rest = divmod(total_ms, 3600 * 1000)
    minutes, rest = divmod(rest, 60 * 1000)
    seconds, ms = divmod(rest, 1000)
    parts = {"minutes": int(minutes), "seconds": int(seconds), "milliseconds": round(ms, 3)}
    if hours:
        parts = {"hours": int(hours), **parts}
    return parts
