from datetime import date

from fastapi import APIRouter, Depends, Response

from barometre.deps import get_store
from barometre.routers.common import NATIONAL, date_params, lookup_or_404
from barometre.services.executor import WarehouseStore
from barometre.services.timespan import (
    DAILY_MONTH_COLUMN, bucket_expression, resolve_bounds, select_date_granularity,
)

router = APIRouter(prefix="/service-public-plus", tags=["service-public-plus"])

@router.get("/total")
def total(store: WarehouseStore = Depends(get_store)):
    """Expériences déposées, réparties par ressenti, et délais de réponse."""
    return store.fetch_one("service-public-plus.total")

@router.get("/map")
def geo_map(store: WarehouseStore = Depends(get_store)):
    return store.fetch_all("service-public-plus.map")

@router.get("/map-detail/{geo_iso}")
def map_detail(geo_iso: str, response: Response, store: WarehouseStore = Depends(get_store)):
    # national experiences are the ones without a department
    if geo_iso == NATIONAL:
        return lookup_or_404(store, "service-public-plus.map_detail_national", {}, response)
    return lookup_or_404(store, "service-public-plus.map_detail", {"geo_iso": geo_iso}, response)

@router.get("/timeline/{start_date}/{end_date}")
def timeline(start_date: date, end_date: date, store: WarehouseStore = Depends(get_store)):
    """Nombre d'expériences par jour ou par mois, sur une période choisie."""
    rng = resolve_bounds(start_date, end_date)
    time_dim = bucket_expression(select_date_granularity(rng.start, rng.end), DAILY_MONTH_COLUMN)
    return store.fetch_all("service-public-plus.timeline", date_params(start_date, end_date), time_dim=time_dim)

@router.get("/structure")
def structure(store: WarehouseStore = Depends(get_store)):
    return store.fetch_all("service-public-plus.structure")

@router.get("/tags")
def tags(store: WarehouseStore = Depends(get_store)):
    return store.fetch_all("service-public-plus.tags")
