from datetime import date

from fastapi import APIRouter, Depends, Response

from barometre.deps import get_store
from barometre.routers.common import NATIONAL, date_params, interval_parts, lookup_or_404
from barometre.services.executor import WarehouseStore
from barometre.services.timespan import (
    DAILY_MONTH_COLUMN, bucket_expression, resolve_bounds, select_date_granularity,
)

router = APIRouter(prefix="/pre-plainte-en-ligne", tags=["pre-plainte-en-ligne"])

@router.get("/n-preplaintes-total")
def n_preplaintes_total(store: WarehouseStore = Depends(get_store)):
    """Nombre total de pré-plaintes depuis le lancement de la plateforme, début 2013."""
    return store.fetch_one("pre-plainte-en-ligne.n_preplaintes_total")

@router.get("/preplaintes-timeline/{start_date}/{end_date}")
def preplaintes_timeline(start_date: date, end_date: date, store: WarehouseStore = Depends(get_store)):
    rng = resolve_bounds(start_date, end_date)
    time_dim = bucket_expression(select_date_granularity(rng.start, rng.end), DAILY_MONTH_COLUMN)
    return store.fetch_all("pre-plainte-en-ligne.preplaintes_timeline",
                           date_params(start_date, end_date), time_dim=time_dim)

@router.get("/duree-moyenne")
def duree_moyenne(store: WarehouseStore = Depends(get_store)):
    """Durée moyenne de la déclaration en ligne, en minutes et secondes."""
    row = store.fetch_one("pre-plainte-en-ligne.duree_moyenne")
    return {**row, "duree_moyenne": interval_parts(row.get("duree_moyenne"))}

@router.get("/person-type/{start_date}/{end_date}")
def person_type(start_date: date, end_date: date, store: WarehouseStore = Depends(get_store)):
    """Pré-plaintes par type de personne : morale ou physique."""
    resolve_bounds(start_date, end_date)
    return store.fetch_all("pre-plainte-en-ligne.person_type", date_params(start_date, end_date))

@router.get("/map")
def geo_map(store: WarehouseStore = Depends(get_store)):
    return store.fetch_all("pre-plainte-en-ligne.map")

@router.get("/map-detail/{geo_iso}")
def map_detail(geo_iso: str, response: Response, store: WarehouseStore = Depends(get_store)):
    if geo_iso == NATIONAL:
        return lookup_or_404(store, "pre-plainte-en-ligne.map_detail_national", {}, response)
    return lookup_or_404(store, "pre-plainte-en-ligne.map_detail", {"geo_iso": geo_iso}, response)
