from datetime import date

from fastapi import APIRouter, Depends

from barometre.deps import get_store
from barometre.routers.common import date_params
from barometre.services.executor import WarehouseStore
from barometre.services.timespan import (
    DAILY_DATE_TRUNC, bucket_expression, resolve_bounds, select_date_granularity,
)

router = APIRouter(prefix="/ma-gendarmerie", tags=["ma-gendarmerie"])

@router.get("/n-contact-total")
def n_contact_total(store: WarehouseStore = Depends(get_store)):
    """Nombre total de prises de contact en ligne sur le site de la Gendarmerie."""
    return store.fetch_one("ma-gendarmerie.n_contact_total")

@router.get("/n-contact-category/{start_date}/{end_date}")
def n_contact_category(start_date: date, end_date: date, store: WarehouseStore = Depends(get_store)):
    resolve_bounds(start_date, end_date)
    return store.fetch_all("ma-gendarmerie.n_contact_category", date_params(start_date, end_date))

@router.get("/n-contact-timeline/{start_date}/{end_date}")
def n_contact_timeline(start_date: date, end_date: date, store: WarehouseStore = Depends(get_store)):
    """Prises de contact par jour, ou par mois au-delà d'un an."""
    rng = resolve_bounds(start_date, end_date)
    time_dim = bucket_expression(select_date_granularity(rng.start, rng.end), DAILY_DATE_TRUNC)
    return store.fetch_all("ma-gendarmerie.n_contact_timeline",
                           date_params(start_date, end_date), time_dim=time_dim)

@router.get("/affluence/daily-affluence")
def daily_affluence(store: WarehouseStore = Depends(get_store)):
    return store.fetch_all("ma-gendarmerie.daily_affluence")
