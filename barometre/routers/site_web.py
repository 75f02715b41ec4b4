from typing import Literal

from fastapi import APIRouter, Depends

from barometre.core.config import settings
from barometre.deps import get_store
from barometre.routers.common import current_year, max_results, range_params
from barometre.services import labels
from barometre.services.executor import WarehouseStore
from barometre.services.timespan import HOURLY_PERIOD_COLUMN, period_column, resolve_timespan

router = APIRouter(prefix="/site-web", tags=["site-web"])

GEO_QUERIES = {
    "ville": "site-web.n_visits_geo_ville",
    "region": "site-web.n_visits_geo_region",
    "pays": "site-web.n_visits_geo_pays",
}

DEVICE_QUERIES = {
    "device": "site-web.n_visits_device",
    "os": "site-web.n_visits_os",
    "browser": "site-web.n_visits_browser",
}

def _range(timespan: str):
    return resolve_timespan(timespan, default_end=settings.SITE_WEB_END_DATE)

@router.get("/n-visites-total")
def n_visites_total(year: int = Depends(current_year), store: WarehouseStore = Depends(get_store)):
    """Nombre total de visites sur l'année (par défaut, l'année en cours)."""
    return store.fetch_one("site-web.n_visites_total", {"year": year})

@router.get("/n-visits-timeline/{timespan}")
def n_visits_timeline(timespan: str, store: WarehouseStore = Depends(get_store)):
    """Visites par heure (jour), par jour (semaine, mois) ou par mois (année)."""
    time_dim = period_column(timespan, HOURLY_PERIOD_COLUMN)
    return store.fetch_all("site-web.n_visits_timeline", range_params(_range(timespan)), time_dim=time_dim)

@router.get("/n-visits-geo/{level}/{timespan}")
def n_visits_geo(level: Literal["ville", "region", "pays"], timespan: str,
                 limit: int = Depends(max_results), store: WarehouseStore = Depends(get_store)):
    """Visites par ville, région ou pays. Une région `null` correspond à l'étranger ou à une visite non localisée."""
    return store.fetch_all(GEO_QUERIES[level], range_params(_range(timespan), max_results=limit))

@router.get("/n-visits-subsite/{timespan}")
def n_visits_subsite(timespan: str, limit: int = Depends(max_results),
                     store: WarehouseStore = Depends(get_store)):
    rows = store.fetch_all("site-web.n_visits_subsite", range_params(_range(timespan), max_results=limit))
    return labels.relabel(rows, "subsite", labels.SUBSITE_LABELS)

@router.get("/n-visits-source/{timespan}")
def n_visits_source(timespan: str, limit: int = Depends(max_results),
                    store: WarehouseStore = Depends(get_store)):
    rows = store.fetch_all("site-web.n_visits_source", range_params(_range(timespan), max_results=limit))
    return labels.relabel(rows, "src", labels.SOURCE_LABELS)

@router.get("/n-visits-dispositif/{kind}/{timespan}")
def n_visits_dispositif(kind: Literal["device", "os", "browser"], timespan: str,
                        limit: int = Depends(max_results), store: WarehouseStore = Depends(get_store)):
    """Visites par appareil, OS ou navigateur (entrées d'au moins 100 visites)."""
    rows = store.fetch_all(DEVICE_QUERIES[kind], range_params(_range(timespan), max_results=limit))
    if kind == "device":
        rows = labels.relabel(rows, "device_type", labels.DEVICE_LABELS)
    return rows
