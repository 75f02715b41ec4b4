from fastapi import APIRouter, Depends, Response

from barometre.core.config import settings
from barometre.deps import get_store
from barometre.routers.common import NATIONAL, lookup_or_404, range_params
from barometre.services import labels
from barometre.services.executor import WarehouseStore
from barometre.services.timespan import DAILY_PERIOD_COLUMN, period_column, resolve_timespan

router = APIRouter(prefix="/perceval", tags=["perceval"])

@router.get("/n-signalements-total")
def n_signalements_total(store: WarehouseStore = Depends(get_store)):
    """Nombre total de signalements depuis le lancement de la plateforme, début 2020."""
    return store.fetch_one("perceval.n_signalements_total")

@router.get("/signalements-timeline/{timespan}")
def signalements_timeline(timespan: str, store: WarehouseStore = Depends(get_store)):
    """Signalements et montants par jour (semaine, mois) ou par mois (année)."""
    time_dim = period_column(timespan, DAILY_PERIOD_COLUMN)
    rng = resolve_timespan(timespan, default_end=settings.PERCEVAL_END_DATE)
    return store.fetch_all("perceval.signalements_timeline", range_params(rng), time_dim=time_dim)

@router.get("/montant-moyen")
def montant_moyen(store: WarehouseStore = Depends(get_store)):
    return store.fetch_one("perceval.montant_moyen")

@router.get("/age-category/{timespan}")
def age_category(timespan: str, store: WarehouseStore = Depends(get_store)):
    """Nombre de signalements par catégorie d'âge de la victime."""
    rng = resolve_timespan(timespan, default_end=settings.PERCEVAL_END_DATE)
    rows = store.fetch_all("perceval.age_category", range_params(rng))
    return labels.relabel(rows, "age_cat", labels.AGE_CATEGORY_LABELS)

@router.get("/map")
def geo_map(store: WarehouseStore = Depends(get_store)):
    return store.fetch_all("perceval.map")

@router.get("/map-detail/{geo_iso}")
def map_detail(geo_iso: str, response: Response, store: WarehouseStore = Depends(get_store)):
    """Signalements d'un département (code ISO 3166-2:FR, ex. FR-78), ou `gn` pour le total national."""
    if geo_iso == NATIONAL:
        return lookup_or_404(store, "perceval.map_detail_national", {}, response)
    return lookup_or_404(store, "perceval.map_detail", {"geo_iso": geo_iso}, response)
