from datetime import date

from fastapi import APIRouter, Depends

from barometre.deps import get_store
from barometre.routers.common import current_year, date_params, max_results
from barometre.services.executor import WarehouseStore
from barometre.services.timespan import resolve_bounds, select_granularity

# Mounted under /site-web: recrutement is a sub-site of the public web site
router = APIRouter(prefix="/site-web/recrutement", tags=["site-web"])

@router.get("/n-visits-total")
def n_visits_total(year: int = Depends(current_year), store: WarehouseStore = Depends(get_store)):
    """Visites du sous-site de recrutement sur l'année (par défaut, l'année en cours)."""
    return store.fetch_one("recrutement.n_visits_total", {"year": year})

@router.get("/fiches-metier/{start_date}/{end_date}")
def fiches_metier(start_date: date, end_date: date, limit: int = Depends(max_results),
                  store: WarehouseStore = Depends(get_store)):
    """Visites par fiche métier (onglet 'Découvrir nos métiers')."""
    resolve_bounds(start_date, end_date)
    return store.fetch_all("recrutement.fiches_metier", date_params(start_date, end_date, max_results=limit))

@router.get("/n-visits-timeline/{start_date}/{end_date}")
def n_visits_timeline(start_date: date, end_date: date, store: WarehouseStore = Depends(get_store)):
    rng = resolve_bounds(start_date, end_date)
    granularity = select_granularity(rng.start, rng.end)
    return store.fetch_all("recrutement.n_visits_timeline",
                           date_params(start_date, end_date, granularity=granularity.value))

@router.get("/effectifs/{year}")
def effectifs(year: int, store: WarehouseStore = Depends(get_store)):
    """Effectifs au 31/12 par genre et statut. Source : DGGN/DPMGN/SDPRH/BAA."""
    return store.fetch_all("recrutement.effectifs", {"year": year})

@router.get("/effectifs-categorie/{year}")
def effectifs_categorie(year: int, store: WarehouseStore = Depends(get_store)):
    return store.fetch_all("recrutement.effectifs_categorie", {"year": year})
