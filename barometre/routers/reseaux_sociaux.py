from fastapi import APIRouter, Depends, Response

from barometre.core.errors import InvalidParameter
from barometre.deps import get_store
from barometre.routers.common import NATIONAL, lookup_or_404
from barometre.services.executor import WarehouseStore

router = APIRouter(prefix="/reseaux-sociaux", tags=["reseaux-sociaux"])

# keep the route descriptions in sync when adding a network
AUTHORIZED_RESEAUX = ("twitter", "youtube")

def _check_reseau(reseau: str) -> str:
    if reseau not in AUTHORIZED_RESEAUX:
        raise InvalidParameter(f"reseau should be one of: {', '.join(AUTHORIZED_RESEAUX)}")
    return reseau

@router.get("/n-followers-twitter")
def n_followers_twitter(store: WarehouseStore = Depends(get_store)):
    """Nombre total de followers sur Twitter (somme de tous les comptes)."""
    return store.fetch_one("reseaux-sociaux.n_followers_twitter")

@router.get("/n-followers-map/{reseau}")
def n_followers_map(reseau: str, store: WarehouseStore = Depends(get_store)):
    """Followers par département pour un réseau social (twitter, youtube)."""
    return store.fetch_all("reseaux-sociaux.n_followers_map", {"reseau": _check_reseau(reseau)})

@router.get("/n-followers-map-detail/twitter/{geo_iso}")
def twitter_detail(geo_iso: str, store: WarehouseStore = Depends(get_store)):
    """Comptes Twitter d'un département, ou le compte national avec `gn`."""
    if geo_iso == NATIONAL:
        return store.fetch_all("reseaux-sociaux.twitter_detail_national")
    return store.fetch_all("reseaux-sociaux.twitter_detail", {"geo_iso": geo_iso})

@router.get("/n-followers-not-geo/{reseau}")
def n_followers_not_geo(reseau: str, store: WarehouseStore = Depends(get_store)):
    return store.fetch_all("reseaux-sociaux.n_followers_not_geo", {"reseau": _check_reseau(reseau)})

@router.get("/stats-yt/{page_url:path}")
def stats_yt(page_url: str, response: Response, store: WarehouseStore = Depends(get_store)):
    """Statistiques d'une chaîne Youtube, identifiée par son URL."""
    return lookup_or_404(store, "reseaux-sociaux.stats_yt", {"page_url": page_url}, response)
