from fastapi import APIRouter, Depends, Response

from barometre.deps import get_store
from barometre.routers.common import lookup_or_404
from barometre.services.executor import WarehouseStore

router = APIRouter(prefix="/iggn", tags=["iggn"])

@router.get("/n-reclamations/{year}")
def n_reclamations(year: int, response: Response, store: WarehouseStore = Depends(get_store)):
    """Nombre de réclamations des particuliers reçues par l'IGGN sur l'année."""
    return lookup_or_404(store, "iggn.n_reclamations", {"year": year}, response)

@router.get("/perc-manquements/{year}")
def perc_manquements(year: int, response: Response, store: WarehouseStore = Depends(get_store)):
    return lookup_or_404(store, "iggn.perc_manquements", {"year": year}, response)
