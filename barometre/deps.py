from functools import lru_cache

from sqlalchemy.engine import Engine

from barometre.core.config import settings
from barometre.services.executor import WarehouseStore, make_engine

# Built on first request so importing the app never opens a pool
@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return make_engine(settings.DATABASE_URL, settings.DB_SCHEMA)

def get_store() -> WarehouseStore:
    return WarehouseStore(get_engine())
