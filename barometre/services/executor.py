from __future__ import annotations
import logging
import re
import time
from typing import Any, Dict, List, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from barometre.core.errors import UnknownLookupKey, UpstreamStoreFailure
from barometre.services.query_registry import REG, Registry

log = logging.getLogger(__name__)

_IDENT = re.compile(r"^[a-zA-Z_][\w]*$")

def make_engine(url: str, schema: Optional[str] = None) -> Engine:
    """Pooled engine; on PostgreSQL every connection reads from ``schema``."""
    connect_args: Dict[str, Any] = {}
    if url.startswith("sqlite"):
        # sqlite needs check_same_thread=False when used in ASGI contexts
        connect_args["check_same_thread"] = False
    elif schema:
        if not _IDENT.match(schema):
            raise ValueError(f"invalid schema name: {schema!r}")
        connect_args["options"] = f"-csearch_path={schema}"
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)

class WarehouseStore:
    """Read-only access to the analytics warehouse, one statement per call."""

    def __init__(self, engine: Engine, registry: Registry = REG):
        self.engine = engine
        self.registry = registry

    def fetch_all(self, key: str, params: Optional[Dict[str, Any]] = None,
                  **context: Any) -> List[Dict[str, Any]]:
        sql = self.registry.render(key, **context)
        t0 = time.perf_counter()
        try:
            with self.engine.connect() as con:
                rows = [dict(r) for r in con.execute(text(sql), params or {}).mappings()]
        except SQLAlchemyError as e:
            log.error("query=%s status=failed err=%s", key, e)
            raise UpstreamStoreFailure(key, e) from e
        log.debug("query=%s rows=%d ms=%.1f", key, len(rows), (time.perf_counter() - t0) * 1000)
        return rows

    def fetch_one(self, key: str, params: Optional[Dict[str, Any]] = None,
                  **context: Any) -> Dict[str, Any]:
        rows = self.fetch_all(key, params, **context)
        if not rows:
            raise UnknownLookupKey(f"{key}: no row for {params or {}}")
        return rows[0]
