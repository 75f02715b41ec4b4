from __future__ import annotations
import logging
import yaml
from jinja2 import Environment, StrictUndefined
from pathlib import Path
from typing import Dict, Any, List, Optional

from barometre.models.dto import QueryDef
from barometre.services.sql_safety import validate_sql, referenced_tables

log = logging.getLogger(__name__)

# ---------- Load registry ----------
REG_PATH = Path(__file__).resolve().parent.parent / "data" / "queries.yaml"

# Values used to check templates before any request arrives
_CHECK_CONTEXT = {"time_dim": "date"}

_env = Environment(undefined=StrictUndefined, autoescape=False, keep_trailing_newline=False)

class RegistryError(ValueError):
    pass

class Registry:
    def __init__(self, path: Path):
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        self.topics: Dict[str, str] = {}
        self.queries: Dict[str, QueryDef] = {}
        for topic, block in (raw.get("topics") or {}).items():
            self.topics[topic] = block.get("summary", "")
            for q in block.get("queries", []):
                key = f"{topic}.{q['name']}"
                if key in self.queries:
                    raise RegistryError(f"duplicate query {key}")
                sql = q["sql"].strip()
                checked = _env.from_string(sql).render(**_CHECK_CONTEXT)
                ok, msg = validate_sql(checked)
                if not ok:
                    raise RegistryError(f"unsafe query {key}: {msg}")
                self.queries[key] = QueryDef(
                    key=key, topic=topic, summary=q.get("summary", ""), sql=sql,
                    tables=sorted(referenced_tables(checked)),
                )
        log.info("registry=loaded path=%s topics=%d queries=%d",
                 path.name, len(self.topics), len(self.queries))

    def get(self, key: str) -> QueryDef:
        try:
            return self.queries[key]
        except KeyError:
            raise RegistryError(f"unknown query {key}") from None

    def keys(self, topic: Optional[str] = None) -> List[str]:
        return [k for k, q in self.queries.items() if topic is None or q.topic == topic]

    # ---------- Render SQL ----------
    def render(self, key: str, **context: Any) -> str:
        """SQL text for ``key``; ``context`` only ever holds bucketing expressions."""
        qdef = self.get(key)
        if "{{" not in qdef.sql:
            return qdef.sql
        return _env.from_string(qdef.sql).render(**context)

REG = Registry(REG_PATH)
