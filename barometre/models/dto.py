from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, model_validator

class TimeRange(BaseModel):
    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _ordered(self):
        if self.start > self.end:
            raise ValueError("start must not be after end")
        return self

class QueryDef(BaseModel):
    key: str                      # "<topic>.<name>", e.g. "perceval.map"
    topic: str
    summary: str = ""
    sql: str                      # jinja template, named binds (:start, :end, ...)
    tables: List[str] = []

class HorizontalBarData(BaseModel):
    labels: List[Any]
    values: List[Any]

class Health(BaseModel):
    status: str
    detail: Dict[str, Any] = {}
