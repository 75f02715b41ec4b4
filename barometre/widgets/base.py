from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Mapping, Optional, Union

from barometre.services.transforms import TRANSFORMS, Transform, get_transform
from barometre.widgets.client import ApiClient

log = logging.getLogger(__name__)

PLACEHOLDER = "Données non disponibles"
PLACEHOLDER_HTML = f'<p style="text-align: center;">{PLACEHOLDER}</p>'

Tag = Union[str, int, None]
DateLike = Union[str, date, None]

def is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, str) and value.isdigit()

def _as_text(value: DateLike) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat() if isinstance(value, date) else str(value)

def build_url(base_url: str, tag: Tag = None, start: DateLike = None, end: DateLike = None) -> str:
    if tag is not None and tag != "":
        return f"{base_url}/{tag}"
    if start is not None and end is not None:
        return f"{base_url}/{_as_text(start)}/{_as_text(end)}"
    return base_url

class ChartWidget(ABC):
    # Responses are not tagged with their request: the last one to arrive wins
    def __init__(self, client: Optional[ApiClient] = None,
                 transforms: Mapping[str, Transform] = TRANSFORMS):
        self.client = client or ApiClient()
        self.transforms = transforms
        self.base_url = ""
        self.transform: Optional[Transform] = None
        self.transform_name: Optional[str] = None
        self.output: Any = None

    def configure(self, attrs: Mapping[str, Any]) -> "ChartWidget":
        self.base_url = attrs.get("data-url", "")
        self.transform_name = attrs.get("data-transform")
        if self.transform_name:
            self.transform = get_transform(self.transform_name, self.transforms)
        return self

    def fetch(self, url: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.client.get_json(url, dict(params) if params else None)

    def apply_transform(self, data: Any) -> Any:
        return self.transform(data) if self.transform else data

    @abstractmethod
    def update_data(self, tag: Tag = None, start: DateLike = None, end: DateLike = None) -> Any:
        ...

    @abstractmethod
    def render(self, data: Any) -> Any:
        ...

    def render_placeholder(self) -> str:
        self.output = PLACEHOLDER_HTML
        return self.output

    def __repr__(self):
        return f"{type(self).__name__}(url={self.base_url!r}, transform={self.transform_name!r})"
