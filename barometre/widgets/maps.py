from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np
import plotly.graph_objects as go

from barometre.services.labels import NATIONAL
from barometre.services.formatting import format_number
from barometre.widgets.base import ChartWidget, DateLike, Tag, build_url

log = logging.getLogger(__name__)

# DSFR colors
MIN_VALUE_COLOR = "#e3e3fd"     # background-action-low-blue-france
MAX_VALUE_COLOR = "#000091"     # background-action-high-blue-france
DISABLED_COLOR = "#ffffff"      # text-inverted-grey
BORDER_COLOR = "#dddddd"        # background-contrast-grey

NATIONAL_TITLE = "Compte National"

def _department_codes() -> Tuple[str, ...]:
    metro = [f"FR-{n:02d}" for n in range(1, 96) if n != 20]
    return tuple(metro + ["FR-2A", "FR-2B"] + [f"FR-{n}" for n in range(971, 977)])

DEPARTMENTS = _department_codes()

def _hex_to_rgb(color: str) -> np.ndarray:
    color = color.lstrip("#")
    return np.array([int(color[i:i + 2], 16) for i in (0, 2, 4)], dtype=float)

def color_scale(values: Iterable[float], max_value: float,
                low: str = MIN_VALUE_COLOR, high: str = MAX_VALUE_COLOR) -> List[str]:
    """Linear interpolation of each value between ``low`` (0) and ``high`` (max_value)."""
    values = np.asarray(list(values), dtype=float)
    t = np.clip(values / max_value, 0.0, 1.0) if max_value else np.zeros_like(values)
    lo, hi = _hex_to_rgb(low), _hex_to_rgb(high)
    rgb = np.rint(lo + t[:, None] * (hi - lo)).astype(int)
    return ["#{:02x}{:02x}{:02x}".format(*c) for c in rgb]

class MapChart(ChartWidget):
    """Fill color per department, on a linear scale from 0 to the largest value."""

    def __init__(self, *args, departments: Iterable[str] = DEPARTMENTS, **kwargs):
        super().__init__(*args, **kwargs)
        self.departments = tuple(departments)
        self.fills: Dict[str, str] = {}
        self.values: Dict[str, Any] = {}
        self.names: Dict[str, str] = {}

    def update_data(self, tag: Tag = None, start: DateLike = None, end: DateLike = None):
        return self.render(self.apply_transform(self.fetch(build_url(self.base_url, tag))))

    def render(self, data: Mapping[str, Mapping[str, Any]]):
        # national accounts have no department code
        records = {iso: rec for iso, rec in (data or {}).items() if iso}
        if not records:
            self.fills, self.values, self.names = {}, {}, {}
            return self.render_placeholder()
        values = {iso: rec.get("value") or 0 for iso, rec in records.items()}
        max_value = max(values.values(), default=0)
        colors = dict(zip(values, color_scale(values.values(), max_value)))

        fills = {iso: colors.get(iso, DISABLED_COLOR) for iso in self.departments}
        fills.update(colors)
        self.values = values
        self.names = {iso: rec.get("geo_dpt_name") or iso for iso, rec in records.items()}
        self.fills = fills
        self.output = fills
        return fills

    def to_figure(self, geojson: Mapping[str, Any], featureidkey: str = "properties.code") -> go.Figure:
        """Plotly choropleth of the last rendered data over ``geojson``."""
        locations = list(self.fills)
        max_value = max(self.values.values(), default=0)
        fig = go.Figure(go.Choropleth(
            geojson=geojson,
            featureidkey=featureidkey,
            locations=locations,
            z=[self.values.get(iso, np.nan) for iso in locations],
            zmin=0, zmax=max_value or 1,
            colorscale=[[0, MIN_VALUE_COLOR], [1, MAX_VALUE_COLOR]],
            showscale=False,
            marker_line_color=BORDER_COLOR,
        ))
        fig.update_geos(fitbounds="locations", visible=False)
        fig.update_layout(margin=dict(l=0, r=0, t=0, b=0))
        return fig

def _count_text(value: Any, national: bool, singular: str, plural: str, total_text: str,
                fmt=format_number) -> str:
    if national:
        return f'<p class="fr-display-xs">{fmt(value)}</p><p>{total_text}</p>'
    noun = plural if value > 1 else singular
    return f'<p class="fr-display-xs">{fmt(value)}</p><p>{noun} dans ce territoire</p>'

def render_perceval(data) -> str:
    if not data.get("n_signalements"):
        return "<p>Pas de données dans ce territoire</p>"
    return _count_text(data["n_signalements"], not data.get("geo_dpt_iso"),
                       "signalement", "signalements", "signalements au total")

def render_ppel(data) -> str:
    if not data.get("n_preplaintes"):
        return "<p>Pas de données dans ce territoire</p>"
    return _count_text(data["n_preplaintes"], not data.get("geo_dpt_iso"),
                       "pré-plainte déposée", "pré-plaintes déposées", "pré-plaintes déposées au total")

def render_twitter(data) -> str:
    if not data:
        return "<p>Pas de données disponibles</p>"
    if len(data) > 1:
        log.warning("map_detail=twitter rows=%d expected=1", len(data))
    account = data[0]
    return (
        f'<p class="fr-display-xs">{format_number(account.get("n_followers"))}</p>'
        f'<p>abonnements au compte Twitter<br>'
        f'<a href="{account.get("page_url")}" target="_blank">{account.get("page_name")}</a></p><br>'
        f'<p class="fr-display-xs">{format_number(account.get("n_tweets"))}</p><p>Tweets</p>'
    )

def render_spplus(data) -> str:
    if not data.get("exp_count"):
        return "<p>Aucune expérience partagée dans ce territoire</p>"
    return _count_text(data["exp_count"], not data.get("geo_dpt_iso"),
                       "expérience partagée", "expériences partagées",
                       "expériences non rattachées à un département", fmt=str)

DETAIL_RENDERERS = {
    "perceval": render_perceval,
    "pre-plainte-en-ligne": render_ppel,
    "twitter": render_twitter,
    "service-public-plus": render_spplus,
}

# Codes of the map that the perceval endpoints know under another name
PERCEVAL_GEO_ALIASES = {"FR-RHONE": "FR-69"}

class MapDetail(ChartWidget):
    """Text panel describing the selected department (or the national account)."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.render_fct = None
        self.renderer = None

    def configure(self, attrs):
        super().configure(attrs)
        self.render_fct = attrs.get("data-render-fct")
        try:
            self.renderer = DETAIL_RENDERERS[self.render_fct]
        except KeyError:
            raise ValueError(f"unknown map detail renderer {self.render_fct!r}") from None
        return self

    def update_data(self, tag: Tag = NATIONAL, start: DateLike = None, end: DateLike = None):
        geo_iso = tag
        if self.render_fct == "perceval":
            geo_iso = PERCEVAL_GEO_ALIASES.get(geo_iso, geo_iso)
        return self.render(self.fetch(build_url(self.base_url, geo_iso)))

    def render(self, data):
        self.output = f"<p>{self.renderer(data)}</p>"
        return self.output

class MapGroup:
    """A map, its breadcrumb/title and its detail panel, kept in sync."""

    def __init__(self, map_chart: MapChart, detail: Optional[MapDetail] = None, default_tag: Tag = ""):
        self.map_chart = map_chart
        self.detail = detail
        self.default_tag = default_tag
        self.breadcrumb = ""
        self.title = NATIONAL_TITLE

    def start(self):
        self.map_chart.update_data(self.default_tag)
        self.back_to_france()

    def select_tag(self, tag: Tag):
        self.map_chart.update_data(tag)

    def select_region(self, geo_iso: str, geo_dpt_name: str):
        self.breadcrumb = geo_dpt_name
        self.title = geo_dpt_name
        if self.detail:
            self.detail.update_data(geo_iso)

    def select_department(self, geo_iso: str):
        self.select_region(geo_iso, self.map_chart.names.get(geo_iso, geo_iso))

    def back_to_france(self):
        self.breadcrumb = ""
        self.title = NATIONAL_TITLE
        if self.detail:
            self.detail.update_data(NATIONAL)
