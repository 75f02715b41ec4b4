from __future__ import annotations

import html
import json
import logging
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd
import plotly.express as px

from barometre.models.dto import HorizontalBarData
from barometre.services.formatting import format_number, format_timeline_labels
from barometre.services.timespan import PERIOD_STEPS
from barometre.services.transforms import format_for_horizontal_bar_chart, timeline_label_style
from barometre.widgets.base import ChartWidget, DateLike, Tag, build_url

log = logging.getLogger(__name__)

BAR_COLOR = "#000091"       # DSFR blue-france
DAILY_AFFLUENCE = "daily-affluence"
DEFAULT_LABEL_STYLE = "month"

def _bar_html(row: Mapping[str, Any]) -> str:
    label = html.escape(str(row.get("label")))
    if row.get("labelUrl"):
        label = f'<a href="{html.escape(row["labelUrl"])}" target="_blank">{label}</a>'
    return (
        f'<p>{label}<span class="vbarchart-bar-text-val">{html.escape(str(row.get("valueText", "")))}</span></p>'
        f'<svg class="vbarchart-bar" width="100%" height="10">'
        f'<rect class="vbarchart-bar-fg" x="0" y="0" width="{row.get("value", 0)}%" height="10"/></svg>'
    )

class CategoryChart(ChartWidget):
    """Vertical list of labeled bars, split into columns of ``max_rows_per_column``."""

    max_rows_per_column = 10

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.max_results: Optional[int] = None
        self.columns: List[List[Dict[str, Any]]] = []

    def configure(self, attrs):
        super().configure(attrs)
        max_results = attrs.get("data-max-results")
        self.max_results = int(max_results) if max_results else None
        return self

    def update_data(self, tag: Tag = None, start: DateLike = None, end: DateLike = None):
        params = {"maxResults": self.max_results} if self.max_results else None
        data = self.fetch(build_url(self.base_url, tag, start, end), params)
        return self.render(self.apply_transform(data))

    def layout(self, rows: List[Mapping[str, Any]]) -> List[List[Dict[str, Any]]]:
        # the column is decided by the row position, skipped rows included
        columns: Dict[int, List[Dict[str, Any]]] = {}
        for i, row in enumerate(rows):
            if "perc" in row and row["perc"] < 0.001:
                continue
            columns.setdefault(i // self.max_rows_per_column, []).append(dict(row))
        return [columns[k] for k in sorted(columns)]

    def render(self, data):
        if not data:
            self.columns = []
            return self.render_placeholder()
        self.columns = self.layout(data)
        parts = ['<div class="fr-grid-row fr-grid-row--center">']
        for n, column in enumerate(self.columns, start=1):
            css = "fr-col" if n == 1 else "fr-col-12 fr-col-md-5 fr-col-lg fr-col-offset-md-1"
            parts.append(f'<div class="{css} chart-col-{n}">')
            for row in column:
                parts.append('<hr class="fr-mt-4w">' if row.get("break") is True else _bar_html(row))
            parts.append("</div>")
        parts.append("</div>")
        self.output = "".join(parts)
        return self.output

class TimelineChart(ChartWidget):
    """Bar chart over time; bucket labels follow the span of the selected period."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.label_key = "time_dim"
        self.value_key = "value"
        self.display_y_axis = True
        self.height = 250

    def configure(self, attrs):
        super().configure(attrs)
        self.label_key = attrs.get("data-label-key", self.label_key)
        self.value_key = attrs.get("data-value-key", self.value_key)
        if attrs.get("data-display-y-axis"):
            self.display_y_axis = bool(json.loads(attrs["data-display-y-axis"]))
        return self

    def label_style(self, tag: Tag, start: DateLike, end: DateLike) -> str:
        if tag == DAILY_AFFLUENCE or tag in PERIOD_STEPS:
            return tag
        if start is None or end is None:
            return DEFAULT_LABEL_STYLE
        return timeline_label_style(start, end)

    def update_data(self, tag: Tag = None, start: DateLike = None, end: DateLike = None):
        if tag == DAILY_AFFLUENCE:
            url = self.base_url
        else:
            url = build_url(self.base_url, tag, start, end)
        rows = self.apply_transform(self.fetch(url))
        if not rows:
            return self.render_placeholder()
        bars = format_for_horizontal_bar_chart(rows, self.label_key, self.value_key)
        labels = format_timeline_labels(bars.labels, self.label_style(tag, start, end))
        return self.render(HorizontalBarData(labels=labels, values=bars.values))

    def render(self, data: HorizontalBarData):
        if not data.values:
            return self.render_placeholder()
        df = pd.DataFrame({"label": data.labels, "value": data.values})
        fig = px.bar(df, x="label", y="value")
        fig.update_traces(marker_color=BAR_COLOR, hoverinfo="skip", hovertemplate=None)
        fig.update_layout(
            height=self.height,
            margin=dict(l=20, r=20, t=10, b=10),
            bargap=0.02,
            showlegend=False,
            xaxis_title=None, yaxis_title=None,
            font=dict(family="Marianne, arial, sans-serif", size=12),
        )
        fig.update_xaxes(showgrid=False, type="category")
        if self.display_y_axis:
            fig.update_yaxes(showgrid=False, nticks=4, tickformat=",d")
        else:
            fig.update_yaxes(visible=False)
        self.output = fig
        return fig

class FeatureFigure(ChartWidget):
    """A single headline figure, e.g. a total or an average."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.field = "value"
        self.explicit_field = False
        self.display_size = "xl"
        self.output = "..."

    def configure(self, attrs):
        super().configure(attrs)
        self.explicit_field = bool(attrs.get("data-field"))
        self.field = attrs.get("data-field") or "value"
        self.display_size = attrs.get("data-display-size") or "xl"
        return self

    def apply_transform(self, data):
        data = data or {}
        if self.transform and self.explicit_field:
            return self.transform(data.get(self.field))
        if self.transform:
            return self.transform(data)
        return format_number(data.get(self.field))

    def update_data(self, tag: Tag = None, start: DateLike = None, end: DateLike = None):
        return self.render(self.apply_transform(self.fetch(build_url(self.base_url, tag))))

    def render(self, text):
        if not text:
            return self.render_placeholder()
        self.output = f'<div class="fr-display-{self.display_size}">{text}</div>'
        return self.output
