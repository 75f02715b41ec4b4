from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Optional, Tuple, Union

from barometre.services import labels
from barometre.services.timespan import PERIOD_STEPS, resolve_timespan
from barometre.widgets.base import ChartWidget, DateLike, Tag

log = logging.getLogger(__name__)

YEARS_PREFIX = "years:"

def parse_tags(spec: Optional[str], today: Optional[date] = None) -> List[Union[str, int]]:
    """'years:2015+' -> 2015..this year, 'years:2015-2020' -> 2015..2020, 'a,b' -> ['a', 'b']."""
    if spec is None:
        return []
    if spec.startswith(YEARS_PREFIX):
        years = spec[len(YEARS_PREFIX):]
        if "+" in years:
            first = int(years.replace("+", ""))
            last = (today or date.today()).year
        else:
            first, last = (int(y) for y in years.split("-"))
        return list(range(first, last + 1))
    return spec.split(",")

def tag_label(tag: Union[str, int]) -> str:
    # years are their own label
    if isinstance(tag, int):
        return str(tag)
    return labels.lookup(labels.TAG_LABELS, tag)

def default_calendar_bounds(timespan: Optional[str], today: Optional[date] = None) -> Tuple[date, date]:
    """Start/end dates prefilled in the calendar inputs for a period tag."""
    today = today or date.today()
    if timespan not in PERIOD_STEPS:
        return today, today
    rng = resolve_timespan(timespan, end=today)
    return rng.start.date(), today

class ChartGroup:
    """Charts sharing one period selector: a selection refreshes every child."""

    def __init__(self, children: Iterable[ChartWidget], default_tag: Tag = None):
        self.children = list(children)
        self.default_tag = default_tag

    def start(self, start: DateLike = None, end: DateLike = None):
        self.update(self.default_tag, start, end)

    def update(self, tag: Tag = None, start: DateLike = None, end: DateLike = None):
        log.debug("group=update tag=%s start=%s end=%s children=%d", tag, start, end, len(self.children))
        for chart in self.children:
            chart.update_data(tag, start, end)

class TagSelectGroup:
    """Row of tag buttons; selecting one broadcasts it to the group."""

    def __init__(self, spec: Optional[str], default_tag: Tag = None, group: Optional[ChartGroup] = None,
                 today: Optional[date] = None):
        self.tags = parse_tags(spec, today)
        self.default_tag = default_tag
        self.selected = default_tag
        self.group = group

    def options(self) -> List[Tuple[Union[str, int], str, bool]]:
        # (tag, label, pressed)
        return [(t, tag_label(t), str(t) == str(self.selected)) for t in self.tags]

    def select(self, tag: Tag):
        self.selected = tag
        if self.group:
            self.group.update(tag)
