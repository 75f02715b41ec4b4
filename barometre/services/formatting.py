from __future__ import annotations

import logging
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from barometre.core.errors import InvalidPeriod
from barometre.services.timespan import to_instant

log = logging.getLogger(__name__)

NNBSP = "\u202f"   # group separator and space before % / €, as fr-FR renders them
NBSP = "\u00a0"

WEEKDAYS_SHORT = ("lun.", "mar.", "mer.", "jeu.", "ven.", "sam.", "dim.")
MONTHS_SHORT = ("janv.", "févr.", "mars", "avr.", "mai", "juin",
                "juil.", "août", "sept.", "oct.", "nov.", "déc.")

def round_half_up(x: float, ndigits: int = 0) -> float:
    q = Decimal(1).scaleb(-ndigits)
    return float(Decimal(str(x)).quantize(q, rounding=ROUND_HALF_UP))

def _group(n: int) -> str:
    return f"{n:,}".replace(",", NNBSP)

def format_number(x: Optional[float]) -> str:
    """516957.8 -> '516 957' (floored, grouped by thousands)."""
    if x is None:
        return ""
    return _group(math.floor(x))

def format_percentage(x: Optional[float]) -> str:
    """0.1234 -> '12 %'."""
    if x is None or (isinstance(x, float) and math.isnan(x)):
        return ""
    return f"{_group(int(round_half_up(100 * x)))}{NNBSP}%"

def format_euro(x: Optional[float]) -> str:
    """1234.5 -> '1 234,50 €'."""
    if x is None:
        return ""
    amount = Decimal(str(x)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    whole, frac = divmod(abs(amount), 1)
    sign = "-" if amount < 0 else ""
    return f"{sign}{_group(int(whole))},{int(frac * 100):02d}{NBSP}€"

def format_duration(data: Optional[Dict[str, Any]]) -> str:
    """{'minutes': 7, 'seconds': 32, ...} -> '7 min. 32 s.'"""
    if not data:
        return ""
    if data.get("hours"):
        log.warning("duration=unexpected hours=%s (expected under one hour)", data.get("hours"))
        return "..."
    return f"{data.get('minutes', 0)} min. {data.get('seconds', 0)} s."

def _hour_label(hour: Any) -> str:
    return f"{hour}h".rjust(3, "0")

def _label_day(value: Any) -> str:
    return _hour_label(to_instant(value).hour)

def _label_week(value: Any) -> str:
    d = to_instant(value)
    return f"{WEEKDAYS_SHORT[d.weekday()]} {d:%d/%m/%Y}"

def _label_month(value: Any) -> str:
    return f"{to_instant(value):%d/%m/%Y}"

def _label_year(value: Any) -> str:
    d = to_instant(value)
    return f"{MONTHS_SHORT[d.month - 1]} {d.year}"

TIME_LABELS = {
    "day": _label_day,
    "daily-affluence": _hour_label,
    "week": _label_week,
    "month": _label_month,
    "year": _label_year,
}

def format_timeline_labels(labels: List[Any], timespan: str) -> List[str]:
    # The whole span of the chart decides how each bucket is labeled
    try:
        fmt = TIME_LABELS[timespan]
    except KeyError:
        raise InvalidPeriod(f"no label format for timespan {timespan!r}") from None
    return [fmt(x) for x in labels]
