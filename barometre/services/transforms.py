from __future__ import annotations

from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from barometre.core.errors import UnknownTransform
from barometre.models.dto import HorizontalBarData
from barometre.services import labels
from barometre.services.formatting import (
    format_duration, format_euro, format_number, format_percentage, round_half_up,
)
from barometre.services.timespan import Granularity, Instant, elapsed_days, select_granularity

Row = Dict[str, Any]
Transform = Callable[[Any], Any]

BREAK: Row = MappingProxyType({"break": True})

# ---------- Shared helpers ----------

def sort_by(rows: Iterable[Row], key: str, ascending: bool = True) -> List[Row]:
    return sorted(rows, key=lambda r: (r.get(key) is None, r.get(key)), reverse=not ascending)

def replace_label(rows: Iterable[Row], old: Any, new: Any) -> List[Row]:
    return [dict(r, label=new) if r.get("label") == old else dict(r) for r in rows]

def format_for_vertical_bar_chart(rows: Iterable[Row], label_key: str, value_key: str,
                                  total_key: Optional[str] = None) -> List[Row]:
    # perc is values[i] / sum(values), or values[i] / row[total_key] when total_key is set
    rows = [dict(r) for r in rows]
    values_sum = sum(r.get(value_key) or 0 for r in rows)
    for r in rows:
        total = r.get(total_key) if total_key else values_sum
        value = r.get(value_key) or 0
        perc = value / total if total else 0.0
        r["label"] = r.get(label_key)
        r["originalValue"] = r.get(value_key)
        r["perc"] = perc
        r["value"] = round_half_up(100 * perc, 1)
        r["valueText"] = f"{r['value']:.1f}%"
    return rows

def format_for_horizontal_bar_chart(rows: Iterable[Row], label_key: str, value_key: str) -> HorizontalBarData:
    rows = list(rows)
    return HorizontalBarData(
        labels=[r.get(label_key) for r in rows],
        values=[r.get(value_key) for r in rows],
    )

def format_for_map(rows: Iterable[Row], value_key: str) -> Dict[str, Row]:
    # geo_dpt_iso -> {geo_dpt_name, value}
    return {
        r.get("geo_dpt_iso"): {"geo_dpt_name": r.get("geo_dpt_name"), "value": r.get(value_key)}
        for r in rows
    }

def timeline_label_style(start: Instant, end: Instant) -> str:
    granularity = select_granularity(start, end)
    if granularity is Granularity.HOUR:
        return "day"
    if granularity is Granularity.MONTH:
        return "year"
    return "week" if elapsed_days(start, end) <= 7 else "month"

# ---------- Chart specific transforms ----------

def ma_gendarmerie_n_contact_motif(rows):
    rows = labels.relabel(rows, "category", labels.CONTACT_CATEGORY_LABELS)
    return format_for_vertical_bar_chart(rows, "category", "n_contact")

def perceval_age_cat(rows):
    return format_for_vertical_bar_chart(rows, "age_cat", "n_signalements")

def ppel_person_type(rows):
    rows = labels.relabel(rows, "type_personne", labels.PERSON_TYPE_LABELS, target="type_personne_label")
    return format_for_vertical_bar_chart(rows, "type_personne_label", "n_preplaintes")

def _category(label_key: str, value_key: str, replace: Optional[tuple] = None) -> Transform:
    def transform(rows):
        out = format_for_vertical_bar_chart(rows, label_key, value_key)
        if replace:
            out = replace_label(out, *replace)
        return out
    transform.__name__ = f"category_{label_key}"
    return transform

def _map(value_key: str) -> Transform:
    def transform(rows):
        return format_for_map(rows, value_key)
    transform.__name__ = f"map_{value_key}"
    return transform

def recrutement_fiches_metiers(rows):
    # Pages with very few visits were probably not really used
    rows = [r for r in rows if (r.get("n_visits") or 0) > 10]
    return format_for_vertical_bar_chart(rows, "metier_name", "n_visits")

# Display order of the feminisation chart; None draws a separator
FEMINISATION_LAYOUT = (
    "Officier de gendarmerie",
    "Sous-officier de gendarmerie",
    None,
    "Officier du corps technique et administratif",
    "Sous-officier du corps de soutien technique et administratif de la gendarmerie",
    None,
    "Gendarme adjoint volontaire",
)

def recrutement_feminisation(rows):
    by_category: Dict[str, Dict[str, float]] = {}
    for r in rows:
        if r.get("statut") != "militaire":
            continue
        counts = by_category.setdefault(r.get("categorie"), {"homme": 0, "femme": 0})
        if r.get("genre") in counts:
            counts[r["genre"]] = r.get("effectifs") or 0

    bars = {}
    for category, counts in by_category.items():
        total = counts["femme"] + counts["homme"]
        perc = counts["femme"] / total if total else 0.0
        value = int(round_half_up(100 * perc))
        bars[category] = {"label": category, "perc": perc, "value": value, "valueText": f"{value}%"}

    out = []
    for category in FEMINISATION_LAYOUT:
        if category is None:
            out.append(dict(BREAK))
        elif category in bars:
            out.append(bars[category])
    return out

def recrutement_feminisation_percentage(rows, statut: str) -> str:
    n_femmes = n_hommes = 0
    for r in rows:
        if r.get("statut") == statut and r.get("genre") == "femme":
            n_femmes = r.get("effectifs") or 0
        elif r.get("statut") == statut and r.get("genre") == "homme":
            n_hommes = r.get("effectifs") or 0
    if n_femmes > 0 and n_hommes > 0:
        return format_percentage(n_femmes / (n_femmes + n_hommes))
    return ""

def social_network_followers(rows):
    out = format_for_vertical_bar_chart(rows, "page_name", "n_followers")
    for r in out:
        r["valueText"] = format_number(r["originalValue"])
        r["labelUrl"] = r.get("page_url")
    return out

def spplus_percentage_response(data: Row) -> str:
    if not data.get("exp_count"):
        return ""
    return format_percentage((data.get("exp_answered_count") or 0) / data["exp_count"])

def spplus_structures(rows):
    out = format_for_vertical_bar_chart(rows, "typologie_structure", "exp_count")
    for r in out:
        r["valueText"] = format_number(r["originalValue"])
    return out

def spplus_tags(rows):
    rows = labels.relabel(rows, "tag", labels.SPPLUS_TAG_LABELS, target="tagName")
    for r in rows:
        r["total_tag_count"] = sum(r.get(k) or 0 for k in ("pos_count", "med_count", "neg_count"))
    out = format_for_vertical_bar_chart(rows, "tagName", "pos_count", "total_tag_count")
    return sort_by(out, "perc", ascending=False)

def iggn_manquements(data: Row):
    if not data:
        return []
    share = data.get("pourcentage_manquements") or 0
    return format_for_vertical_bar_chart([
        {"label": "Manquements non-avérés", "value": 1 - share},
        {"label": "Manquements avérés", "value": share},
    ], "label", "value")

# ---------- Registry ----------

TRANSFORMS: Mapping[str, Transform] = MappingProxyType({
    # Standard transforms
    "formatNumber": format_number,
    "formatEuro": format_euro,
    "formatDuration": format_duration,
    "formatPercentage": format_percentage,

    # Specific transforms for a single chart
    "maGendarmerieNContactMotif": ma_gendarmerie_n_contact_motif,
    "percevalAgeCat": perceval_age_cat,
    "percevalMap": _map("n_signalements"),
    "ppelPersonType": ppel_person_type,
    "ppelMap": _map("n_preplaintes"),
    "siteWebCategoryVille": _category("geo_city", "n_visits"),
    "siteWebCategoryRegion": _category("geo_region_name", "n_visits", (None, "Inconnu")),
    "siteWebCategoryPays": _category("geo_country", "n_visits"),
    "siteWebSousSites": _category("subsite", "n_visits", ("N/A", "Autres")),
    "siteWebSources": _category("src", "n_visits", ("N/A", "Autres")),
    "siteWebCategoryDevice": _category("device_type", "n_visits", ("N/A", "Autres")),
    "siteWebCategoryOS": _category("os_group", "n_visits", ("N/A", "Autres")),
    "siteWebCategoryBrowser": _category("browser_group", "n_visits", ("N/A", "Autres")),
    "recrutementFichesMetiers": recrutement_fiches_metiers,
    "recrutementFeminisation": recrutement_feminisation,
    "recrutementFeminisationPercMilitaire": lambda rows: recrutement_feminisation_percentage(rows, "militaire"),
    "recrutementFeminisationPercCivil": lambda rows: recrutement_feminisation_percentage(rows, "civil"),
    "socialNetworkMap": _map("n_followers"),
    "socialNetworkFollowers": social_network_followers,
    "spplusPercentageResponse": spplus_percentage_response,
    "spplusMap": _map("exp_count"),
    "spplusStructures": spplus_structures,
    "spplusTags": spplus_tags,
    "iggnManquements": iggn_manquements,
})

def get_transform(name: str, registry: Mapping[str, Transform] = TRANSFORMS) -> Transform:
    try:
        return registry[name]
    except KeyError:
        raise UnknownTransform(name) from None
