"""Tests for the chart transforms."""
import copy
from datetime import datetime, timezone

import pytest

from barometre.core.errors import UnknownTransform
from barometre.models.dto import HorizontalBarData
from barometre.services.formatting import NNBSP
from barometre.services.transforms import (
    TRANSFORMS,
    format_for_horizontal_bar_chart,
    format_for_map,
    format_for_vertical_bar_chart,
    get_transform,
    replace_label,
    sort_by,
    timeline_label_style,
)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


# ============================================================
# Helpers
# ============================================================

class TestVerticalBars:
    def test_share_of_total(self):
        rows = [{"k": "a", "v": 3}, {"k": "b", "v": 1}]
        out = format_for_vertical_bar_chart(rows, "k", "v")
        assert [r["perc"] for r in out] == [0.75, 0.25]
        assert [r["value"] for r in out] == [75.0, 25.0]
        assert [r["valueText"] for r in out] == ["75.0%", "25.0%"]
        assert out[0]["label"] == "a"
        assert out[0]["originalValue"] == 3

    def test_per_row_total(self):
        rows = [{"k": "a", "v": 1, "t": 4}]
        assert format_for_vertical_bar_chart(rows, "k", "v", "t")[0]["perc"] == 0.25

    def test_zero_total(self):
        out = format_for_vertical_bar_chart([{"k": "a", "v": 0}], "k", "v")
        assert out[0]["perc"] == 0.0
        assert out[0]["valueText"] == "0.0%"

    def test_input_untouched(self):
        rows = [{"k": "a", "v": 3}]
        before = copy.deepcopy(rows)
        format_for_vertical_bar_chart(rows, "k", "v")
        assert rows == before


def test_horizontal_bars():
    data = format_for_horizontal_bar_chart([{"d": "x", "n": 1}, {"d": "y", "n": 2}], "d", "n")
    assert data == HorizontalBarData(labels=["x", "y"], values=[1, 2])


def test_map_keyed_by_iso():
    rows = [{"geo_dpt_iso": "FR-78", "geo_dpt_name": "Yvelines", "n": 5}]
    assert format_for_map(rows, "n") == {"FR-78": {"geo_dpt_name": "Yvelines", "value": 5}}


def test_replace_label_and_sort():
    rows = [{"label": "N/A", "perc": 0.1}, {"label": "Google", "perc": 0.9}]
    renamed = replace_label(rows, "N/A", "Autres")
    assert renamed[0]["label"] == "Autres"
    assert rows[0]["label"] == "N/A"
    assert [r["label"] for r in sort_by(renamed, "perc", ascending=False)] == ["Google", "Autres"]


@pytest.mark.parametrize("start, end, style", [
    (utc(2022, 5, 1), utc(2022, 5, 1, 11), "day"),
    (utc(2022, 4, 24), utc(2022, 5, 1), "week"),
    (utc(2022, 4, 1), utc(2022, 5, 1), "month"),
    (utc(2021, 5, 1), utc(2022, 5, 1), "year"),
])
def test_timeline_label_style(start, end, style):
    assert timeline_label_style(start, end) == style


# ============================================================
# Registry
# ============================================================

class TestRegistry:
    def test_unknown_name(self):
        with pytest.raises(UnknownTransform):
            get_transform("nope")

    def test_injected_registry(self):
        assert get_transform("x", {"x": len})([1, 2]) == 2

    def test_read_only(self):
        with pytest.raises(TypeError):
            TRANSFORMS["formatNumber"] = str

    def test_standard_transforms(self):
        assert TRANSFORMS["formatNumber"](1234) == f"1{NNBSP}234"
        assert TRANSFORMS["formatDuration"]({"minutes": 1, "seconds": 2}) == "1 min. 2 s."


# ============================================================
# Chart specific transforms
# ============================================================

def test_contact_motif_relabels():
    out = TRANSFORMS["maGendarmerieNContactMotif"]([
        {"category": "victime", "n_contact": 1},
        {"category": "autre", "n_contact": 1},
    ])
    assert [r["label"] for r in out] == ["Je suis victime", "autre"]


def test_ppel_person_type():
    out = TRANSFORMS["ppelPersonType"]([{"type_personne": "morale", "n_preplaintes": 2}])
    assert out[0]["label"] == "Personne morale"
    assert out[0]["type_personne"] == "morale"


def test_region_unknown_label():
    out = TRANSFORMS["siteWebCategoryRegion"]([
        {"geo_region_name": None, "n_visits": 1},
        {"geo_region_name": "Bretagne", "n_visits": 3},
    ])
    assert [r["label"] for r in out] == ["Inconnu", "Bretagne"]


def test_fiches_metiers_drop_rare_pages():
    out = TRANSFORMS["recrutementFichesMetiers"]([
        {"metier_name": "Gendarme", "n_visits": 90},
        {"metier_name": "Rare", "n_visits": 10},
    ])
    assert [r["label"] for r in out] == ["Gendarme"]
    assert out[0]["perc"] == 1.0


def test_feminisation_layout():
    rows = [
        {"statut": "militaire", "categorie": "Officier de gendarmerie", "genre": "femme", "effectifs": 1},
        {"statut": "militaire", "categorie": "Officier de gendarmerie", "genre": "homme", "effectifs": 3},
        {"statut": "militaire", "categorie": "Gendarme adjoint volontaire", "genre": "femme", "effectifs": 1},
        {"statut": "militaire", "categorie": "Gendarme adjoint volontaire", "genre": "homme", "effectifs": 1},
        {"statut": "civil", "categorie": "Autre", "genre": "femme", "effectifs": 9},
    ]
    out = TRANSFORMS["recrutementFeminisation"](rows)
    assert out[0] == {"label": "Officier de gendarmerie", "perc": 0.25, "value": 25, "valueText": "25%"}
    assert out[1] == {"break": True}
    assert out[2] == {"break": True}
    assert out[3]["label"] == "Gendarme adjoint volontaire"
    assert out[3]["value"] == 50


def test_feminisation_percentage():
    rows = [
        {"statut": "militaire", "genre": "femme", "effectifs": 1},
        {"statut": "militaire", "genre": "homme", "effectifs": 4},
        {"statut": "civil", "genre": "femme", "effectifs": 3},
    ]
    assert TRANSFORMS["recrutementFeminisationPercMilitaire"](rows) == f"20{NNBSP}%"
    # no men counted for civil staff
    assert TRANSFORMS["recrutementFeminisationPercCivil"](rows) == ""


def test_social_network_followers():
    out = TRANSFORMS["socialNetworkFollowers"]([
        {"page_name": "Gendarmerie nationale", "page_url": "https://twitter.com/Gendarmerie", "n_followers": 582275},
    ])
    assert out[0]["valueText"] == f"582{NNBSP}275"
    assert out[0]["labelUrl"] == "https://twitter.com/Gendarmerie"


def test_spplus_percentage_response():
    assert TRANSFORMS["spplusPercentageResponse"]({"exp_count": 4, "exp_answered_count": 1}) == f"25{NNBSP}%"
    assert TRANSFORMS["spplusPercentageResponse"]({}) == ""


def test_spplus_tags_sorted_by_positive_share():
    out = TRANSFORMS["spplusTags"]([
        {"tag": "tag_relation", "pos_count": 1, "med_count": 1, "neg_count": 2},
        {"tag": "tag_simplicite", "pos_count": 3, "med_count": 1, "neg_count": 0},
    ])
    assert [r["label"] for r in out] == ["Simplicité", "Relation"]
    assert out[0]["perc"] == 0.75


def test_iggn_manquements():
    out = TRANSFORMS["iggnManquements"]({"pourcentage_manquements": 0.2})
    assert [r["label"] for r in out] == ["Manquements non-avérés", "Manquements avérés"]
    assert out[1]["value"] == 20.0
    assert TRANSFORMS["iggnManquements"]({}) == []


def test_maps():
    rows = [{"geo_dpt_iso": "FR-01", "geo_dpt_name": "Ain", "exp_count": 2}]
    assert TRANSFORMS["spplusMap"](rows) == {"FR-01": {"geo_dpt_name": "Ain", "value": 2}}
