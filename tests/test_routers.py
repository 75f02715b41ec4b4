"""HTTP tests for the topic routers, against a fake warehouse store."""
from datetime import date, datetime, timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from barometre import main
from barometre.core.config import settings
from barometre.core.errors import UpstreamStoreFailure


# ============================================================
# Ma Gendarmerie
# ============================================================

class TestMaGendarmerie:
    def test_total(self, client, store):
        store.rows["ma-gendarmerie.n_contact_total"] = [{"n_contact_total": 120}]
        resp = client.get("/api/ma-gendarmerie/n-contact-total")
        assert resp.status_code == 200
        assert resp.json() == {"n_contact_total": 120}

    def test_category_passes_dates(self, client, store):
        store.rows["ma-gendarmerie.n_contact_category"] = [{"category": "victime", "n_contact": 3}]
        resp = client.get("/api/ma-gendarmerie/n-contact-category/2022-01-01/2022-02-01")
        assert resp.json() == [{"category": "victime", "n_contact": 3}]
        assert store.last["params"] == {"start": date(2022, 1, 1), "end": date(2022, 2, 1)}

    def test_timeline_daily_under_a_year(self, client, store):
        client.get("/api/ma-gendarmerie/n-contact-timeline/2022-01-01/2022-03-01")
        assert store.last["context"] == {"time_dim": "date"}

    def test_timeline_monthly_over_a_year(self, client, store):
        client.get("/api/ma-gendarmerie/n-contact-timeline/2020-01-01/2022-03-01")
        assert store.last["context"] == {"time_dim": "date_trunc('month', date)::date"}
        assert "date_trunc('month', date)::date as time_dim" in store.last["sql"]

    def test_reversed_dates(self, client, store):
        resp = client.get("/api/ma-gendarmerie/n-contact-category/2022-02-01/2022-01-01")
        assert resp.status_code == 400
        assert "after" in resp.json()["detail"]
        assert store.calls == []

    def test_malformed_date(self, client):
        assert client.get("/api/ma-gendarmerie/n-contact-category/yesterday/2022-01-01").status_code == 422

    def test_daily_affluence(self, client, store):
        store.rows["ma-gendarmerie.daily_affluence"] = [{"hour": 9, "n_contact": 12.5}]
        assert client.get("/api/ma-gendarmerie/affluence/daily-affluence").json() == [{"hour": 9, "n_contact": 12.5}]


# ============================================================
# Perceval
# ============================================================

class TestPerceval:
    def test_timeline_week(self, client, store):
        client.get("/api/perceval/signalements-timeline/week")
        call = store.last
        assert call["context"] == {"time_dim": "date"}
        # perceval data stops earlier than the other sources
        assert call["params"] == {"start": datetime(2022, 1, 25, 11), "end": datetime(2022, 2, 1, 11)}

    def test_timeline_year_by_month(self, client, store):
        client.get("/api/perceval/signalements-timeline/year")
        assert store.last["context"] == {"time_dim": "month"}

    @pytest.mark.parametrize("timespan", ["day", "decade"])
    def test_timeline_unsupported(self, client, store, timespan):
        resp = client.get(f"/api/perceval/signalements-timeline/{timespan}")
        assert resp.status_code == 400
        assert store.calls == []

    def test_age_category_relabels_first_bucket(self, client, store):
        store.rows["perceval.age_category"] = [
            {"age_cat": "00", "n_signalements": 1},
            {"age_cat": "15-24", "n_signalements": 2},
        ]
        body = client.get("/api/perceval/age-category/month").json()
        assert [r["age_cat"] for r in body] == ["00-14", "15-24"]

    def test_montant_moyen_decimal(self, client, store):
        store.rows["perceval.montant_moyen"] = [{"montant_moy": Decimal("412.50")}]
        assert client.get("/api/perceval/montant-moyen").json() == {"montant_moy": 412.5}

    def test_map_detail_department(self, client, store):
        row = {"dpt_code": "78", "geo_dpt_iso": "FR-78", "geo_dpt_name": "Yvelines", "n_signalements": 9}
        store.rows["perceval.map_detail"] = [row]
        resp = client.get("/api/perceval/map-detail/FR-78")
        assert resp.status_code == 200
        assert resp.json() == row
        assert store.last["params"] == {"geo_iso": "FR-78"}

    def test_map_detail_national(self, client, store):
        store.rows["perceval.map_detail_national"] = [{"n_signalements": 1000}]
        assert client.get("/api/perceval/map-detail/gn").json() == {"n_signalements": 1000}
        assert store.last["key"] == "perceval.map_detail_national"

    def test_map_detail_missing(self, client):
        resp = client.get("/api/perceval/map-detail/FR-999")
        assert resp.status_code == 404
        assert resp.json() == {}

    def test_empty_rows(self, client):
        resp = client.get("/api/perceval/map")
        assert resp.status_code == 200
        assert resp.json() == []


# ============================================================
# Pré-plainte en ligne
# ============================================================

class TestPrePlainte:
    def test_duree_moyenne_interval(self, client, store):
        store.rows["pre-plainte-en-ligne.duree_moyenne"] = [
            {"duree_moyenne": timedelta(minutes=7, seconds=32, milliseconds=250)},
        ]
        body = client.get("/api/pre-plainte-en-ligne/duree-moyenne").json()
        assert body == {"duree_moyenne": {"minutes": 7, "seconds": 32, "milliseconds": 250.0}}

    def test_timeline_bucket(self, client, store):
        client.get("/api/pre-plainte-en-ligne/preplaintes-timeline/2021-01-01/2022-06-01")
        assert store.last["context"] == {"time_dim": "month"}

    def test_person_type(self, client, store):
        client.get("/api/pre-plainte-en-ligne/person-type/2022-01-01/2022-02-01")
        assert store.last["key"] == "pre-plainte-en-ligne.person_type"

    def test_map_detail_national(self, client, store):
        store.rows["pre-plainte-en-ligne.map_detail_national"] = [{"n_preplaintes": 5}]
        assert client.get("/api/pre-plainte-en-ligne/map-detail/gn").json() == {"n_preplaintes": 5}


# ============================================================
# Site web / recrutement
# ============================================================

class TestSiteWeb:
    def test_total_default_year(self, client, store):
        store.rows["site-web.n_visites_total"] = [{"n_visits": 10}]
        client.get("/api/site-web/n-visites-total")
        assert store.last["params"] == {"year": date.today().year}

    def test_total_explicit_year(self, client, store):
        store.rows["site-web.n_visites_total"] = [{"n_visits": 10}]
        client.get("/api/site-web/n-visites-total?year=2021")
        assert store.last["params"] == {"year": 2021}

    def test_timeline_day_is_hourly(self, client, store):
        client.get("/api/site-web/n-visits-timeline/day")
        call = store.last
        assert call["context"] == {"time_dim": "datetime"}
        assert call["params"] == {"start": datetime(2022, 5, 15, 0), "end": datetime(2022, 5, 15, 11)}

    def test_geo_default_max_results(self, client, store):
        client.get("/api/site-web/n-visits-geo/ville/week")
        assert store.last["key"] == "site-web.n_visits_geo_ville"
        assert store.last["params"]["max_results"] == 10

    def test_max_results_capped(self, client, store):
        client.get("/api/site-web/n-visits-geo/pays/week?maxResults=500")
        assert store.last["params"]["max_results"] == 50

    def test_max_results_below_one(self, client, store):
        assert client.get("/api/site-web/n-visits-geo/pays/week?maxResults=0").status_code == 422
        assert store.calls == []

    def test_unknown_geo_level(self, client):
        assert client.get("/api/site-web/n-visits-geo/planete/week").status_code == 422

    def test_subsite_relabel(self, client, store):
        store.rows["site-web.n_visits_subsite"] = [{"subsite": "gign", "n_visits": 3}, {"subsite": "x", "n_visits": 1}]
        body = client.get("/api/site-web/n-visits-subsite/month").json()
        assert [r["subsite"] for r in body] == ["Groupe d'Intervention (GIGN)", "x"]

    def test_device_relabel_only_for_device(self, client, store):
        store.rows["site-web.n_visits_device"] = [{"device_type": "Desktop", "n_visits": 300}]
        store.rows["site-web.n_visits_os"] = [{"os_group": "Linux", "n_visits": 200}]
        assert client.get("/api/site-web/n-visits-dispositif/device/year").json()[0]["device_type"] == "Ordinateur de bureau"
        assert client.get("/api/site-web/n-visits-dispositif/os/year").json()[0]["os_group"] == "Linux"

    def test_bad_timespan(self, client):
        resp = client.get("/api/site-web/n-visits-source/fortnight")
        assert resp.status_code == 400
        assert "fortnight" in resp.json()["detail"]


class TestRecrutement:
    def test_timeline_granularity_bound(self, client, store):
        client.get("/api/site-web/recrutement/n-visits-timeline/2022-01-01/2022-01-02")
        assert store.last["params"]["granularity"] == "hour"
        client.get("/api/site-web/recrutement/n-visits-timeline/2020-01-01/2022-01-01")
        assert store.last["params"]["granularity"] == "month"

    def test_fiches_metier(self, client, store):
        client.get("/api/site-web/recrutement/fiches-metier/2022-01-01/2022-02-01?maxResults=30")
        assert store.last["params"] == {"start": date(2022, 1, 1), "end": date(2022, 2, 1), "max_results": 30}

    def test_effectifs(self, client, store):
        client.get("/api/site-web/recrutement/effectifs/2020")
        assert store.last["key"] == "recrutement.effectifs"
        assert store.last["params"] == {"year": 2020}

    def test_effectifs_bad_year(self, client):
        assert client.get("/api/site-web/recrutement/effectifs/latest").status_code == 422


# ============================================================
# Réseaux sociaux
# ============================================================

class TestReseauxSociaux:
    def test_followers_twitter(self, client, store):
        store.rows["reseaux-sociaux.n_followers_twitter"] = [{"value": 837207}]
        assert client.get("/api/reseaux-sociaux/n-followers-twitter").json() == {"value": 837207}

    @pytest.mark.parametrize("path", ["n-followers-map/facebook", "n-followers-not-geo/linkedin"])
    def test_unsupported_network(self, client, store, path):
        resp = client.get(f"/api/reseaux-sociaux/{path}")
        assert resp.status_code == 400
        assert "twitter" in resp.json()["detail"]
        assert store.calls == []

    def test_map(self, client, store):
        client.get("/api/reseaux-sociaux/n-followers-map/youtube")
        assert store.last["params"] == {"reseau": "youtube"}

    def test_detail_twitter_list(self, client, store):
        store.rows["reseaux-sociaux.twitter_detail_national"] = [{"page_name": "Gendarmerie nationale"}]
        assert client.get("/api/reseaux-sociaux/n-followers-map-detail/twitter/gn").json() == [
            {"page_name": "Gendarmerie nationale"},
        ]
        assert client.get("/api/reseaux-sociaux/n-followers-map-detail/twitter/FR-01").json() == []

    def test_stats_yt_url(self, client, store):
        store.rows["reseaux-sociaux.stats_yt"] = [{"page_name": "GN", "n_videos": 381}]
        resp = client.get("/api/reseaux-sociaux/stats-yt/https%3A%2F%2Fwww.youtube.com%2Fchannel%2FUCqx")
        assert resp.status_code == 200
        assert store.last["params"] == {"page_url": "https://www.youtube.com/channel/UCqx"}

    def test_stats_yt_missing(self, client):
        resp = client.get("/api/reseaux-sociaux/stats-yt/unknown")
        assert resp.status_code == 404
        assert resp.json() == {}


# ============================================================
# Service Public+ / IGGN
# ============================================================

class TestServicePublicPlus:
    def test_timeline(self, client, store):
        client.get("/api/service-public-plus/timeline/2022-01-01/2022-03-01")
        assert store.last["context"] == {"time_dim": "date"}

    def test_map_detail_national_uses_null_department(self, client, store):
        store.rows["service-public-plus.map_detail_national"] = [
            {"geo_dpt_iso": None, "geo_dpt_name": None, "exp_count": 4},
        ]
        assert client.get("/api/service-public-plus/map-detail/gn").json()["exp_count"] == 4

    def test_tags(self, client, store):
        store.rows["service-public-plus.tags"] = [{"tag": "tag_relation", "pos_count": 1}]
        assert client.get("/api/service-public-plus/tags").json() == [{"tag": "tag_relation", "pos_count": 1}]


class TestIggn:
    def test_year_found(self, client, store):
        store.rows["iggn.n_reclamations"] = [{"n_reclamations": 1200}]
        resp = client.get("/api/iggn/n-reclamations/2021")
        assert resp.json() == {"n_reclamations": 1200}
        assert store.last["params"] == {"year": 2021}

    def test_year_missing(self, client):
        resp = client.get("/api/iggn/perc-manquements/1990")
        assert resp.status_code == 404
        assert resp.json() == {}


# ============================================================
# App level
# ============================================================

class TestApp:
    def test_health(self, client):
        assert client.get("/health/").json() == {"status": "ok", "detail": {}}

    def test_unknown_route(self, client):
        resp = client.get("/api/nope")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Not found"}

    def test_total_without_row(self, client):
        resp = client.get("/api/service-public-plus/total")
        assert resp.status_code == 404
        assert resp.json() == {}

    def test_store_failure(self, client, store):
        err = OperationalError("select 1", {}, Exception("connection refused"))
        store.rows["perceval.map"] = UpstreamStoreFailure("perceval.map", err)
        resp = client.get("/api/perceval/map")
        assert resp.status_code == 500
        assert resp.json() == {"error": "Internal server error"}

    def test_docs(self, client):
        assert client.get("/api/docs").status_code == 200

    def test_run_serves_app_with_uvicorn(self):
        with patch("barometre.main.uvicorn.run") as serve:
            main.run()
        serve.assert_called_once_with("barometre.main:app", host=settings.API_HOST,
                                      port=settings.API_PORT, log_level=settings.LOG_LEVEL.lower())
