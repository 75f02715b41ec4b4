import json
import os
from datetime import date

import streamlit as st

from barometre.widgets.base import ChartWidget
from barometre.widgets.charts import CategoryChart, FeatureFigure, TimelineChart
from barometre.widgets.client import ApiClient
from barometre.widgets.groups import ChartGroup, TagSelectGroup, default_calendar_bounds
from barometre.widgets.maps import MapChart, MapDetail, MapGroup

API_URL = os.getenv("BAROMETRE_API", "http://127.0.0.1:8080/api")
GEOJSON_PATH = os.getenv("BAROMETRE_GEOJSON", "")

st.set_page_config(page_title="Le Baromètre Numérique - Gendarmerie Nationale", layout="wide")
st.markdown(
    """
    <style>
      .fr-display-xl { font-size: 2.6rem; font-weight: 700; color: #000091; }
      .fr-display-xs { font-size: 1.6rem; font-weight: 700; color: #000091; margin-bottom: 0; }
      .vbarchart-bar-text-val { float: right; color: #6b7280; }
      .vbarchart-bar-fg { fill: #000091; }
      .card { background:#fff; border:1px solid #e5e7eb; border-radius:16px; padding:16px; }
    </style>
    """,
    unsafe_allow_html=True,
)

client = ApiClient(API_URL)

def widget(cls, **attrs) -> ChartWidget:
    return cls(client).configure({f"data-{k.replace('_', '-')}": v for k, v in attrs.items()})

def show(w: ChartWidget, title: str = ""):
    if title:
        st.markdown(f"**{title}**")
    if isinstance(w, TimelineChart) and not isinstance(w.output, str):
        st.plotly_chart(w.output, use_container_width=True)
    else:
        st.markdown(w.output, unsafe_allow_html=True)

@st.cache_data(show_spinner=False)
def load_geojson(path: str):
    with open(path, encoding="utf-8") as f:
        return json.load(f)

def show_map(m: MapChart):
    if isinstance(m.output, str):
        st.markdown(m.output, unsafe_allow_html=True)
    elif GEOJSON_PATH:
        st.plotly_chart(m.to_figure(load_geojson(GEOJSON_PATH)), use_container_width=True)
    else:
        st.bar_chart({iso: v for iso, v in sorted(m.values.items())})

def period_selector(key: str, spec="day,week,month,year", default="month"):
    tags = TagSelectGroup(spec, default)
    options = [t for t, _, _ in tags.options()]
    labels = {t: lbl for t, lbl, _ in tags.options()}
    return st.radio("Période", options, index=options.index(default), key=key,
                    format_func=lambda t: labels[t], horizontal=True)

def calendar(key: str, timespan="month"):
    start, end = default_calendar_bounds(timespan)
    c1, c2 = st.columns(2)
    with c1:
        start = st.date_input("Date de début", value=start, key=f"{key}-start")
    with c2:
        end = st.date_input("Date de fin", value=end, min_value=start, key=f"{key}-end")
    return start, end

def map_block(key: str, url: str, transform: str, detail_url: str, render_fct: str, tag: str = ""):
    m = widget(MapChart, url=url, transform=transform)
    detail = widget(MapDetail, url=detail_url, render_fct=render_fct)
    group = MapGroup(m, detail, default_tag=tag)
    group.start()
    options = ["gn"] + sorted(iso for iso in m.values if iso)
    selected = st.selectbox("Territoire", options, key=key,
                            format_func=lambda iso: "France" if iso == "gn" else m.names.get(iso, iso))
    if selected != "gn":
        group.select_department(selected)
    c1, c2 = st.columns([3, 2])
    with c1:
        show_map(m)
    with c2:
        st.caption(group.breadcrumb or "France")
        st.markdown(f"**{group.title}**")
        st.markdown(detail.output, unsafe_allow_html=True)

# ---------------- Pages ----------------

def page_ma_gendarmerie():
    st.header("Ma Gendarmerie")
    total = widget(FeatureFigure, url="ma-gendarmerie/n-contact-total", field="n_contact_total")
    total.update_data()
    show(total, "Prises de contact en ligne")
    start, end = calendar("mag")
    motif = widget(CategoryChart, url="ma-gendarmerie/n-contact-category", transform="maGendarmerieNContactMotif")
    timeline = widget(TimelineChart, url="ma-gendarmerie/n-contact-timeline", label_key="time_dim", value_key="cnt")
    ChartGroup([motif, timeline]).start(start, end)
    show(motif, "Motifs de contact")
    show(timeline, "Prises de contact dans le temps")
    affluence = widget(TimelineChart, url="ma-gendarmerie/affluence/daily-affluence", label_key="hour", value_key="n_contact")
    affluence.update_data("daily-affluence")
    show(affluence, "Affluence moyenne par heure")

def page_perceval():
    st.header("Perceval")
    c1, c2 = st.columns(2)
    with c1:
        total = widget(FeatureFigure, url="perceval/n-signalements-total", field="n_signalements_total")
        total.update_data()
        show(total, "Signalements depuis 2020")
    with c2:
        avg = widget(FeatureFigure, url="perceval/montant-moyen", field="montant_moy", transform="formatEuro")
        avg.update_data()
        show(avg, "Montant moyen")
    tag = period_selector("perceval-period", "week,month,year")
    timeline = widget(TimelineChart, url="perceval/signalements-timeline", label_key="time_dim", value_key="n_signalements")
    ages = widget(CategoryChart, url="perceval/age-category", transform="percevalAgeCat")
    ChartGroup([timeline, ages], tag).start()
    show(timeline, "Signalements dans le temps")
    show(ages, "Âge des victimes")
    map_block("perceval-map", "perceval/map", "percevalMap", "perceval/map-detail", "perceval")

def page_pre_plainte():
    st.header("Pré-plainte en ligne")
    c1, c2 = st.columns(2)
    with c1:
        total = widget(FeatureFigure, url="pre-plainte-en-ligne/n-preplaintes-total", field="n_preplaintes_total")
        total.update_data()
        show(total, "Pré-plaintes depuis 2013")
    with c2:
        duree = widget(FeatureFigure, url="pre-plainte-en-ligne/duree-moyenne", field="duree_moyenne",
                       transform="formatDuration")
        duree.update_data()
        show(duree, "Durée moyenne de déclaration")
    start, end = calendar("ppel")
    timeline = widget(TimelineChart, url="pre-plainte-en-ligne/preplaintes-timeline",
                      label_key="time_dim", value_key="n_preplaintes")
    persons = widget(CategoryChart, url="pre-plainte-en-ligne/person-type", transform="ppelPersonType")
    ChartGroup([timeline, persons]).start(start, end)
    show(timeline, "Pré-plaintes dans le temps")
    show(persons, "Type de personne")
    map_block("ppel-map", "pre-plainte-en-ligne/map", "ppelMap", "pre-plainte-en-ligne/map-detail",
              "pre-plainte-en-ligne")

def page_site_web():
    st.header("Site web")
    total = widget(FeatureFigure, url="site-web/n-visites-total", field="n_visits")
    total.update_data()
    show(total, f"Visites en {date.today().year}")
    tag = period_selector("site-web-period")
    timeline = widget(TimelineChart, url="site-web/n-visits-timeline", label_key="time_dim", value_key="n_visits")
    charts = {
        "Villes": widget(CategoryChart, url="site-web/n-visits-geo/ville", transform="siteWebCategoryVille", max_results=10),
        "Régions": widget(CategoryChart, url="site-web/n-visits-geo/region", transform="siteWebCategoryRegion", max_results=10),
        "Pays": widget(CategoryChart, url="site-web/n-visits-geo/pays", transform="siteWebCategoryPays", max_results=10),
        "Sous-sites": widget(CategoryChart, url="site-web/n-visits-subsite", transform="siteWebSousSites", max_results=10),
        "Sources": widget(CategoryChart, url="site-web/n-visits-source", transform="siteWebSources", max_results=10),
        "Appareils": widget(CategoryChart, url="site-web/n-visits-dispositif/device", transform="siteWebCategoryDevice"),
        "Systèmes": widget(CategoryChart, url="site-web/n-visits-dispositif/os", transform="siteWebCategoryOS"),
        "Navigateurs": widget(CategoryChart, url="site-web/n-visits-dispositif/browser", transform="siteWebCategoryBrowser"),
    }
    ChartGroup([timeline, *charts.values()], tag).start()
    show(timeline, "Visites dans le temps")
    cols = st.columns(2)
    for i, (title, chart) in enumerate(charts.items()):
        with cols[i % 2]:
            show(chart, title)

def page_recrutement():
    st.header("Recrutement")
    total = widget(FeatureFigure, url="site-web/recrutement/n-visits-total", field="visit_count")
    total.update_data()
    show(total, "Visites du site de recrutement")
    start, end = calendar("recrutement")
    timeline = widget(TimelineChart, url="site-web/recrutement/n-visits-timeline", label_key="time_dim", value_key="visit_count")
    fiches = widget(CategoryChart, url="site-web/recrutement/fiches-metier", transform="recrutementFichesMetiers",
                    max_results=30)
    ChartGroup([timeline, fiches]).start(start, end)
    show(timeline, "Visites dans le temps")
    show(fiches, "Fiches métier les plus consultées")

    tags = TagSelectGroup("years:2015+", date.today().year - 1)
    year = st.selectbox("Année", [t for t, _, _ in tags.options()], index=len(tags.tags) - 2, key="effectifs-year")
    feminisation = widget(CategoryChart, url="site-web/recrutement/effectifs-categorie", transform="recrutementFeminisation")
    perc_mil = widget(FeatureFigure, url="site-web/recrutement/effectifs", transform="recrutementFeminisationPercMilitaire")
    perc_civ = widget(FeatureFigure, url="site-web/recrutement/effectifs", transform="recrutementFeminisationPercCivil")
    ChartGroup([feminisation, perc_mil, perc_civ]).update(year)
    c1, c2 = st.columns(2)
    with c1:
        show(perc_mil, "Part de femmes, personnels militaires")
    with c2:
        show(perc_civ, "Part de femmes, personnels civils")
    show(feminisation, "Féminisation par catégorie")

def page_reseaux_sociaux():
    st.header("Réseaux sociaux")
    total = widget(FeatureFigure, url="reseaux-sociaux/n-followers-twitter")
    total.update_data()
    show(total, "Abonnés Twitter")
    tag = period_selector("rs-reseau", "twitter,youtube", "twitter")
    national = widget(CategoryChart, url="reseaux-sociaux/n-followers-not-geo", transform="socialNetworkFollowers")
    ChartGroup([national], tag).start()
    show(national, "Comptes nationaux")
    map_block("rs-map", "reseaux-sociaux/n-followers-map", "socialNetworkMap",
              "reseaux-sociaux/n-followers-map-detail/twitter", "twitter", tag="twitter")

def page_service_public_plus():
    st.header("Services Publics +")
    c1, c2 = st.columns(2)
    with c1:
        total = widget(FeatureFigure, url="service-public-plus/total", field="exp_count")
        total.update_data()
        show(total, "Expériences partagées")
    with c2:
        answered = widget(FeatureFigure, url="service-public-plus/total", transform="spplusPercentageResponse")
        answered.update_data()
        show(answered, "Part d'expériences ayant reçu une réponse")
    start, end = calendar("spplus", "year")
    timeline = widget(TimelineChart, url="service-public-plus/timeline", label_key="time_dim", value_key="exp_count")
    ChartGroup([timeline]).start(start, end)
    show(timeline, "Expériences dans le temps")
    structures = widget(CategoryChart, url="service-public-plus/structure", transform="spplusStructures")
    tags = widget(CategoryChart, url="service-public-plus/tags", transform="spplusTags")
    ChartGroup([structures, tags]).start()
    show(structures, "Structures")
    show(tags, "Ressenti positif par thème")
    map_block("spplus-map", "service-public-plus/map", "spplusMap", "service-public-plus/map-detail",
              "service-public-plus")

def page_iggn():
    st.header("IGGN")
    tags = TagSelectGroup("years:2019+", date.today().year - 1)
    options = [t for t, _, _ in tags.options()]
    year = st.selectbox("Année", options, index=max(len(options) - 2, 0), key="iggn-year")
    n = widget(FeatureFigure, url="iggn/n-reclamations", field="n_reclamations")
    manquements = widget(CategoryChart, url="iggn/perc-manquements", transform="iggnManquements")
    ChartGroup([n, manquements]).update(year)
    show(n, "Réclamations des particuliers")
    show(manquements, "Réclamations révélant un manquement")

PAGES = {
    "Ma Gendarmerie": page_ma_gendarmerie,
    "Perceval": page_perceval,
    "Pré-plainte en ligne": page_pre_plainte,
    "Site web": page_site_web,
    "Recrutement": page_recrutement,
    "Réseaux sociaux": page_reseaux_sociaux,
    "Services Publics +": page_service_public_plus,
    "IGGN": page_iggn,
}

# ---------------- Sidebar ----------------
with st.sidebar:
    st.title("Le Baromètre Numérique")
    page = st.radio("Rubrique", list(PAGES))
    st.divider()
    st.subheader("Diagnostics")
    if st.button("Check /health"):
        try:
            r = client.session.get(API_URL.rsplit("/api", 1)[0] + "/health/", timeout=5)
            st.write(r.status_code, r.text)
        except Exception as e:
            st.error(f"Health check failed: {e}")

try:
    PAGES[page]()
except Exception as e:
    st.error(str(e))
