import re
from typing import Dict, List, Set, Tuple

# Allowlist = the only warehouse tables/columns queries are allowed to reference
ALLOWLIST: Dict[str, List[str]] = {
    # Ma Gendarmerie (online contact service)
    "easiware_n_contacts_total": ["n_contact"],
    "easiware_n_contacts_category": ["month", "category", "n_contact"],
    "easiware_n_contacts_date": ["date", "n_contact"],
    "easiware_n_contacts_hour": ["hour", "n_contact"],
    # Perceval (bank card fraud reports)
    "perceval_monthly": ["month", "count", "amount", "avg_amount"],
    "perceval_daily": ["date", "month", "count", "amount"],
    "perceval_age_cat": ["month", "age_cat", "count"],
    "perceval_geo": ["dpt_code", "geo_dpt_iso", "geo_dpt_name", "count"],
    # Pré-plainte en ligne
    "ppel_daily": ["date", "month", "n_preplaintes"],
    "ppel_person_type": ["month", "type_personne", "n_preplaintes", "duree_moy"],
    "ppel_geo": ["dpt_code", "geo_dpt_iso", "geo_dpt_name", "n_preplaintes"],
    # Site web (AT Internet exports)
    "atinternet_visits_per_hour": ["datetime", "date", "month", "subsite", "visit_count"],
    "atinternet_visits_per_geo_city": ["month", "geo_city", "visit_count"],
    "atinternet_visits_per_geo_region": ["month", "geo_region_name", "geo_region_iso", "visit_count"],
    "atinternet_visits_per_geo_country": ["month", "geo_country", "visit_count"],
    "atinternet_visits_per_page": ["month", "subsite", "visit_count"],
    "atinternet_visits_per_source": ["month", "src", "visit_count"],
    "atinternet_visits_per_device": ["month", "device_type", "os_group", "browser_group", "visit_count"],
    "atinternet_visits_per_subsite": ["month", "subsite", "visit_count"],
    # Recrutement
    "recrutement_visits_per_metier": ["month", "metier_name", "visit_count"],
    "iggn_effectifs_clean": ["annee", "genre", "type_personnel", "categorie", "effectifs"],
    # Réseaux sociaux
    "reseaux_sociaux_followers": [
        "reseau", "geo_dpt_iso", "geo_dpt_name", "page_name", "page_url", "n_followers", "n_tweets",
    ],
    "youtube_followers": ["page_name", "page_url", "n_followers", "n_videos", "n_views"],
    # Service Public+
    "exp_total": [
        "exp_count", "exp_pos_count", "exp_moy_count", "exp_neg_count",
        "exp_answered_count", "avg_days_to_response", "p75_days_to_response",
    ],
    "exp_geo": ["geo_dpt_iso", "geo_dpt_name", "exp_count"],
    "exp_count_day": ["date", "month", "exp_count"],
    "exp_typologie": ["typologie_structure", "exp_count"],
    "exp_tags": ["tag", "pos_count", "med_count", "neg_count", "total_count"],
    # IGGN
    "iggn_nb_reclamations": ["annee", "n_reclamations"],
    "iggn_pourcentage_manquements": ["annee", "pourcentage_manquements"],
}

DANGEROUS = re.compile(
    r"(;)|\b(update|delete|insert|drop|create|alter|truncate|grant|copy|vacuum|reindex|replace|set)\b",
    re.IGNORECASE
)

# `extract(year from col)` is not a table reference
EXTRACT_FROM = re.compile(r"\bextract\s*\(\s*\w+\s+from\b", re.IGNORECASE)
CTE_NAME = re.compile(r"\b([a-zA-Z_]\w*)\s+as\s*\(", re.IGNORECASE)

def referenced_tables(sql: str) -> Set[str]:
    s = EXTRACT_FROM.sub("extract(", sql)
    ctes = {name.lower() for name in CTE_NAME.findall(s)}
    found = re.findall(r"\b(from|join)\s+([a-zA-Z_][\w\.]*)", s, re.IGNORECASE)
    tables = set()
    for _, name in found:
        # strip schema qualification like "analytics.ppel_geo"
        base = name.split(".")[-1].lower()
        if base not in ctes:
            tables.add(base)
    return tables

def validate_sql(sql: str) -> Tuple[bool, str]:
    s = sql.strip()

    # 1) Only one statement, no trailing separator either
    if ";" in s:
        return False, "Statement separator detected"

    # 2) Must begin with SELECT or WITH
    if not re.match(r"^\s*(select|with)\b", s, re.IGNORECASE):
        return False, "Only SELECT/CTE queries are allowed"

    # 3) No write or session keywords
    if DANGEROUS.search(s):
        return False, "Dangerous SQL keyword detected"

    # 4) Referenced tables must be in allowlist
    tables = referenced_tables(s)
    if not tables:
        return False, "No table referenced"
    for base in sorted(tables):
        if base not in ALLOWLIST:
            return False, f"Table not allowlisted: {base}"

    # 5) Qualified columns (best-effort)
    qualified_cols = set(re.findall(r"\b([a-zA-Z_][\w]*)\.([a-zA-Z_][\w]*)\b", s))
    for t, c in qualified_cols:
        if t.lower() == "analytics" and c.lower() in ALLOWLIST:
            continue
        if t.lower() not in ALLOWLIST or c not in ALLOWLIST[t.lower()]:
            return False, f"Column not allowlisted: {t}.{c}"

    return True, "ok"
