from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping

Row = Dict[str, Any]

# Pseudo geo code for national accounts
NATIONAL = "gn"

# Server side (site-web endpoints)
SUBSITE_LABELS: Mapping[str, str] = MappingProxyType({
    "recrutement": "Recrutement",
    "national": "National",
    "ecoles (cegn)": "Écoles (CEGN)",
    "pjgn": "Pôle Judiciaire (PJGN)",
    "gign": "Groupe d'Intervention (GIGN)",
    "garde republicaine": "Garde Républicaine",
    "eogn": "École des Officiers (EOGN)",
})

SOURCE_LABELS: Mapping[str, str] = MappingProxyType({
    "Search engines": "Moteurs de recherche",
    "Direct traffic": "Trafic direct",
    "Social media": "Réseaux sociaux",
    "Referrer sites": "Sites référents",
    "gie-sog-gav": "Divers - Recrutement",
    "Portal sites": "Divers - Gouvernement",
})

DEVICE_LABELS: Mapping[str, str] = MappingProxyType({
    "Mobile Phone": "Téléphone portable",
    "Desktop": "Ordinateur de bureau",
    "Tablet": "Tablette",
    "TV": "Télévision",
    "Media Player": "Lecteur multimédia",
    "Games Console": "Console de jeux",
})

# The first age bucket is stored as "00" in the warehouse
AGE_CATEGORY_LABELS: Mapping[str, str] = MappingProxyType({
    "00": "00-14",
})

# Client side (transforms)
CONTACT_CATEGORY_LABELS: Mapping[str, str] = MappingProxyType({
    "demande_info": "Je m'informe",
    "signalement": "Je signale",
    "victime": "Je suis victime",
})

PERSON_TYPE_LABELS: Mapping[str, str] = MappingProxyType({
    "physique": "Personne physique",
    "morale": "Personne morale",
    "unknown": "Inconnu",
})

SPPLUS_TAG_LABELS: Mapping[str, str] = MappingProxyType({
    "tag_accessibilite": "Accessibilité",
    "tag_explication": "Explication",
    "tag_relation": "Relation",
    "tag_reactivite": "Réactivité",
    "tag_simplicite": "Simplicité",
})

# Period and network selectors
TAG_LABELS: Mapping[str, str] = MappingProxyType({
    "day": "1 jour",
    "week": "1 sem.",
    "month": "1 mois",
    "year": "1 an",
    "twitter": "Twitter",
    "facebook": "Facebook",
    "youtube": "Youtube",
})


def lookup(table: Mapping[Any, str], code: Any) -> Any:
    return table.get(code, code)


def relabel(rows: Iterable[Row], key: str, table: Mapping[Any, str], target: str | None = None) -> List[Row]:
    out = []
    for row in rows:
        new = dict(row)
        new[target or key] = lookup(table, row.get(key))
        out.append(new)
    return out
