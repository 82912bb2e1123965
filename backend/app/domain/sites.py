"""
Site catalog and free-text site normalization.

Legacy records carry sites as free text (campus names, street addresses,
codes). Every lookup goes through the tables below.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional
import unicodedata

from app.core.constants import IN_COMPANY_SITE_LABEL
from app.core.enums import Site

SITE_LABELS = {
    Site.ARG: "GEP Arganda",
    Site.SAB: "GEP Sabadell",
}

SITE_ALIASES = {
    Site.ARG: (
        "gep arganda",
        "arg",
        "arganda",
        "c/ primavera, 1, 28500, arganda del rey, madrid",
    ),
    Site.SAB: (
        "gep sabadell",
        "sab",
        "sabadell",
        "c/ moratín, 100, 08206 sabadell, barcelona",
    ),
}

SITE_LABEL_ALIASES = {
    "c/ moratín, 100, 08206 sabadell, barcelona": SITE_LABELS[Site.SAB],
    "c/ primavera, 1, 28500, arganda del rey, madrid": SITE_LABELS[Site.ARG],
    "in company": IN_COMPANY_SITE_LABEL,
    "in company - unidad movil": IN_COMPANY_SITE_LABEL,
    "in company - unidad móvil": IN_COMPANY_SITE_LABEL,
    "in company - unidades_moviles móvil": IN_COMPANY_SITE_LABEL,
}

_WHITESPACE_RE = re.compile(r"\s+")


def fold_text(value: Optional[str]) -> str:
    """Accent-stripped, lower-cased, whitespace-collapsed form of a label."""
    if not value:
        return ""
    decomposed = unicodedata.normalize("NFD", str(value))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WHITESPACE_RE.sub(" ", stripped).strip().lower()


_SITE_LOOKUP = {
    fold_text(alias): site
    for site, aliases in SITE_ALIASES.items()
    for alias in (site.value, SITE_LABELS[site], *aliases)
}
_SITE_LABEL_LOOKUP = {fold_text(alias): label for alias, label in SITE_LABEL_ALIASES.items()}


def normalize_site(value: Optional[str]) -> Optional[Site]:
    """Map a site code, campus name or address to its canonical site."""
    key = fold_text(value)
    if not key:
        return None
    return _SITE_LOOKUP.get(key)


def normalize_site_label(value: Optional[str]) -> Optional[str]:
    """
    Canonical display label of a deal's declared site.

    Unknown labels are returned trimmed; blank ones become None.
    """
    if value is None:
        return None
    trimmed = str(value).strip()
    if not trimmed:
        return None
    return _SITE_LABEL_LOOKUP.get(fold_text(trimmed), trimmed)


def is_in_company(value: Optional[str]) -> bool:
    return normalize_site_label(value) == IN_COMPANY_SITE_LABEL


def extract_sites(values: Optional[Iterable[Optional[str]]]) -> List[Site]:
    """Distinct canonical sites named in a list of labels, in input order."""
    sites: List[Site] = []
    if not values:
        return sites
    if isinstance(values, str):
        values = [values]
    for value in values:
        site = normalize_site(value)
        if site is not None and site not in sites:
            sites.append(site)
    return sites
