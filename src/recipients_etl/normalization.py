from __future__ import annotations

import re
import unicodedata
from typing import Dict, List, Optional, Tuple

ISO2 = {
    "us": "US",
    "usa": "US",
    "united states": "US",
    "united states of america": "US",
    "u.s.": "US",
    "u.s.a.": "US",
    "america": "US",
    "canada": "CA",
    "ca": "CA",
    "mexico": "MX",
    "mx": "MX",
    "united kingdom": "GB",
    "uk": "GB",
    "u.k.": "GB",
    "great britain": "GB",
    "england": "GB",
    "scotland": "GB",
    "wales": "GB",
    "northern ireland": "GB",
    "australia": "AU",
    "au": "AU",
    "germany": "DE",
    "deutschland": "DE",
    "de": "DE",
    "france": "FR",
    "fr": "FR",
    "japan": "JP",
    "jp": "JP",
}

STATE_ABBR = {
    "alabama": "AL",
    "alaska": "AK",
    "arizona": "AZ",
    "arkansas": "AR",
    "california": "CA",
    "colorado": "CO",
    "connecticut": "CT",
    "delaware": "DE",
    "florida": "FL",
    "georgia": "GA",
    "hawaii": "HI",
    "idaho": "ID",
    "illinois": "IL",
    "indiana": "IN",
    "iowa": "IA",
    "kansas": "KS",
    "kentucky": "KY",
    "louisiana": "LA",
    "maine": "ME",
    "maryland": "MD",
    "massachusetts": "MA",
    "michigan": "MI",
    "minnesota": "MN",
    "mississippi": "MS",
    "missouri": "MO",
    "montana": "MT",
    "nebraska": "NE",
    "nevada": "NV",
    "new hampshire": "NH",
    "new jersey": "NJ",
    "new mexico": "NM",
    "new york": "NY",
    "north carolina": "NC",
    "north dakota": "ND",
    "ohio": "OH",
    "oklahoma": "OK",
    "oregon": "OR",
    "pennsylvania": "PA",
    "rhode island": "RI",
    "south carolina": "SC",
    "south dakota": "SD",
    "tennessee": "TN",
    "texas": "TX",
    "utah": "UT",
    "vermont": "VT",
    "virginia": "VA",
    "washington": "WA",
    "west virginia": "WV",
    "wisconsin": "WI",
    "wyoming": "WY",
    "district of columbia": "DC",
    "dc": "DC",
}

# canonical token -> spellings folded onto it
ADDRESS_ABBREVIATIONS = {
    "st": ("street", "str", "st"),
    "ave": ("avenue", "aven", "av", "ave"),
    "rd": ("road", "rd"),
    "dr": ("drive", "drv", "dr"),
    "ln": ("lane", "ln"),
    "ct": ("court", "crt", "ct"),
    "cir": ("circle", "circ", "cir"),
    "blvd": ("boulevard", "boul", "blvd"),
    "pl": ("place", "pl"),
    "pkwy": ("parkway", "pky", "pkwy"),
    "hwy": ("highway", "hwy"),
    "ter": ("terrace", "terr", "ter"),
    "trl": ("trail", "trl"),
    "sq": ("square", "sq"),
    "n": ("north", "n"),
    "s": ("south", "s"),
    "e": ("east", "e"),
    "w": ("west", "w"),
    "ne": ("northeast", "ne"),
    "nw": ("northwest", "nw"),
    "se": ("southeast", "se"),
    "sw": ("southwest", "sw"),
    "apt": ("apartment", "appt", "apt", "unit", "#"),
    "ste": ("suite", "ste"),
    "fl": ("floor", "fl"),
    "bldg": ("building", "bldg"),
    "rm": ("room", "rm"),
}

UNIT_DESIGNATORS = frozenset({"apt", "ste", "fl", "bldg", "rm"})

_ABBREVIATION_LOOKUP: Dict[str, str] = {}
for canonical, spellings in ADDRESS_ABBREVIATIONS.items():
    for spelling in spellings:
        _ABBREVIATION_LOOKUP[spelling] = canonical

_APOSTROPHES = re.compile(r"['‘’`]")
_NON_WORD = re.compile(r"[^\w\s]|_")
_NON_WORD_KEEP_HASH = re.compile(r"[^\w\s#]|_")
_NON_ALNUM = re.compile(r"[^0-9A-Z]")


def _fold(text: Optional[str]) -> str:
    s = (text or "").lower()
    s = unicodedata.normalize("NFKD", s)
    return "".join(ch for ch in s if not unicodedata.combining(ch))


def _collapse(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def normalize_text_key(value: Optional[str]) -> str:
    return _collapse(_fold(value))


def normalize_name(value: Optional[str]) -> str:
    """Fold case/accents, drop apostrophes and turn other punctuation into spaces."""
    s = _APOSTROPHES.sub("", _fold(value))
    return _collapse(_NON_WORD.sub(" ", s))


def normalize_address(value: Optional[str]) -> str:
    s = _APOSTROPHES.sub("", _fold(value)).replace(".", "")
    s = _NON_WORD_KEEP_HASH.sub(" ", s).replace("#", " # ")
    tokens: List[str] = []
    for token in s.split():
        canonical = _ABBREVIATION_LOOKUP.get(token, token)
        # "apt #5" and "#5" both become "apt 5"
        if canonical == "apt" and token == "#" and tokens and tokens[-1] in UNIT_DESIGNATORS:
            continue
        tokens.append(canonical)
    return " ".join(tokens)


def split_unit(normalized_address: str) -> Tuple[str, str]:
    """Split a normalized address into (base street, unit part)."""
    tokens = normalized_address.split()
    for idx, token in enumerate(tokens):
        if token not in UNIT_DESIGNATORS:
            continue
        if idx == 0:
            # leading unit, e.g. "apt 5b 100 broadway"
            return " ".join(tokens[2:]), " ".join(tokens[:2])
        return " ".join(tokens[:idx]), " ".join(tokens[idx:])
    return normalized_address, ""


def normalize_zip(value: Optional[str]) -> str:
    s = _NON_ALNUM.sub("", (value or "").upper())
    # ZIP+4 collapses to its 5-digit prefix
    if len(s) == 9 and s.isdigit():
        return s[:5]
    return s


def normalize_city(value: Optional[str]) -> str:
    return normalize_name(value)


def normalize_state(value: Optional[str]) -> str:
    v = (value or "").strip()
    if not v:
        return ""
    if len(v) == 2 and v.isalpha():
        return v.upper()
    return STATE_ABBR.get(normalize_text_key(v), v.upper())


def normalize_country_iso2(value: Optional[str]) -> str:
    """Map a country name or code to ISO alpha-2; unknown names pass through."""
    v = str(value or "").strip()
    key = normalize_text_key(v)
    if key in ISO2:
        return ISO2[key]
    return v.upper() if len(v) == 2 else v
