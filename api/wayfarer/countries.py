"""Country name -> continent name lookup.

Keys are matched exactly (case-sensitive). A destination whose country token is
not a key here still counts as a visited country but contributes no continent.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from .settings import COUNTRY_CONTINENT_MAP_PATH

logger = logging.getLogger(__name__)

AFRICA = "Africa"
ANTARCTICA = "Antarctica"
ASIA = "Asia"
EUROPE = "Europe"
NORTH_AMERICA = "North America"
OCEANIA = "Oceania"
SOUTH_AMERICA = "South America"

_CONTINENT_COUNTRIES: dict[str, tuple[str, ...]] = {
    AFRICA: (
        "Algeria", "Angola", "Benin", "Botswana", "Burkina Faso", "Burundi",
        "Cabo Verde", "Cameroon", "Central African Republic", "Chad", "Comoros",
        "Democratic Republic of the Congo", "Republic of the Congo", "Djibouti",
        "Egypt", "Equatorial Guinea", "Eritrea", "Eswatini", "Ethiopia", "Gabon",
        "Gambia", "Ghana", "Guinea", "Guinea-Bissau", "Ivory Coast", "Kenya",
        "Lesotho", "Liberia", "Libya", "Madagascar", "Malawi", "Mali",
        "Mauritania", "Mauritius", "Morocco", "Mozambique", "Namibia", "Niger",
        "Nigeria", "Rwanda", "Sao Tome and Principe", "Senegal", "Seychelles",
        "Sierra Leone", "Somalia", "South Africa", "South Sudan", "Sudan",
        "Tanzania", "Togo", "Tunisia", "Uganda", "Zambia", "Zimbabwe",
    ),
    ANTARCTICA: ("Antarctica",),
    ASIA: (
        "Afghanistan", "Armenia", "Azerbaijan", "Bahrain", "Bangladesh", "Bhutan",
        "Brunei", "Cambodia", "China", "Georgia", "Hong Kong", "India",
        "Indonesia", "Iran", "Iraq", "Israel", "Japan", "Jordan", "Kazakhstan",
        "Kuwait", "Kyrgyzstan", "Laos", "Lebanon", "Macau", "Malaysia",
        "Maldives", "Mongolia", "Myanmar", "Nepal", "North Korea", "Oman",
        "Pakistan", "Palestine", "Philippines", "Qatar", "Saudi Arabia",
        "Singapore", "South Korea", "Sri Lanka", "Syria", "Taiwan", "Tajikistan",
        "Thailand", "Timor-Leste", "Turkey", "Turkmenistan",
        "United Arab Emirates", "UAE", "Uzbekistan", "Vietnam", "Yemen",
    ),
    EUROPE: (
        "Albania", "Andorra", "Austria", "Belarus", "Belgium",
        "Bosnia and Herzegovina", "Bulgaria", "Croatia", "Cyprus",
        "Czech Republic", "Czechia", "Denmark", "England", "Estonia", "Finland",
        "France", "Germany", "Greece", "Hungary", "Iceland", "Ireland", "Italy",
        "Kosovo", "Latvia", "Liechtenstein", "Lithuania", "Luxembourg", "Malta",
        "Moldova", "Monaco", "Montenegro", "Netherlands", "North Macedonia",
        "Norway", "Poland", "Portugal", "Romania", "Russia", "San Marino",
        "Scotland", "Serbia", "Slovakia", "Slovenia", "Spain", "Sweden",
        "Switzerland", "Ukraine", "United Kingdom", "UK", "Vatican City", "Wales",
    ),
    NORTH_AMERICA: (
        "Antigua and Barbuda", "Bahamas", "Barbados", "Belize", "Canada",
        "Costa Rica", "Cuba", "Dominica", "Dominican Republic", "El Salvador",
        "Greenland", "Grenada", "Guatemala", "Haiti", "Honduras", "Jamaica",
        "Mexico", "Nicaragua", "Panama", "Puerto Rico", "Saint Kitts and Nevis",
        "Saint Lucia", "Saint Vincent and the Grenadines", "Trinidad and Tobago",
        "United States", "United States of America", "USA",
    ),
    OCEANIA: (
        "Australia", "Fiji", "Kiribati", "Marshall Islands", "Micronesia",
        "Nauru", "New Zealand", "Palau", "Papua New Guinea", "Samoa",
        "Solomon Islands", "Tonga", "Tuvalu", "Vanuatu", "French Polynesia",
    ),
    SOUTH_AMERICA: (
        "Argentina", "Bolivia", "Brazil", "Chile", "Colombia", "Ecuador",
        "Guyana", "Paraguay", "Peru", "Suriname", "Uruguay", "Venezuela",
    ),
}

DEFAULT_COUNTRY_CONTINENT_MAP: Mapping[str, str] = MappingProxyType(
    {
        country: continent
        for continent, countries in _CONTINENT_COUNTRIES.items()
        for country in countries
    }
)


def load_country_continent_map(path: str | Path | None = None) -> Mapping[str, str]:
    """
    Load a lookup table from a JSON object file.

    Args:
        path: File containing ``{"Country": "Continent", ...}``

    Returns:
        Read-only mapping
    """
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"Country-continent map at {path} must be a JSON object")
    return MappingProxyType({str(k): str(v) for k, v in data.items()})


@lru_cache(maxsize=1)
def get_country_continent_map() -> Mapping[str, str]:
    """Return the configured lookup (file override if set, else the built-in table)."""
    if COUNTRY_CONTINENT_MAP_PATH:
        logger.info(f"Loading country-continent map from {COUNTRY_CONTINENT_MAP_PATH}")
        return load_country_continent_map(COUNTRY_CONTINENT_MAP_PATH)
    return DEFAULT_COUNTRY_CONTINENT_MAP


def continent_for(country: str, lookup: Mapping[str, str] | None = None) -> str | None:
    table = lookup if lookup is not None else get_country_continent_map()
    return table.get(country)
