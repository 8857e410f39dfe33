"""Country code and name normalization for geographic views"""

import math
from typing import Optional, Tuple

UNKNOWN_COUNTRY = "Unknown"
UNKNOWN_CITY = "Unknown City"

# Full names as reported by IP geolocation -> ISO 3166 alpha-2
COUNTRY_CODES = {
    "USA": "US",
    "United States": "US",
    "Germany": "DE",
    "Netherlands": "NL",
    "England": "GB",
    "United Kingdom": "GB",
    "China": "CN",
    "Canada": "CA",
    "France": "FR",
    "Japan": "JP",
    "Australia": "AU",
    "Switzerland": "CH",
    "Singapore": "SG",
    "Russia": "RU",
    "Brazil": "BR",
    "India": "IN",
    "South Korea": "KR",
    "Hong Kong": "HK",
    "South Africa": "ZA",
    "Indonesia": "ID",
    "Italy": "IT",
    "Spain": "ES",
    "Sweden": "SE",
    "Norway": "NO",
    "Finland": "FI",
    "Denmark": "DK",
    "Belgium": "BE",
    "Austria": "AT",
    "Poland": "PL",
    "Ireland": "IE",
}

# Alpha-2 -> names used by the world map GeoJSON
MAP_COUNTRY_NAMES = {
    "US": "USA",
    "HK": "China",
    "SG": "China",  # no Singapore shape in the map data
    "DE": "Germany",
    "AU": "Australia",
    "ZA": "South Africa",
    "BR": "Brazil",
    "ID": "Indonesia",
    "JP": "Japan",
    "CN": "China",
    "RU": "Russia",
    "GB": "England",
    "CA": "Canada",
    "FR": "France",
    "CH": "Switzerland",
    "IN": "India",
    "KR": "South Korea",
    "NL": "Netherlands",
    "IT": "Italy",
    "ES": "Spain",
    "SE": "Sweden",
    "NO": "Norway",
    "FI": "Finland",
    "DK": "Denmark",
    "BE": "Belgium",
    "AT": "Austria",
    "PL": "Poland",
    "IE": "Ireland",
}


def country_code(country: Optional[str]) -> str:
    """Normalize a country name or code to a two-letter code"""
    if country and len(country) == 2:
        return country.upper()
    return COUNTRY_CODES.get(country or "", country or UNKNOWN_COUNTRY)


def country_display_name(code: Optional[str]) -> str:
    """Map a country code to the name the world map expects"""
    return MAP_COUNTRY_NAMES.get(code or "", code or UNKNOWN_COUNTRY)


def parse_coordinates(loc: Optional[str]) -> Optional[Tuple[float, float]]:
    """Parse a "lat,lon" string; None when missing or malformed"""
    if not loc:
        return None

    parts = loc.split(",")
    if len(parts) < 2:
        return None

    try:
        lat = float(parts[0].strip())
        lon = float(parts[1].strip())
    except ValueError:
        return None

    # float() accepts "nan" and "inf"
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return None
    return lat, lon
