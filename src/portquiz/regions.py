"""Region tags and their country allow-lists."""

from __future__ import annotations

WORLD = "world"

REGION_COUNTRIES: dict[str, tuple[str, ...]] = {
    "asia": (
        "china",
        "japan",
        "south korea",
        "india",
        "indonesia",
        "malaysia",
        "singapore",
        "thailand",
        "vietnam",
        "philippines",
        "bangladesh",
        "pakistan",
        "taiwan",
        "hong kong",
        "sri lanka",
        "myanmar",
        "cambodia",
    ),
    "europe": (
        "united kingdom",
        "france",
        "germany",
        "spain",
        "italy",
        "netherlands",
        "belgium",
        "poland",
        "greece",
        "portugal",
        "sweden",
        "norway",
        "denmark",
        "finland",
        "ireland",
        "romania",
        "ukraine",
        "turkey",
        "russia",
    ),
    "americas": (
        "usa",
        "united states",
        "u.s.a.",
        "canada",
        "mexico",
        "brazil",
        "argentina",
        "chile",
        "colombia",
        "peru",
        "venezuela",
        "ecuador",
        "uruguay",
        "panama",
        "costa rica",
        "dominican republic",
        "puerto rico",
        "jamaica",
        "cuba",
    ),
    "africa": (
        "south africa",
        "egypt",
        "nigeria",
        "kenya",
        "morocco",
        "tanzania",
        "ghana",
        "algeria",
        "tunisia",
        "ethiopia",
        "libya",
        "senegal",
        "angola",
        "mozambique",
        "cameroon",
        "ivory coast",
        "madagascar",
    ),
    "oceania": ("australia", "new zealand", "papua new guinea", "fiji"),
}

REGION_TITLES = {
    WORLD: "World",
    "asia": "Asia",
    "europe": "Europe",
    "americas": "Americas",
    "africa": "Africa",
    "oceania": "Oceania",
}


def in_region(country: str, region: str) -> bool:
    """Return whether a country belongs to a region tag.

    Matching is substring based on the lower-cased country, so ``"USA"`` hits
    the ``"usa"`` entry. Unknown tags match nothing.
    """
    if region == WORLD:
        return True
    lowered = country.lower()
    return any(entry in lowered for entry in REGION_COUNTRIES.get(region, ()))


def in_any_region(country: str, regions: tuple[str, ...]) -> bool:
    """Return whether a country passes a region selection (empty or world = everything)."""
    if not regions or WORLD in regions:
        return True
    return any(in_region(country, region) for region in regions)


def geographic_region(country: str) -> str:
    """Return the display title of the first region containing a country, or ``"Other"``."""
    for region in REGION_COUNTRIES:
        if in_region(country, region):
            return REGION_TITLES[region]
    return "Other"
