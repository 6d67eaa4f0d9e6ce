"""Deduplicated catalog of canonical ports built from the raw dataset."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from .models import Port, PortKey
from .normalize import canonical_country
from .regions import geographic_region


def _field(raw: Mapping[str, Any], *names: str) -> Any:
    """Return the first present, non-empty field among alternative spellings."""
    for name in names:
        value = raw.get(name)
        if value is not None and value != "":
            return value
    return None


def _port_from_row(index: int, raw: Mapping[str, Any]) -> Port:
    """Build a port from one raw dataset row (``index`` is 0-based)."""
    city = _field(raw, "CITY", "city", "name")
    country = _field(raw, "COUNTRY", "country")
    latitude = _field(raw, "LATITUDE", "latitude", "lat")
    longitude = _field(raw, "LONGITUDE", "longitude", "lng")
    if city is None or country is None or latitude is None or longitude is None:
        raise ValueError(f"Port row {index + 1} is missing a city, country, or coordinates.")
    country_name = canonical_country(str(country))
    state = _field(raw, "STATE", "state")
    return Port(
        id=index + 1,
        name=str(city).strip(),
        country=country_name,
        region=str(state).strip() if state is not None else country_name,
        lat=float(latitude),
        lng=float(longitude),
    )


def build_ports(raw_rows: Iterable[Mapping[str, Any]]) -> list[Port]:
    """Convert raw rows into ports, keeping the first of any exact duplicates.

    Two rows are the same port only when name and country normalize equal and
    the coordinates are identical, so same-named ports elsewhere survive.
    """
    seen: set[tuple[str, str, float, float]] = set()
    ports: list[Port] = []
    for index, raw in enumerate(raw_rows):
        port = _port_from_row(index, raw)
        dedup_key = (*port.normalized_key, port.lat, port.lng)
        if dedup_key in seen:
            continue
        seen.add(dedup_key)
        ports.append(port)
    return ports


class PortCatalog:
    """Read-only collection of ports with the lookups the quiz needs."""

    def __init__(self, ports: Iterable[Port]) -> None:
        self._ports = tuple(ports)
        self._normalized: dict[tuple[str, str], Port] = {}
        self._by_key: dict[PortKey, list[Port]] = {}
        for port in self._ports:
            self._normalized.setdefault(port.normalized_key, port)
            self._by_key.setdefault(port.key, []).append(port)

    @classmethod
    def from_rows(cls, raw_rows: Iterable[Mapping[str, Any]]) -> PortCatalog:
        """Build a catalog straight from raw dataset rows."""
        return cls(build_ports(raw_rows))

    @property
    def ports(self) -> tuple[Port, ...]:
        return self._ports

    def __len__(self) -> int:
        return len(self._ports)

    def __iter__(self) -> Iterator[Port]:
        return iter(self._ports)

    def normalized_index(self) -> Mapping[tuple[str, str], Port]:
        """Return normalized (name, country) -> first port in dataset order."""
        return self._normalized

    def find_normalized(self, name: str, country: str) -> Port | None:
        """Return the first port whose normalized name and country equal the given (already normalized) pair."""
        return self._normalized.get((name, country))

    def ports_for_key(self, key: PortKey) -> list[Port]:
        """Return every port sharing a literal name/country key (distinct coordinates)."""
        return list(self._by_key.get(key, ()))

    def port_for_key(self, key: PortKey) -> Port | None:
        ports = self._by_key.get(key)
        return ports[0] if ports else None

    def countries(self) -> list[str]:
        """Return the sorted distinct countries in the catalog."""
        return sorted({port.country for port in self._ports})

    def search(self, term: str) -> list[Port]:
        """Return ports whose name, country, region, or geographic region contains the term."""
        needle = term.strip().lower()
        matches = [
            port
            for port in self._ports
            if not needle
            or needle in port.name.lower()
            or needle in port.country.lower()
            or needle in port.region.lower()
            or needle in geographic_region(port.country).lower()
        ]
        matches.sort(key=lambda port: (port.name.lower(), port.country.lower(), port.id))
        return matches
