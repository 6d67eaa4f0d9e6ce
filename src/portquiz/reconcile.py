"""Link a curated reference port list onto catalog ports."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from .catalog import PortCatalog
from .models import Port, PortKey, PortList, ReferenceListItem
from .normalize import normalize, normalized_key

logger = logging.getLogger(__name__)

BUILTIN_LIST_ID = "top-150"
BUILTIN_LIST_NAME = "150 Top Ports"

MAPPED = "mapped"
EXACT = "exact"
SUBSTRING = "substring"


class ManualMappings:
    """Hand-curated corrections from reference spellings to catalog spellings.

    Built from a ``"name|country" -> "name|country"`` table. Both sides are
    normalized, so entries like ``baie-comeau`` line up with the catalog's
    normalized keys.
    """

    def __init__(self, table: Mapping[str, str] | None = None) -> None:
        self._pairs: dict[tuple[str, str], tuple[str, str]] = {}
        for source, target in (table or {}).items():
            self._pairs[_split_pair(source)] = _split_pair(target)

    def __len__(self) -> int:
        return len(self._pairs)

    def lookup(self, name: str, country: str) -> tuple[str, str] | None:
        """Return the mapped pair for an already normalized (name, country), if any."""
        return self._pairs.get((name, country))


def _split_pair(text: str) -> tuple[str, str]:
    name, sep, country = text.partition("|")
    if not sep:
        raise ValueError(f"Mapping entry '{text}' must use the 'name|country' form.")
    return (normalize(name), normalize(country))


@dataclass(frozen=True)
class ReferenceMatch:
    """How one reference entry was resolved."""

    item: ReferenceListItem
    key: PortKey
    strategy: str


@dataclass(frozen=True)
class ReconciliationReport:
    """Outcome of reconciling a reference list against the catalog."""

    matches: tuple[ReferenceMatch, ...]
    unmatched: tuple[ReferenceListItem, ...]

    @property
    def matched(self) -> tuple[PortKey, ...]:
        """Resolved keys in reference order, first occurrence kept."""
        keys: dict[PortKey, None] = {}
        for match in self.matches:
            keys.setdefault(match.key, None)
        return tuple(keys)


def resolve_reference_item(
    item: ReferenceListItem, catalog: PortCatalog, mappings: ManualMappings
) -> ReferenceMatch | None:
    """Resolve one entry via mapping table, then exact normalized match, then substring scan."""
    name, country = normalized_key(item.port_name, item.country)

    mapped = mappings.lookup(name, country)
    if mapped is not None:
        port = catalog.find_normalized(*mapped)
        if port is not None:
            return ReferenceMatch(item=item, key=port.key, strategy=MAPPED)

    port = catalog.find_normalized(name, country)
    if port is not None:
        return ReferenceMatch(item=item, key=port.key, strategy=EXACT)

    fallback = _substring_match(catalog.normalized_index(), name, country)
    if fallback is not None:
        return ReferenceMatch(item=item, key=fallback.key, strategy=SUBSTRING)
    return None


def _substring_match(index: Mapping[tuple[str, str], Port], name: str, country: str) -> Port | None:
    """Return the first indexed port whose ``name-country`` key contains both fragments."""
    if not name or not country:
        return None
    for (indexed_name, indexed_country), port in index.items():
        joined = f"{indexed_name}-{indexed_country}"
        if name in joined and country in joined:
            return port
    return None


def reconcile_reference_list(
    items: Iterable[ReferenceListItem], catalog: PortCatalog, mappings: ManualMappings
) -> ReconciliationReport:
    """Resolve every reference entry it can; unmatched entries are logged and dropped."""
    matches: list[ReferenceMatch] = []
    unmatched: list[ReferenceListItem] = []
    for item in items:
        match = resolve_reference_item(item, catalog, mappings)
        if match is None:
            unmatched.append(item)
        else:
            matches.append(match)

    if unmatched:
        logger.warning(
            "Could not match %d ports from reference list: %s",
            len(unmatched),
            ", ".join(f"{item.port_name}, {item.country}" for item in unmatched),
        )
    logger.debug("Reconciled %d of %d reference entries", len(matches), len(matches) + len(unmatched))
    return ReconciliationReport(matches=tuple(matches), unmatched=tuple(unmatched))


def build_builtin_list(
    items: Iterable[ReferenceListItem], catalog: PortCatalog, mappings: ManualMappings
) -> PortList:
    """Create the built-in top ports list from the reference table."""
    report = reconcile_reference_list(items, catalog, mappings)
    return PortList(id=BUILTIN_LIST_ID, name=BUILTIN_LIST_NAME, port_keys=report.matched, is_built_in=True)


def format_match_report(report: ReconciliationReport) -> list[str]:
    """Render matched/unmatched counts and each miss with its normalized lookup key."""
    lines = [f"Matched: {len(report.matches)} ports", f"Unmatched: {len(report.unmatched)} ports"]
    substring_matches = [match for match in report.matches if match.strategy == SUBSTRING]
    if substring_matches:
        lines.append("")
        lines.append("Partial matches:")
        for match in substring_matches:
            lines.append(f"- {match.item.port_name}, {match.item.country} -> {match.key.name}, {match.key.country}")
    if report.unmatched:
        lines.append("")
        lines.append("Unmatched ports:")
        for idx, item in enumerate(report.unmatched, start=1):
            name, country = normalized_key(item.port_name, item.country)
            lines.append(f"{idx}. {item.port_name}, {item.country}")
            lines.append(f"   Normalized: {name}-{country}")
    return lines
