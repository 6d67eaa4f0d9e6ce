"""Filter, sample, and label ports into a playable quiz session."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import UTC, datetime

from .catalog import PortCatalog
from .models import DECOYS_PER_PORT, DIFFICULTIES, EASY, Port, PortList, answer_label
from .normalize import canonical_country
from .regions import WORLD, in_any_region

logger = logging.getLogger(__name__)

DEFAULT_PORT_COUNT = 10


@dataclass(frozen=True)
class QuizFilters:
    """Declarative quiz configuration supplied by the UI."""

    regions: tuple[str, ...] = (WORLD,)
    countries: tuple[str, ...] = ()
    list_id: str | None = None
    difficulty: str = EASY
    port_count: int = DEFAULT_PORT_COUNT

    def __post_init__(self) -> None:
        if self.difficulty not in DIFFICULTIES:
            raise ValueError(f"Unknown difficulty '{self.difficulty}'. Expected one of: {', '.join(DIFFICULTIES)}.")
        if self.port_count < 1:
            raise ValueError("Port count must be at least 1.")
        object.__setattr__(self, "regions", tuple(self.regions))
        object.__setattr__(self, "countries", tuple(canonical_country(country) for country in self.countries))


@dataclass(frozen=True)
class QuizSession:
    """One generated quiz prior to grading."""

    ports: tuple[Port, ...]
    markers: dict[str, Port]
    decoys: tuple[Port, ...]
    filters: QuizFilters
    available_countries: tuple[str, ...]
    selected_countries: tuple[str, ...]
    filtered_ports_count: int
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def difficulty(self) -> str:
        return self.filters.difficulty

    @property
    def labels(self) -> list[str]:
        return list(self.markers)

    @property
    def is_empty(self) -> bool:
        return not self.ports


def make_labels(count: int) -> list[str]:
    """Return sequential marker labels ``"1".."count"``."""
    return [str(index) for index in range(1, count + 1)]


def _label_ports(ports: list[Port]) -> dict[str, Port]:
    return dict(zip(make_labels(len(ports)), ports, strict=True))


def filter_pool(
    catalog: PortCatalog, filters: QuizFilters, port_list: PortList | None = None
) -> tuple[list[Port], list[str], list[str]]:
    """Apply list, region, then country filters.

    Returns ``(pool, available_countries, selected_countries)`` where the
    available countries are computed before the country filter and the
    selected countries are the requested ones still available.
    """
    pool = list(catalog.ports)
    if port_list is not None:
        allowed = set(port_list.port_keys)
        pool = [port for port in pool if port.key in allowed]

    pool = [port for port in pool if in_any_region(port.country, filters.regions)]

    available = sorted({port.country for port in pool})
    available_set = set(available)
    selected = [country for country in filters.countries if country in available_set]
    if len(selected) != len(filters.countries):
        logger.debug("Dropped unavailable countries from selection: %s", set(filters.countries) - available_set)

    if selected:
        chosen = set(selected)
        pool = [port for port in pool if port.country in chosen]
    return pool, available, selected


def pick_decoys(catalog: PortCatalog, selected: list[Port], difficulty: str, rng: random.Random) -> list[Port]:
    """Draw same-country distractor ports for the harder tiers."""
    per_port = DECOYS_PER_PORT[difficulty]
    if per_port == 0 or not selected:
        return []
    countries = {port.country for port in selected}
    selected_keys = {port.key for port in selected}
    candidates = [port for port in catalog.ports if port.country in countries and port.key not in selected_keys]
    rng.shuffle(candidates)
    return candidates[: min(len(selected) * per_port, len(candidates))]


def build_session(
    catalog: PortCatalog,
    filters: QuizFilters,
    port_list: PortList | None = None,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> QuizSession:
    """Sample a fresh session from the catalog under the given filters."""
    rng = rng or random.Random()
    pool, available, selected_countries = filter_pool(catalog, filters, port_list)
    filtered_count = len(pool)

    rng.shuffle(pool)
    selected = pool[: min(filters.port_count, filtered_count)]
    decoys = pick_decoys(catalog, selected, filters.difficulty, rng)
    logger.info(
        "Built %s session: %d ports from a pool of %d, %d decoys",
        filters.difficulty,
        len(selected),
        filtered_count,
        len(decoys),
    )
    return QuizSession(
        ports=tuple(selected),
        markers=_label_ports(selected),
        decoys=tuple(decoys),
        filters=filters,
        available_countries=tuple(available),
        selected_countries=tuple(selected_countries),
        filtered_ports_count=filtered_count,
        started_at=now or datetime.now(UTC),
    )


def relabel_session(session: QuizSession, rng: random.Random | None = None, now: datetime | None = None) -> QuizSession:
    """Keep the same ports and decoys but reshuffle which label each port gets."""
    rng = rng or random.Random()
    ports = list(session.markers.values())
    rng.shuffle(ports)
    return QuizSession(
        ports=session.ports,
        markers=_label_ports(ports),
        decoys=session.decoys,
        filters=session.filters,
        available_countries=session.available_countries,
        selected_countries=session.selected_countries,
        filtered_ports_count=session.filtered_ports_count,
        started_at=now or datetime.now(UTC),
    )


def answer_options(session: QuizSession) -> list[str]:
    """Return the sorted, distinct answer choices for the session's difficulty."""
    return sorted({answer_label(port, session.difficulty) for port in (*session.ports, *session.decoys)})
