"""Core domain records for the port matching quiz."""

from __future__ import annotations

from dataclasses import dataclass

from .normalize import normalize

EASY = "easy"
NORMAL = "normal"
HARD = "hard"
DIFFICULTIES = (EASY, NORMAL, HARD)

DECOYS_PER_PORT = {EASY: 0, NORMAL: 2, HARD: 5}


@dataclass(frozen=True, order=True)
class PortKey:
    """Structured identity of a port as referenced by lists and answers."""

    name: str
    country: str

    def __str__(self) -> str:
        return f"{self.name}-{self.country}"

    @classmethod
    def parse(cls, text: str) -> PortKey:
        """Parse the serialized ``"name-country"`` form, splitting on the last dash."""
        name, sep, country = text.strip().rpartition("-")
        if not sep or not name.strip() or not country.strip():
            raise ValueError(f"Malformed port key: {text!r}")
        return cls(name=name.strip(), country=country.strip())


@dataclass(frozen=True)
class Port:
    """One canonical catalog port."""

    id: int
    name: str
    country: str
    region: str
    lat: float
    lng: float

    @property
    def key(self) -> PortKey:
        return PortKey(self.name, self.country)

    @property
    def display_name(self) -> str:
        return f"{self.name}, {self.country}"

    @property
    def normalized_key(self) -> tuple[str, str]:
        """Lookup pair shared by every record naming this port."""
        return (normalize(self.name), normalize(self.country))


def answer_label(port: Port, difficulty: str) -> str:
    """Return the answer form a port is offered and graded under for a difficulty."""
    if difficulty == EASY:
        return port.display_name
    return port.name


@dataclass(frozen=True)
class ReferenceListItem:
    """One row of an externally curated reference port table."""

    number: int
    port_name: str
    country: str
    region: str


@dataclass(frozen=True)
class PortList:
    """Named, ordered subset of catalog ports used to restrict sampling."""

    id: str
    name: str
    port_keys: tuple[PortKey, ...]
    is_built_in: bool = False


@dataclass(frozen=True)
class QuizResult:
    """Graded outcome for one labelled marker."""

    letter: str
    selected_port: str
    correct_port: str
    is_correct: bool


@dataclass(frozen=True)
class HistoryResult:
    """One graded port inside a stored quiz history entry."""

    port: str
    is_correct: bool


@dataclass(frozen=True)
class QuizHistoryEntry:
    """Append-only record of one submitted quiz."""

    id: str
    date: str
    score: int
    total: int
    accuracy: float
    duration: int
    difficulty: str
    regions: tuple[str, ...]
    countries: tuple[str, ...]
    results: tuple[HistoryResult, ...]
