"""Load the bundled port dataset, reference list, and manual name mappings."""

from __future__ import annotations

import json
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any

from .models import ReferenceListItem

CONTENT_PACKAGE = "portquiz.content"
PORTS_FILE = "ports.json"
REFERENCE_FILE = "reference_ports.json"
MAPPINGS_FILE = "port_name_mappings.json"


@dataclass(frozen=True)
class QuizContent:
    """Raw inputs the catalog and built-in list are derived from."""

    raw_ports: list[dict[str, Any]]
    reference_items: list[ReferenceListItem]
    name_mappings: dict[str, str]


def _reference_item_from_dict(raw: dict[str, Any]) -> ReferenceListItem:
    """Build a reference row from raw JSON content."""
    port_name = str(raw.get("Port Name", "")).strip()
    country = str(raw.get("Country", "")).strip()
    if not port_name or not country:
        raise ValueError(f"Reference entry {raw.get('Number', '<unknown>')} is missing a port name or country.")
    return ReferenceListItem(
        number=int(raw.get("Number", 0)),
        port_name=port_name,
        country=country,
        region=str(raw.get("Region", "")).strip(),
    )


def _parse_ports(raw: object, source: str) -> list[dict[str, Any]]:
    if not isinstance(raw, list) or not all(isinstance(item, dict) for item in raw):
        raise ValueError(f"{source} must contain a JSON array of port objects.")
    return list(raw)


def _parse_reference(raw: object, source: str) -> list[ReferenceListItem]:
    if not isinstance(raw, list):
        raise ValueError(f"{source} must contain a JSON array of reference entries.")
    return [_reference_item_from_dict(item) for item in raw]


def _parse_mappings(raw: object, source: str) -> dict[str, str]:
    if not isinstance(raw, dict):
        raise ValueError(f"{source} must contain a JSON object of name mappings.")
    mappings: dict[str, str] = {}
    for key, value in raw.items():
        if str(key).count("|") != 1 or str(value).count("|") != 1:
            raise ValueError(f"Mapping '{key}' -> '{value}' must use the 'name|country' form on both sides.")
        mappings[str(key)] = str(value)
    return mappings


def load_content() -> QuizContent:
    """Load bundled content."""
    root = resources.files(CONTENT_PACKAGE)
    return QuizContent(
        raw_ports=_parse_ports(json.loads(root.joinpath(PORTS_FILE).read_text(encoding="utf-8-sig")), PORTS_FILE),
        reference_items=_parse_reference(
            json.loads(root.joinpath(REFERENCE_FILE).read_text(encoding="utf-8-sig")), REFERENCE_FILE
        ),
        name_mappings=_parse_mappings(
            json.loads(root.joinpath(MAPPINGS_FILE).read_text(encoding="utf-8-sig")), MAPPINGS_FILE
        ),
    )


def load_content_from_dir(path: Path) -> QuizContent:
    """Load content from a directory for tests/tools.

    The reference list and mapping table are optional and default to empty.
    """
    ports_path = path / PORTS_FILE
    reference_path = path / REFERENCE_FILE
    mappings_path = path / MAPPINGS_FILE
    raw_ports = _parse_ports(json.loads(ports_path.read_text(encoding="utf-8-sig")), str(ports_path))
    reference_items: list[ReferenceListItem] = []
    if reference_path.exists():
        reference_items = _parse_reference(
            json.loads(reference_path.read_text(encoding="utf-8-sig")), str(reference_path)
        )
    name_mappings: dict[str, str] = {}
    if mappings_path.exists():
        name_mappings = _parse_mappings(json.loads(mappings_path.read_text(encoding="utf-8-sig")), str(mappings_path))
    return QuizContent(raw_ports=raw_ports, reference_items=reference_items, name_mappings=name_mappings)
